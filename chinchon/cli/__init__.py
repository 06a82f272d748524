"""Command-line interface for the Chinchón engine."""
