"""Command-line interface for commitscribe."""
