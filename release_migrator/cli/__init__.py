"""Command-line interface for the Helm release migration tool."""
