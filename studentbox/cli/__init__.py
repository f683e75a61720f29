"""Command-line tools for StudentBox."""
