"""Command-line interface for podcaddy."""
