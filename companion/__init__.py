"""Command-line companion for the guidance engine."""
