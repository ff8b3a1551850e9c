"""Command line interface for ghsecrets."""
