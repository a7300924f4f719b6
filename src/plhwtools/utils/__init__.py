"""Shared helpers: logging setup, hex dumps and argument parsing."""
