"""Command line interface for cms-migrations."""
