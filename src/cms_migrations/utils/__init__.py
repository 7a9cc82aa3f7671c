"""Utility modules for cms-migrations."""
