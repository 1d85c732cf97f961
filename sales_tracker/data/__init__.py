"""Data models and persistence boundary."""
