"""
Configuration package for the Sales Tracker Dashboard.

This package contains modules for managing application settings,
environment variables, and logging configuration.
"""

from sales_tracker.config.settings import Settings

# Export settings singleton for app-wide use
settings = Settings()

__all__ = ["settings"]
