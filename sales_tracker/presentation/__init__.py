"""Rendering helpers and the command-line interface."""
