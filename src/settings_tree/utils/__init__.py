"""Utility modules for settings-tree."""
