"""Data models for notenav."""
