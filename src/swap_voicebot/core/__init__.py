"""Core conversation logic."""
