"""Core exceptions and constants."""
