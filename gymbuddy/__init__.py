"""gymbuddy: nearby-buddy matching and social-graph sync service."""

__version__ = "0.1.0"
