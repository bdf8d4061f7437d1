"""chatfavorites: favorite chat messages and chat files."""

__version__ = "0.1.0"
