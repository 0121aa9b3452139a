"""Version information for stock-access."""

__version__ = "1.0.0"
