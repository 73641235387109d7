"""Watch Steam accounts for changes in recently played games."""

__version__ = "0.1.0"
