"""Azure bulk resource deletion tool."""

__version__ = "0.1.0"
