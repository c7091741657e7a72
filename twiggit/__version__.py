"""Version information for twiggit."""

__version__ = "0.4.0"
