"""Storm impact: which weather events hurt people and property the most."""

__version__ = "0.1.0"
