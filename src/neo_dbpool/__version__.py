"""Version information for neo-dbpool."""

__version__ = "0.1.0"
