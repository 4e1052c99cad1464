"""Allow/deny list resolution and matching for ipban."""

__version__ = "1.0.0"
