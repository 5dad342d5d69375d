"""Point-in-time integrity snapshots of directory trees."""

__version__ = "0.1.0"
