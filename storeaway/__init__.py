"""StoreAway storage-space rental marketplace backend."""

__version__ = "1.0.0"
