"""Hardware device inventory and driver profile manager."""

__version__ = "0.1.0"
