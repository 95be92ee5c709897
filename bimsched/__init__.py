"""BIMSched - department schedule automation for BIM room data."""

__version__ = "0.1.0"
