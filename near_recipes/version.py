"""Version information for the NEAR recipes engine."""

__version__ = "0.3.0"
