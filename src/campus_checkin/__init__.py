"""QR-code attendance check-in service for college events."""

__version__ = "0.1.0"
