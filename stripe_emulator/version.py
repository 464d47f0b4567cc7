"""Version information for stripe-emulator."""

__version__ = "0.1.0"
