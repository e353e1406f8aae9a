"""Remote control client for a networked air-conditioner gateway."""

__version__ = "0.1.0"
