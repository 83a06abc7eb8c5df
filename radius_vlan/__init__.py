"""RADIUS authentication server assigning VLANs from a static user directory."""

__version__ = "0.1.0"
