"""relflow: release branch resolution and publish automation."""

__version__ = "0.1.0"
