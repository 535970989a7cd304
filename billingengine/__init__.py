"""Weekly-instalment loan billing engine with a JSON HTTP service."""

__version__ = "0.1.0"
__all__ = ["__version__"]