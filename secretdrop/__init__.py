"""One-time secret sharing service."""

__version__ = "1.0.0"
