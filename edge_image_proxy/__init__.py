"""Edge proxy that stores images and serves them back with HTTP caching."""

__version__ = "0.1.0"
