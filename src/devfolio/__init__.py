"""Developer portfolio backend with a TTL-cached read path."""

__version__ = "0.1.0"
