"""Load-balancer demo server: shows which backend instance served a request."""

__version__ = "1.0.0"
