"""NewsLatch campaign backend: RSS-driven ad content generation."""

__version__ = "0.1.0"
