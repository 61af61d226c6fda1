"""Search Detective -- geo-targeted keyword research for local service industries."""

__version__ = "1.0.0"
