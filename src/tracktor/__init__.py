"""Tracktor — GPS track normalization, elevation lookup and chart downscaling."""

__version__ = "0.1.0"
