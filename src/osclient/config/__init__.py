"""Configuration for the OpenSearch client."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
