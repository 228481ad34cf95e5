"""Object store backends for the gallery service."""

from gallery.storage.backend import ObjectStore, format_public_url

__all__ = ["ObjectStore", "format_public_url"]
