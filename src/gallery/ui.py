"""The single-page browser UI served at ``/``."""

from functools import lru_cache
from html import escape
from pathlib import Path

from gallery.config import GalleryConfig
from gallery.storage.backend import format_public_url

_INDEX_PATH = Path(__file__).resolve().parent / "static" / "index.html"


@lru_cache(maxsize=1)
def _load_template() -> str:
    return _INDEX_PATH.read_text(encoding="utf-8")


def render_index(config: GalleryConfig) -> str:
    """Render the UI page with the bucket link filled in."""
    bucket_url = format_public_url(
        config.storage.bucket,
        config.storage.region,
        "",
        config.storage.public_url_template,
    )
    return _load_template().replace("{{BUCKET_URL}}", escape(bucket_url, quote=True))
