"""Infrastructure helpers for networking, caching and responses."""

from .cache import CACHE, ResponseCache, last_good_png, remember_last_good
from .network import FETCHER, SourceFetcher, SourceFetchError, join_base_and_path
from .responses import encode_png, send_png, send_png_bytes

__all__ = [
    "CACHE",
    "ResponseCache",
    "last_good_png",
    "remember_last_good",
    "FETCHER",
    "SourceFetcher",
    "SourceFetchError",
    "join_base_and_path",
    "encode_png",
    "send_png",
    "send_png_bytes",
]
