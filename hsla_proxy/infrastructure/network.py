from __future__ import annotations

import io
import logging
import posixpath
import time
from typing import Callable, Optional

from urllib.parse import urlsplit, urlunsplit

import requests
from PIL import Image, UnidentifiedImageError

from ..config import SETTINGS, ProxySettings

log = logging.getLogger(__name__)

SessionFactory = Callable[[], requests.Session]


class SourceFetchError(RuntimeError):
    """The upstream image could not be fetched or decoded."""


def join_base_and_path(base_url: str, path: Optional[str]) -> str:
    """Combine ``base_url`` with ``path``.

    Relative paths are appended to the base path; absolute paths replace it.
    """

    base_parts = urlsplit(base_url)
    if not base_parts.scheme or not base_parts.netloc:
        raise ValueError(f"Invalid source_base: {base_url}")
    if not path:
        return base_url

    if path.startswith("/"):
        new_path = posixpath.normpath(path)
    else:
        base_path = base_parts.path or "/"
        if not base_path.endswith("/"):
            base_path = f"{base_path}/"
        new_path = posixpath.normpath(f"{base_path}{path}")
    if not new_path.startswith("/"):
        new_path = f"/{new_path}"
    return urlunsplit(base_parts._replace(path=new_path))


class SourceFetcher:
    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        settings: ProxySettings = SETTINGS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session_factory = session_factory or requests.Session
        self._settings = settings
        self._sleep = sleep
        self._session = self._create_session()

    def _create_session(self) -> requests.Session:
        session = self._session_factory()
        session.headers.update({"User-Agent": "hsla-proxy/1.0"})
        return session

    def fetch(self, url: str) -> Image.Image:
        last_exception: Exception | None = None
        attempts = self._settings.retries + 1
        for attempt in range(1, attempts + 1):
            try:
                response = self._session.get(url, timeout=self._settings.timeout)
                response.raise_for_status()
                img = Image.open(io.BytesIO(response.content))
                img.load()
                return img
            except (requests.RequestException, UnidentifiedImageError, OSError) as exc:
                last_exception = exc
                log.warning("Fetching %s failed (attempt %d): %s", url, attempt, exc)
                if attempt < attempts:
                    self._sleep(0.4 * attempt)
        raise SourceFetchError(f"{url}: {last_exception}") from last_exception

    def fetch_source(self, source_url: str | None = None) -> Image.Image:
        return self.fetch(source_url or self._settings.source_url)

    def fetch_stencil(self, stencil_url: str | None = None) -> Image.Image:
        return self.fetch(stencil_url or self._settings.stencil_url)


FETCHER = SourceFetcher()
