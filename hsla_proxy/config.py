import logging
import os
from dataclasses import dataclass
from typing import Tuple


@dataclass
class ProxySettings:
    source_url: str
    stencil_url: str
    port: int
    timeout: float
    retries: int
    cache_ttl: float
    spotlight_x: int
    spotlight_y: int
    log_level: str

    @classmethod
    def from_env(cls) -> "ProxySettings":
        return cls(
            source_url=os.getenv("SOURCE_URL", "http://127.0.0.1:8000/alma.png"),
            stencil_url=os.getenv("STENCIL_URL", "http://127.0.0.1:8000/overlay.png"),
            port=int(os.getenv("PORT", "5500")),
            timeout=float(os.getenv("SOURCE_TIMEOUT", "10.0")),
            retries=int(os.getenv("SOURCE_RETRIES", "2")),
            cache_ttl=float(os.getenv("CACHE_TTL", "5")),
            spotlight_x=int(os.getenv("SPOTLIGHT_X", "450")),
            spotlight_y=int(os.getenv("SPOTLIGHT_Y", "150")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def spotlight_center(self) -> Tuple[int, int]:
        return self.spotlight_x, self.spotlight_y


SETTINGS = ProxySettings.from_env()


def configure_logging() -> logging.Logger:
    logging.basicConfig(level=SETTINGS.log_level)
    return logging.getLogger("hsla-proxy")
