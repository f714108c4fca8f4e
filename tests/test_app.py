import importlib
import io
from dataclasses import asdict

import pytest
from PIL import Image

from hsla_proxy.app import resolve_center, resolve_source_url
from hsla_proxy.config import SETTINGS
from hsla_proxy.infrastructure import cache as cache_module
from hsla_proxy.infrastructure.network import SourceFetchError

# The package re-exports the Flask object as ``hsla_proxy.app``; patch the module.
app_module = importlib.import_module("hsla_proxy.app")


class FakeFetcher:
    def __init__(self, source=None, stencil=None, error=None):
        self.source = source
        self.stencil = stencil
        self.error = error
        self.source_urls = []

    def fetch_source(self, source_url=None):
        self.source_urls.append(source_url)
        if self.error:
            raise self.error
        return self.source

    def fetch_stencil(self, stencil_url=None):
        return self.stencil


@pytest.fixture
def client(monkeypatch):
    snapshot = asdict(SETTINGS)
    cache_module.CACHE.clear()
    monkeypatch.setattr(cache_module, "_last_good_png", b"")
    yield app_module.app.test_client()
    for name, value in snapshot.items():
        setattr(SETTINGS, name, value)
    cache_module.CACHE.clear()


def use_fetcher(monkeypatch, fetcher):
    monkeypatch.setattr(app_module, "FETCHER", fetcher)
    return fetcher


def decode(response) -> Image.Image:
    assert response.mimetype == "image/png"
    return Image.open(io.BytesIO(response.data))


def test_resolve_source_url_defaults_to_settings() -> None:
    assert resolve_source_url({}) == SETTINGS.source_url


def test_resolve_source_url_accepts_direct_override() -> None:
    override = "http://example.com/image.png"
    assert resolve_source_url({"source_url": override}) == override


def test_resolve_source_url_builds_from_base_and_path() -> None:
    args = {"source_base": "http://foo:1234", "source_path": "abc/def.png"}

    assert resolve_source_url(args) == "http://foo:1234/abc/def.png"


def test_resolve_source_url_handles_slashes_gracefully() -> None:
    args = {"source_base": "http://foo:1234/", "source_path": "/abc/def.png"}

    assert resolve_source_url(args) == "http://foo:1234/abc/def.png"


def test_resolve_center_defaults_and_overrides() -> None:
    assert resolve_center({}) == SETTINGS.spotlight_center
    assert resolve_center({"center_x": "-5", "center_y": "7"}) == (-5, 7)


def test_resolve_center_rejects_non_integers() -> None:
    with pytest.raises(ValueError):
        resolve_center({"center_x": "left"})


def test_transform_grayscale_returns_gray_png(client, monkeypatch):
    fetcher = use_fetcher(
        monkeypatch, FakeFetcher(source=Image.new("RGB", (3, 3), color=(220, 40, 40)))
    )

    response = client.get("/transform/grayscale?source_url=http://example.com/a.png")

    assert response.status_code == 200
    r, g, b, _ = decode(response).getpixel((1, 1))
    assert r == g == b
    assert fetcher.source_urls == ["http://example.com/a.png"]


def test_transform_results_are_cached(client, monkeypatch):
    fetcher = use_fetcher(monkeypatch, FakeFetcher(source=Image.new("RGB", (2, 2))))

    first = client.get("/transform/illinify")
    second = client.get("/transform/illinify")

    assert first.status_code == second.status_code == 200
    assert first.data == second.data
    assert len(fetcher.source_urls) == 1


def test_transform_spotlight_honours_center(client, monkeypatch):
    use_fetcher(
        monkeypatch, FakeFetcher(source=Image.new("RGB", (3, 1), color=(200, 200, 200)))
    )

    response = client.get("/transform/spotlight?center_x=0&center_y=0")

    out = decode(response)
    assert out.getpixel((0, 0))[0] == 200
    assert out.getpixel((2, 0))[0] < 200


def test_transform_unknown_name_is_bad_request(client, monkeypatch):
    use_fetcher(monkeypatch, FakeFetcher(source=Image.new("RGB", (2, 2))))

    response = client.get("/transform/sepia")

    assert response.status_code == 400


def test_transform_bad_center_is_bad_request(client, monkeypatch):
    use_fetcher(monkeypatch, FakeFetcher(source=Image.new("RGB", (2, 2))))

    response = client.get("/transform/spotlight?center_x=middle")

    assert response.status_code == 400


def test_watermark_size_mismatch_is_bad_request(client, monkeypatch):
    use_fetcher(
        monkeypatch,
        FakeFetcher(
            source=Image.new("RGB", (4, 4)),
            stencil=Image.new("RGB", (2, 2), color=(255, 255, 255)),
        ),
    )

    response = client.get("/transform/watermark")

    assert response.status_code == 400
    assert b"Stencil" in response.data


def test_source_failure_without_fallback_is_bad_gateway(client, monkeypatch):
    use_fetcher(monkeypatch, FakeFetcher(error=SourceFetchError("down")))

    response = client.get("/transform/grayscale")

    assert response.status_code == 502


def test_source_failure_serves_last_good_png(client, monkeypatch):
    use_fetcher(monkeypatch, FakeFetcher(source=Image.new("RGB", (2, 2))))
    good = client.get("/transform/grayscale")
    use_fetcher(monkeypatch, FakeFetcher(error=SourceFetchError("down")))

    response = client.get("/transform/illinify")

    assert response.status_code == 200
    assert response.data == good.data


def test_raw_returns_source_png(client, monkeypatch):
    use_fetcher(monkeypatch, FakeFetcher(source=Image.new("RGB", (5, 4))))

    response = client.get("/raw")

    assert response.status_code == 200
    assert decode(response).size == (5, 4)


def test_health_lists_transforms(client):
    payload = client.get("/health").get_json()

    assert payload["ok"] is True
    assert payload["transforms"] == ["grayscale", "illinify", "spotlight", "watermark"]


def test_patch_settings_coerces_values(client):
    response = client.patch("/settings", json={"spotlight_x": "12", "cache_ttl": 3})

    assert response.status_code == 200
    body = response.get_json()
    assert body["updated"] == {"spotlight_x": 12, "cache_ttl": 3.0}
    assert SETTINGS.spotlight_x == 12


def test_patch_settings_reports_errors(client):
    response = client.patch("/settings", json={"port": "abc", "colour": "red"})

    assert response.status_code == 400
    errors = response.get_json()["errors"]
    assert set(errors) == {"port", "colour"}


def test_index_lists_endpoints(client):
    response = client.get("/")

    assert response.status_code == 200
    assert b"/transform/illinify" in response.data


def test_resolve_center_rejects_out_of_range_values() -> None:
    with pytest.raises(ValueError):
        resolve_center({"center_x": "1" + "0" * 200, "center_y": "0"})
    with pytest.raises(ValueError):
        resolve_center({"center_x": "0", "center_y": str(-(2**31) - 1)})
    assert resolve_center({"center_x": str(2**31 - 1), "center_y": "0"}) == (2**31 - 1, 0)


def test_transform_huge_center_is_bad_request(client, monkeypatch):
    use_fetcher(monkeypatch, FakeFetcher(source=Image.new("RGB", (2, 2))))

    response = client.get("/transform/spotlight?center_x=1" + "0" * 200)

    assert response.status_code == 400


def test_raw_invalid_source_base_is_bad_request(client, monkeypatch):
    fetcher = use_fetcher(monkeypatch, FakeFetcher(source=Image.new("RGB", (2, 2))))

    response = client.get("/raw?source_base=not-a-valid-base")

    assert response.status_code == 400
    assert fetcher.source_urls == []
