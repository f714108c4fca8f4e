from __future__ import annotations

from dataclasses import asdict, fields
from html import escape
from pathlib import Path
from string import Template
from typing import Mapping, Optional, Tuple

from flask import Flask, jsonify, request

from .config import SETTINGS, configure_logging
from .imaging.pipeline import TRANSFORMS, parse_chain, render
from .infrastructure.cache import CACHE, last_good_png, remember_last_good
from .infrastructure.network import FETCHER, SourceFetchError, join_base_and_path
from .infrastructure.responses import encode_png, send_png, send_png_bytes

APP_VERSION = "1.0.0"

# Spotlight centers are signed 32-bit coordinates.
CENTER_MIN = -(2**31)
CENTER_MAX = 2**31 - 1

ENDPOINTS = (
    ("Grayscale", "/transform/grayscale", "Saturation dropped to zero"),
    ("Spotlight", "/transform/spotlight", "Radial lightness falloff"),
    ("Illinify", "/transform/illinify", "Orange and blue hues only"),
    ("Watermark", "/transform/watermark", "Brighten under white stencil pixels"),
    ("Illini Spotlight", "/transform/illinify,spotlight", "Illinify, then spotlight"),
    ("Raw Source", "/raw", "Original upstream image"),
)


def resolve_source_url(args: Mapping[str, str]) -> str:
    direct = args.get("source_url")
    if direct:
        return direct
    base = args.get("source_base")
    if base:
        return join_base_and_path(base, args.get("source_path"))
    return SETTINGS.source_url


def resolve_center(args: Mapping[str, str]) -> Tuple[int, int]:
    default_x, default_y = SETTINGS.spotlight_center
    try:
        center_x = int(args.get("center_x", default_x))
        center_y = int(args.get("center_y", default_y))
    except (TypeError, ValueError):
        raise ValueError("center_x and center_y must be integers") from None
    for value in (center_x, center_y):
        if not CENTER_MIN <= value <= CENTER_MAX:
            raise ValueError(f"Spotlight center {value} outside [{CENTER_MIN}, {CENTER_MAX}]")
    return center_x, center_y


def _coerce(field_type, raw_value):
    if field_type is int:
        return int(raw_value)
    if field_type is float:
        return float(raw_value)
    return str(raw_value)


def create_app() -> Flask:
    logger = configure_logging()
    app = Flask(__name__)

    @app.route("/transform/<chain>")
    def transform(chain: str):
        try:
            names = parse_chain(chain)
            center = resolve_center(request.args)
            source_url = resolve_source_url(request.args)
        except ValueError as exc:
            return (f"Bad request: {exc}", 400)

        cache_key = request.full_path
        cached = CACHE.get(cache_key)
        if cached:
            return send_png_bytes(cached)

        try:
            src = FETCHER.fetch_source(source_url)
            stencil = None
            if "watermark" in names:
                stencil = FETCHER.fetch_stencil(request.args.get("stencil_url"))
            out = render(src, names, center=center, stencil=stencil)
        except ValueError as exc:
            logger.warning("Rejected %s: %s", chain, exc)
            return (f"Bad request: {exc}", 400)
        except SourceFetchError as exc:
            logger.error("Source error for %s: %s", chain, exc)
            fallback = last_good_png()
            if fallback:
                return send_png_bytes(fallback)
            return (f"Source Error: {exc}", 502)

        data = encode_png(out)
        remember_last_good(data)
        CACHE.put(cache_key, data)
        return send_png_bytes(data)

    @app.route("/raw")
    def raw():
        try:
            source_url = resolve_source_url(request.args)
        except ValueError as exc:
            return (f"Bad request: {exc}", 400)
        try:
            return send_png(FETCHER.fetch_source(source_url))
        except SourceFetchError as exc:
            logger.error("Raw fetch failed: %s", exc)
            return (str(exc), 502)

    @app.route("/health")
    def health():
        return jsonify(
            ok=True,
            version=APP_VERSION,
            transforms=sorted(TRANSFORMS),
            spotlight_center=list(SETTINGS.spotlight_center),
        )

    @app.route("/settings", methods=["GET", "PATCH"])
    def settings_view():
        if request.method == "GET":
            return jsonify(asdict(SETTINGS))

        payload = request.get_json(silent=True) or {}
        known = {field.name: field for field in fields(SETTINGS)}
        errors: dict[str, str] = {}
        applied: dict[str, object] = {}

        for name, raw_value in payload.items():
            field = known.get(name)
            if field is None:
                errors[name] = "Unknown setting"
                continue
            try:
                coerced = _coerce(field.type, raw_value)
            except (TypeError, ValueError):
                errors[name] = f"Expected {field.type.__name__}"
                continue

            if name == "log_level":
                coerced = str(coerced).upper()

            setattr(SETTINGS, name, coerced)
            applied[name] = coerced

        if applied:
            logger.info("Settings updated: %s", applied)
            CACHE.clear()

        status = 400 if errors else 200
        return (
            jsonify(updated=applied, errors=errors, settings=asdict(SETTINGS)),
            status,
        )

    @app.route("/")
    def index():
        endpoint_cards = "".join(
            f'<li><a href="{escape(href)}">{escape(name)}</a> '
            f'<span class="desc">{escape(desc)}</span></li>'
            for name, href, desc in ENDPOINTS
        )
        template_path = Path(__file__).parent / "templates" / "index.html"
        try:
            tmpl_str = template_path.read_text(encoding="utf-8")
        except OSError as exc:
            return f"Error loading template: {exc}", 500

        return Template(tmpl_str).substitute(
            APP_VERSION=APP_VERSION,
            endpoint_cards=endpoint_cards,
            source_url=escape(SETTINGS.source_url),
        )

    return app


# Module-level application for WSGI servers (``hsla_proxy.app:app``).
app = create_app()
application = app
