"""
TrackShare backend

This FastAPI application accepts a link to a song on one music streaming
service and resolves it into a canonical track (title, artist, artwork) plus
links to the same track on Spotify, Apple Music and YouTube Music. Each
resolution also issues a short share URL (``/t/{shortId}``) that renders a
small page with "Play on" / "Search on" buttons for every platform.

Endpoints:

* ``POST /api/resolve`` – body ``{"url": "..."}``; returns the resolved track
  and a fresh short URL.
* ``GET /api/share/{short_id}`` – JSON for a previously issued short id.
* ``GET /t/{short_id}`` – HTML share page.
* ``GET /health`` – liveness probe.

Configuration is read from the environment, see :mod:`config`.

To run the development server locally:

    uvicorn main:app --reload --port 8000
"""

from __future__ import annotations

from html import escape
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from loguru import logger
from pydantic import BaseModel

from config import Settings
from errors import RegistryMissError, UnsupportedLinkError
from http_fetcher import HttpFetcher
from logging_setup import configure_logging
from models import ResolvedTrack
from providers import build_providers
from resolver import TrackResolver
from share_registry import ShareRegistry

UNSUPPORTED_MESSAGE = "Unsupported URL format. Please share a Spotify, Apple Music, or YouTube Music link."


class ResolveRequest(BaseModel):
    url: Optional[str] = None


def build_resolver(settings: Settings) -> TrackResolver:
    fetcher = HttpFetcher(timeout=settings.http_timeout)
    return TrackResolver(
        providers=build_providers(settings, fetcher),
        registry=ShareRegistry(id_length=settings.short_id_length),
        public_base_url=settings.public_base_url,
    )


def create_app(settings: Optional[Settings] = None, resolver: Optional[TrackResolver] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    resolver = resolver or build_resolver(settings)

    app = FastAPI(title="TrackShare")
    app.state.resolver = resolver

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        if request.url.path != "/api/resolve":
            return await request_validation_exception_handler(request, exc)
        logger.info(f"Rejected resolve body: {exc.errors()}")
        if any("url" in error.get("loc", ()) for error in exc.errors()):
            message = "URL must be a string"
        else:
            message = "Invalid request body"
        return JSONResponse({"success": False, "error": message}, status_code=400)

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "service": "trackshare"}

    @app.get("/")
    def index():
        return {
            "message": "TrackShare API is running",
            "endpoints": ["/health", "/api/resolve", "/api/share/{short_id}", "/t/{short_id}"],
            "docs": "/docs",
        }

    @app.post("/api/resolve")
    def resolve_track(payload: ResolveRequest, request: Request) -> JSONResponse:
        """Resolve a pasted track link.

        Blocking provider calls run in FastAPI's threadpool because this is a
        plain ``def`` endpoint.
        """
        url = (payload.url or "").strip()
        if not url:
            return JSONResponse({"success": False, "error": "URL is required"}, status_code=400)

        logger.info(f"Resolving track: {url}")
        try:
            shared = request.app.state.resolver.resolve(url)
        except UnsupportedLinkError:
            logger.info(f"Unsupported link: {url}")
            return JSONResponse({"success": False, "error": UNSUPPORTED_MESSAGE}, status_code=400)
        except Exception:
            logger.exception(f"Error resolving track {url}")
            return JSONResponse({"success": False, "error": "Internal server error"}, status_code=500)

        return JSONResponse({"success": True, "track": shared.to_dict()})

    @app.get("/api/share/{short_id}")
    def share_data(short_id: str, request: Request) -> JSONResponse:
        try:
            track = request.app.state.resolver.get_shared_track(short_id)
        except RegistryMissError:
            return JSONResponse({"success": False, "error": "Track not found"}, status_code=404)
        return JSONResponse({"success": True, "track": track.to_dict()})

    @app.get("/t/{short_id}", response_class=HTMLResponse)
    def share_page(short_id: str, request: Request) -> HTMLResponse:
        try:
            track = request.app.state.resolver.get_shared_track(short_id)
        except RegistryMissError:
            return HTMLResponse(content=build_not_found_html(), status_code=404)
        return HTMLResponse(content=build_share_html(track), status_code=200)

    return app


def build_not_found_html(message: str = "This track link is invalid or has expired.") -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
      <title>Track Not Found - TrackShare</title>
      <meta name="viewport" content="width=device-width, initial-scale=1">
    </head>
    <body style="font-family:sans-serif;text-align:center;padding:50px;">
      <h1>Track Not Found</h1>
      <p>{escape(message)}</p>
    </body>
    </html>
    """


def build_share_html(track: ResolvedTrack) -> str:
    title = escape(track.title)
    artist = escape(track.artist)
    artwork = escape(track.artwork_url or "")

    buttons = ""
    for link in track.providers:
        href = link.deep_link if link.is_available else link.fallback_search_link
        if not href:
            continue
        label = "Play on" if link.is_available else "Search on"
        css = escape(link.name) + ("" if link.is_available else " unavailable")
        buttons += (
            f'<li><a class="provider-btn {css}" href="{escape(href)}" target="_blank" '
            f'rel="noopener noreferrer">{label} {escape(link.display_name)}</a></li>'
        )
    if not buttons:
        buttons = "<li>We could not find direct links for this track yet.</li>"

    artwork_html = f'<img src="{artwork}" alt="Track artwork" width="200" height="200">' if artwork else ""
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
      <title>{title} - {artist} | TrackShare</title>
      <meta name="viewport" content="width=device-width, initial-scale=1">
      <meta property="og:title" content="{title} - {artist}">
      <meta property="og:description" content="Listen to {title} by {artist} on your preferred music platform">
      <meta property="og:image" content="{artwork}">
    </head>
    <body style="font-family:sans-serif;text-align:center;padding:2em;">
      {artwork_html}
      <h1>{title}</h1>
      <p>{artist}</p>
      <ul style="list-style:none;padding:0;">{buttons}</ul>
      <p style="color:#999;">Powered by TrackShare</p>
    </body>
    </html>
    """


app = create_app()
