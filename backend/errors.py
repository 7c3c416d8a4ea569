"""Exceptions raised by the track resolution engine."""

from __future__ import annotations

from typing import Any, Optional


class TrackShareError(Exception):
    """Base class for all TrackShare errors."""


class UnsupportedLinkError(TrackShareError):
    """The submitted URL does not point at a track we know how to parse."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Unsupported URL format: {url}")
        self.url = url


class UpstreamUnavailableError(TrackShareError):
    """A single provider call failed (transport, status or payload problem)."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class HttpStatusError(UpstreamUnavailableError):
    def __init__(self, url: str, status_code: int, body: Any = None) -> None:
        super().__init__(f"Request to {url} failed with status {status_code}", url)
        self.status_code = status_code
        self.body = body


class ResponseFormatError(UpstreamUnavailableError):
    def __init__(self, url: str, detail: str = "") -> None:
        message = f"Failed to parse response from {url}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, url)


class CredentialMissingError(TrackShareError):
    """A provider integration needs a credential that is not configured."""

    def __init__(self, provider: str, setting: str) -> None:
        super().__init__(f"{provider} is not configured ({setting} missing)")
        self.provider = provider
        self.setting = setting


class RegistryMissError(TrackShareError):
    """No track is registered under the given short id."""

    def __init__(self, short_id: str) -> None:
        super().__init__(f"Short id not found: {short_id}")
        self.short_id = short_id
