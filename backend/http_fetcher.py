"""Single entry point for outbound HTTP calls made by the provider helpers."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import urlparse

import requests
from loguru import logger

from errors import HttpStatusError, ResponseFormatError, UpstreamUnavailableError

USER_AGENT = "trackshare/1.0 (+https://github.com/trackshare)"


class HttpFetcher:
    """Issue a request and decode the JSON answer.

    Every provider call goes through :meth:`fetch` so errors are classified the
    same way everywhere: transport problems raise
    :class:`UpstreamUnavailableError`, non-2xx answers raise
    :class:`HttpStatusError` and undecodable bodies raise
    :class:`ResponseFormatError`. An empty 2xx body decodes to ``None``.
    """

    def __init__(self, timeout: float = 10, session: Optional[requests.Session] = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)

    def fetch(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Optional[Union[str, bytes, Dict[str, Any]]] = None,
        params: Optional[Dict[str, Any]] = None,
        auth: Optional[Tuple[str, str]] = None,
    ) -> Any:
        parsed = urlparse(url)
        if not (parsed.scheme and parsed.netloc):
            raise ValueError(f"URL must be absolute: {url!r}")

        try:
            resp = self.session.request(
                method.upper(),
                url,
                headers=headers,
                data=body,
                params=params,
                auth=auth,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise UpstreamUnavailableError(f"Request to {url} failed: {exc}", url) from exc

        logger.debug(f"[http] {method.upper()} {resp.url} -> {resp.status_code}")
        text = resp.text or ""

        if resp.status_code < 200 or resp.status_code >= 300:
            raise HttpStatusError(url, resp.status_code, _decode_loose(text))

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except ValueError as exc:
            raise ResponseFormatError(url, str(exc)) from exc


def _decode_loose(text: str) -> Any:
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text
