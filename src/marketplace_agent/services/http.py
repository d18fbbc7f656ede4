"""Shared HTTP helpers for outbound provider calls."""
from typing import Any, Dict, Mapping, Optional

import httpx

from marketplace_agent.core.errors import ProviderUnavailableError, UnparsableResponseError


def join_endpoint(base: str, path: str) -> str:
    """Join a base URL and a path with exactly one ``/`` between them."""
    base = (base or "").rstrip("/")
    path = (path or "").lstrip("/")
    if not path:
        return base
    if not base:
        return "/" + path
    return f"{base}/{path}"


def post_json(
    client: httpx.Client,
    provider: str,
    url: str,
    body: Mapping[str, Any],
    headers: Optional[Mapping[str, str]] = None,
    params: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """POST a JSON body and return the decoded JSON response.

    Transport errors, requests httpx cannot build (bad URL, non-ASCII header)
    and non-2xx statuses raise ProviderUnavailableError;
    a body that is not a JSON object raises UnparsableResponseError.
    """
    try:
        response = client.post(
            url,
            json=body,
            headers=dict(headers or {}),
            params=dict(params or {}),
            timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
        )
    except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as e:
        raise ProviderUnavailableError(provider, f"request failed: {e}") from e

    if not response.is_success:
        raise ProviderUnavailableError(
            provider, f"HTTP {response.status_code}", status_code=response.status_code
        )

    try:
        data = response.json()
    except ValueError as e:
        raise UnparsableResponseError(provider, f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise UnparsableResponseError(provider, "response is not a JSON object")
    return data
