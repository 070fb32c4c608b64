"""Minimal JSON-over-HTTP helper for the REST providers.

Uses urllib.request (stdlib) like the rest of the REST integrations; the
blocking call runs in a worker thread so the event loop is never stalled,
and every request carries the configured timeout.
"""

import asyncio
import json
import urllib.error
import urllib.request

from fxrates.exceptions import ProviderError


def _get_json_blocking(url: str, headers: dict[str, str], timeout: float) -> object:
    req = urllib.request.Request(url, headers=headers)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            body = resp.read()
    except urllib.error.HTTPError as e:
        raise ProviderError(f"HTTP {e.code} from upstream") from e
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        raise ProviderError(f"transport error: {e}") from e

    try:
        return json.loads(body)
    except ValueError as e:
        raise ProviderError("upstream returned invalid JSON") from e


async def fetch_json(
    url: str,
    *,
    timeout: float,
    headers: dict[str, str] | None = None,
    user_agent: str = "fxrates/0.1",
) -> object:
    """GET url and decode the JSON body.

    Raises ProviderError on transport failure, non-2xx status, timeout or
    undecodable body.
    """
    all_headers = {"Accept": "application/json", "User-Agent": user_agent}
    if headers:
        all_headers.update(headers)
    return await asyncio.to_thread(_get_json_blocking, url, all_headers, timeout)
