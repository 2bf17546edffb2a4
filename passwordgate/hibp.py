from __future__ import annotations

import hashlib
import logging
import os
from typing import Awaitable, Callable, Optional

import httpx

from .coalesce import CoalescerRegistry

logger = logging.getLogger(__name__)

HIBP_API_URL = os.getenv("HIBP_API_URL", "https://api.pwnedpasswords.com/range/")
HIBP_TIMEOUT = float(os.getenv("HIBP_TIMEOUT", "5.0"))
HIBP_USER_AGENT = os.getenv("HIBP_USER_AGENT", "passwordgate")

BreachCheck = Callable[[str], Awaitable[bool]]


class BreachServiceError(Exception):
    """The breach database could not give an answer (network, HTTP status, bad body)."""


def sha1_hex(password: str) -> str:
    return hashlib.sha1(password.encode("utf-8")).hexdigest().upper()


def _suffix_count(body: str, suffix: str) -> int:
    for line in body.splitlines():
        line = line.strip()
        if not line:
            continue
        hash_suffix, sep, count = line.partition(":")
        if not sep:
            raise BreachServiceError(f"Unexpected line in range response: {line[:40]!r}")
        if hash_suffix.strip().upper() == suffix:
            try:
                return int(count.strip())
            except ValueError as exc:
                raise BreachServiceError(f"Bad count in range response: {count!r}") from exc
    return 0


async def check_breach(password: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    api_url: str = HIBP_API_URL,
    timeout: float = HIBP_TIMEOUT) -> bool:
    """
    k-anonymity range lookup against Have I Been Pwned.

    Only the first 5 hex chars of the SHA-1 leave the process. Responses are
    padded (`Add-Padding: true`); padding rows carry a count of 0 and never
    count as a hit.

    Returns True when the password appears in a breach.
    Raises BreachServiceError when the service cannot answer.
    """
    digest = sha1_hex(password)
    prefix, suffix = digest[:5], digest[5:]
    headers = {"User-Agent": HIBP_USER_AGENT, "Add-Padding": "true"}

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as own:
                response = await own.get(f"{api_url}{prefix}", headers=headers)
        else:
            response = await client.get(f"{api_url}{prefix}", headers=headers)
    except httpx.HTTPError as exc:
        logger.warning("breach lookup failed: %s", type(exc).__name__)
        raise BreachServiceError(f"HaveIBeenPwned request failed: {exc}") from exc

    if response.status_code != 200:
        logger.warning("breach lookup returned HTTP %d", response.status_code)
        raise BreachServiceError(
            f"HaveIBeenPwned returned status {response.status_code}: {response.text[:200]}"
        )

    return _suffix_count(response.text, suffix) > 0


class BreachChecker:
    """
    Owns the breach lookup and the coalescers wrapped around it.

    `await checker(password)` queries immediately; with `debounce_ms` the
    lookup goes through the coalescer registered for that delay, so bursts of
    calls (interactive typing) turn into one request.
    """

    def __init__(self, check: BreachCheck = check_breach) -> None:
        self.check = check
        self.coalescers = CoalescerRegistry(check)

    async def __call__(self, password: str, debounce_ms: Optional[float] = None) -> bool:
        if debounce_ms is None:
            return await self.check(password)
        return await self.coalescers.get(debounce_ms)(password)

    def reset(self) -> None:
        self.coalescers.reset()

    async def aclose(self) -> None:
        await self.coalescers.aclose()
