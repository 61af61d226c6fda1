"""Keywords Everywhere client -- batched search volume / CPC / competition lookups."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

import httpx

from search_detective.exceptions import (
    MissingCredentialError,
    ProviderError,
    SuspiciousDataError,
)
from search_detective.modules.keyword_research.normalizer import decode_volume
from search_detective.modules.keyword_research.records import CredentialCheck
from search_detective.utils.helpers import mask_secret

logger = logging.getLogger(__name__)

KWE_BASE_URL = "https://api.keywordseverywhere.com/v1"
KEYWORD_DATA_ENDPOINT = "get_keyword_data"

DEFAULT_BATCH_SIZE = 250
DEFAULT_BATCH_DELAY = 0.5
DEFAULT_SUSPICIOUS_VOLUME = 5000
CREDENTIAL_PROBE_KEYWORD = "hvac repair"

SleepFunc = Callable[[float], Awaitable[Any]]


class KeywordsEverywhereClient:
    """Fetch keyword metrics in fixed-size, paced batches.

    Batches are sent one at a time in order.  Any non-success response
    aborts the whole fetch, and so does an implausible volume on the very
    first record returned.

    Usage::

        client = KeywordsEverywhereClient(batch_size=250, batch_delay=0.5)
        raw = await client.fetch(["AC repair Boise", "Boise AC repair"], api_key)
        check = await client.test_credential(api_key)
    """

    def __init__(
        self,
        base_url: str = KWE_BASE_URL,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY,
        suspicious_volume: int = DEFAULT_SUSPICIOUS_VOLUME,
        country: str = "US",
        currency: str = "USD",
        data_source: str = "gkp",
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if batch_delay < 0:
            raise ValueError(f"batch_delay must not be negative, got {batch_delay}")
        self._base_url = base_url.rstrip("/")
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._suspicious_volume = suspicious_volume
        self._country = country
        self._currency = currency
        self._data_source = data_source
        self._timeout = timeout
        self._http_client = http_client
        self._sleep = sleep or asyncio.sleep

    @property
    def batch_size(self) -> int:
        return self._batch_size

    # ------------------------------------------------------------------
    # fetch
    # ------------------------------------------------------------------

    async def fetch(self, phrases: Sequence[str], credential: str) -> dict[str, dict]:
        """Return a ``keyword -> raw record`` map for every phrase the provider knew.

        Phrases the provider stays silent about are absent from the map.
        Records for keys that were never requested are kept as-is.

        Raises:
            MissingCredentialError: empty credential.
            ProviderError: any batch got a non-success response.
            SuspiciousDataError: the first record's volume exceeds the
                configured threshold.
        """
        if not credential or not credential.strip():
            raise MissingCredentialError("Keywords Everywhere API key not provided")

        batches = [
            list(phrases[i : i + self._batch_size])
            for i in range(0, len(phrases), self._batch_size)
        ]
        logger.info(
            "Fetching metrics for %d phrases in %d batch(es) of up to %d (key %s)",
            len(phrases), len(batches), self._batch_size, mask_secret(credential),
        )

        results: dict[str, dict] = {}
        if not batches:
            return results

        if self._http_client is not None:
            await self._fetch_batches(self._http_client, batches, credential, results)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                await self._fetch_batches(client, batches, credential, results)

        logger.info("Provider returned data for %d of %d phrases", len(results), len(phrases))
        return results

    async def _fetch_batches(
        self,
        client: httpx.AsyncClient,
        batches: list[list[str]],
        credential: str,
        results: dict[str, dict],
    ) -> None:
        total = len(batches)
        for number, batch in enumerate(batches, start=1):
            logger.info("Processing batch %d of %d (%d keywords)", number, total, len(batch))
            payload = await self._post_keywords(client, batch, credential)
            records = _extract_records(payload)

            if number == 1:
                logger.info("Credits remaining: %s", payload.get("credits_remaining"))
                self._check_plausible(payload.get("data"))

            with_volume = 0
            for record in records:
                keyword = record.get("keyword")
                if not isinstance(keyword, str):
                    logger.debug("Skipping provider record without keyword: %r", record)
                    continue
                results[keyword] = record
                if decode_volume(record) > 0:
                    with_volume += 1
            logger.debug(
                "Batch %d summary: %d with volume, %d zero volume",
                number, with_volume, len(records) - with_volume,
            )

            if number < total:
                await self._sleep(self._batch_delay)

    def _check_plausible(self, data: Any) -> None:
        """Abort when the first raw record carries an implausibly high volume.

        Only the provider's very first item counts, even when it is
        malformed; later records are never checked.
        """
        if not isinstance(data, list) or not data:
            return
        first = data[0]
        if not isinstance(first, dict):
            return
        volume = decode_volume(first)
        if volume > self._suspicious_volume:
            keyword = str(first.get("keyword", ""))
            logger.error(
                "Implausible volume %d for %r (threshold %d); aborting fetch",
                volume, keyword, self._suspicious_volume,
            )
            raise SuspiciousDataError(keyword, volume, self._suspicious_volume)

    # ------------------------------------------------------------------
    # test_credential
    # ------------------------------------------------------------------

    async def test_credential(self, credential: str) -> CredentialCheck:
        """Probe the provider with a single keyword to validate an API key."""
        if not credential or not credential.strip():
            return CredentialCheck(valid=False, message="No API key provided")

        try:
            if self._http_client is not None:
                payload = await self._post_keywords(
                    self._http_client, [CREDENTIAL_PROBE_KEYWORD], credential,
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    payload = await self._post_keywords(
                        client, [CREDENTIAL_PROBE_KEYWORD], credential,
                    )
        except ProviderError as exc:
            logger.warning("API key test failed (%s): %s", exc.reason, exc.message)
            return CredentialCheck(
                valid=False,
                message=_credential_failure_message(exc),
                details={"reason": exc.reason, "status_code": exc.status_code},
            )

        credits = payload.get("credits_remaining")
        if isinstance(credits, bool) or not isinstance(credits, (int, float)):
            credits = None
        return CredentialCheck(
            valid=True,
            message="API key is valid",
            credits_remaining=credits,
        )

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _post_keywords(
        self,
        client: httpx.AsyncClient,
        keywords: list[str],
        credential: str,
    ) -> dict:
        """POST one keyword batch and return the decoded JSON body."""
        url = f"{self._base_url}/{KEYWORD_DATA_ENDPOINT}"
        body = {
            "country": self._country,
            "currency": self._currency,
            "dataSource": self._data_source,
            "kw": keywords,
        }
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        try:
            response = await client.post(url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderError(f"Request to Keywords Everywhere failed: {exc}") from exc

        if not response.is_success:
            raise ProviderError.from_status(response.status_code, _error_message(response))

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(
                "Keywords Everywhere returned a non-JSON body",
                status_code=response.status_code,
            ) from exc
        if not isinstance(payload, dict):
            raise ProviderError(
                "Unexpected Keywords Everywhere response structure",
                status_code=response.status_code,
            )
        return payload


def _extract_records(payload: dict) -> list[dict]:
    data = payload.get("data")
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


def _error_message(response: httpx.Response) -> str:
    """Best-effort message from an error response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if body.get(key):
                return str(body[key])
    text = response.text.strip()
    if text:
        return text[:200]
    return response.reason_phrase or f"HTTP {response.status_code}"


def _credential_failure_message(exc: ProviderError) -> str:
    if exc.reason == ProviderError.UNAUTHORIZED:
        return "Invalid API key"
    if exc.reason == ProviderError.INSUFFICIENT_CREDIT:
        return "API key has insufficient credits or access"
    if exc.reason == ProviderError.RATE_LIMITED:
        return "Rate limited by Keywords Everywhere; try again shortly"
    return "API test failed: " + exc.message
