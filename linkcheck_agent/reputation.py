"""
URL reputation lookups against VirusTotal.
Submits a canonical host and reduces the provider's answer to one of four outcomes.
"""
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from .config import DEFAULT_VT_BASE_URL
from .models import ClassificationStats

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    CLASSIFIED = "classified"
    ERROR = "error"


@dataclass(frozen=True)
class ReputationResult:
    outcome: Outcome
    stats: ClassificationStats | None = None

    @classmethod
    def classified(cls, stats: ClassificationStats) -> ReputationResult:
        return cls(Outcome.CLASSIFIED, stats)


NOT_FOUND = ReputationResult(Outcome.NOT_FOUND)
RATE_LIMITED = ReputationResult(Outcome.RATE_LIMITED)
TRANSPORT_ERROR = ReputationResult(Outcome.ERROR)


class ReputationClient(Protocol):
    async def classify(self, url: str) -> ReputationResult: ...


def encode_url_id(url: str) -> str:
    """URL-safe base64 of the host without ``=`` padding, the provider's URL identifier."""
    return base64.urlsafe_b64encode(url.encode("utf-8")).decode("ascii").rstrip("=")


def _extract_stats(payload: Any) -> ClassificationStats | None:
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    attributes = data.get("attributes") if isinstance(data, dict) else None
    stats = attributes.get("last_analysis_stats") if isinstance(attributes, dict) else None
    if not isinstance(stats, dict):
        return None
    try:
        return ClassificationStats.model_validate(stats)
    except ValidationError:
        return None


def interpret_response(res: httpx.Response) -> ReputationResult:
    if res.status_code == 404:
        return NOT_FOUND
    if res.status_code == 429:
        return RATE_LIMITED
    if res.status_code != 200:
        return TRANSPORT_ERROR

    try:
        payload = res.json()
    except ValueError:
        return TRANSPORT_ERROR

    stats = _extract_stats(payload)
    if stats is None:
        return TRANSPORT_ERROR
    return ReputationResult.classified(stats)


class VirusTotalClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_VT_BASE_URL,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def classify(self, url: str) -> ReputationResult:
        try:
            res = await self._client.get(
                f"{self.base_url}/{encode_url_id(url)}",
                headers={
                    "x-apikey": self.api_key,
                    "content-type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            logger.warning("Reputation lookup failed for %s: %s", url, e)
            return TRANSPORT_ERROR

        result = interpret_response(res)
        if result.outcome is Outcome.NOT_FOUND:
            logger.info("URL not valid or doesn't exist: %s", url)
        elif result.outcome is Outcome.RATE_LIMITED:
            logger.info("Ran out of reputation quota while checking %s", url)
        elif result.outcome is Outcome.ERROR:
            logger.warning("Unexpected reputation response for %s (HTTP %s)", url, res.status_code)
        else:
            logger.info("Made reputation call for: %s", url)
        return result
