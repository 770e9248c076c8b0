"""Bright Data dataset client: trigger a collection job and poll its snapshot.

Usage:
    async with CollectionClient(api_token="...") as collector:
        job_id = await collector.submit([url_a, url_b])
        payload = await collector.poll_until_ready(job_id)
"""

import asyncio
import enum
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, Tuple

import httpx

from icebreaker.core.errors import (
    CollectionFailed,
    InvalidInput,
    JobTimeout,
    ProviderUnavailable,
)

logger = logging.getLogger(__name__)

PROFILES_PER_JOB = 2

_RUNNING_STATUSES = {"running", "building", "starting"}
_FAILED_STATUSES = {"failed", "error"}


class JobStatus(str, enum.Enum):
    RUNNING = "running"
    READY = "ready"
    FAILED = "failed"


def classify_snapshot(payload: Any) -> JobStatus:
    """Derive the job status from a snapshot response body.

    While a job is in progress the provider answers with a status object;
    once it finishes the body is the collected records themselves.
    """
    if isinstance(payload, dict):
        status = str(payload.get("status") or "").lower()
        if status in _RUNNING_STATUSES:
            return JobStatus.RUNNING
        if status in _FAILED_STATUSES:
            return JobStatus.FAILED
    return JobStatus.READY


class CollectionClient:
    """Async client for the Bright Data datasets v3 API.

    Args:
        api_token: Bearer token for the datasets API
        base_url: API root
        dataset_id: Dataset the trigger endpoint collects into
        poll_interval: Seconds between snapshot checks
        max_attempts: Snapshot checks before giving up
        timeout: Per-request transport timeout in seconds
        include_errors: Ask the provider to report per-URL errors in the data
        client: Pre-built httpx.AsyncClient (not closed by this client)
        sleep: Awaitable used between polls
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = "https://api.brightdata.com",
        dataset_id: str = "gd_l1viktl72bvl7bjuj0",
        poll_interval: float = 12.0,
        max_attempts: int = 10,
        timeout: float = 30.0,
        include_errors: bool = True,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.dataset_id = dataset_id
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.include_errors = include_errors
        self._sleep = sleep
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"Authorization": f"Bearer {api_token}"}

    async def __aenter__(self) -> "CollectionClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Any = None,
    ) -> Any:
        url = f"{self.base_url}{endpoint}"
        try:
            response = await self._client.request(
                method, url, params=params, json=json_data, headers=self._headers
            )
        except httpx.HTTPError as e:
            logger.error("Bright Data request to %s failed: %s", endpoint, e)
            raise ProviderUnavailable(f"Bright Data request failed: {e}") from e

        if response.status_code >= 400:
            body = response.text[:500]
            logger.error("Bright Data error: %d %s - %s", response.status_code, endpoint, body)
            raise ProviderUnavailable(
                f"Bright Data request failed with status {response.status_code}: {body}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderUnavailable(f"Invalid JSON from Bright Data: {e}") from e

    async def submit(self, urls: Sequence[str]) -> str:
        """Trigger a collection job for exactly two profile URLs.

        Returns:
            The provider's snapshot id, used as the job id from here on.

        Raises:
            InvalidInput: Not exactly two non-blank URLs
            ProviderUnavailable: Transport failure or no snapshot id returned
        """
        if (
            isinstance(urls, (str, bytes))
            or len(urls) != PROFILES_PER_JOB
            or not all(isinstance(u, str) and u.strip() for u in urls)
        ):
            raise InvalidInput("Invalid input. Please provide two valid LinkedIn profile URLs.")

        logger.info("Triggering Bright Data with URLs: %s", list(urls))
        params = {"dataset_id": self.dataset_id}
        if self.include_errors:
            params["include_errors"] = "true"

        data = await self._request(
            "POST",
            "/datasets/v3/trigger",
            params=params,
            json_data=[{"url": u} for u in urls],
        )

        snapshot_id = data.get("snapshot_id") if isinstance(data, dict) else None
        if not snapshot_id:
            logger.error("No snapshot_id in Bright Data response: %s", data)
            raise ProviderUnavailable("Snapshot ID not returned from Bright Data.")
        return str(snapshot_id)

    async def check(self, job_id: str) -> Tuple[JobStatus, Any]:
        """Fetch the snapshot once and classify it."""
        payload = await self._request(
            "GET", f"/datasets/v3/snapshot/{job_id}", params={"format": "json"}
        )
        return classify_snapshot(payload), payload

    async def poll_until_ready(self, job_id: str) -> Any:
        """Poll the snapshot at a fixed interval until it stops running.

        Transport errors are not retried; only a running status is.

        Raises:
            CollectionFailed: Provider reported the job as failed
            JobTimeout: Still running after max_attempts checks
            ProviderUnavailable: Any single check failed
        """
        for attempt in range(1, self.max_attempts + 1):
            status, payload = await self.check(job_id)

            if status is JobStatus.READY:
                logger.info("Snapshot %s ready after %d attempt(s)", job_id, attempt)
                return payload

            if status is JobStatus.FAILED:
                logger.error("Snapshot %s failed: %s", job_id, payload)
                message = payload.get("message") or payload.get("error") or "no details"
                raise CollectionFailed(f"Bright Data job {job_id} failed: {message}")

            if attempt < self.max_attempts:
                logger.info(
                    "Snapshot %s is still running... Attempt %d/%d. Retrying in %.0f seconds.",
                    job_id, attempt, self.max_attempts, self.poll_interval,
                )
                await self._sleep(self.poll_interval)

        logger.warning("Snapshot %s still running after %d attempts", job_id, self.max_attempts)
        raise JobTimeout(
            "Snapshot data not ready after multiple attempts. Please try again later."
        )
