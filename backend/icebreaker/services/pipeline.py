"""Pipeline orchestrator: trigger -> poll -> stage -> analyze -> cleanup.

Each request gets its own PipelineRun that walks a fixed state machine.
Once a snapshot is staged, analysis always removes it again, whether the
text-generation call succeeds or not.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from icebreaker.core.config import Settings
from icebreaker.core.errors import CorruptArtifact, PipelineError
from icebreaker.services.ai_provider import get_llm
from icebreaker.services.collector import CollectionClient, JobStatus
from icebreaker.services.insight import InsightClient
from icebreaker.services.staging import StagingStore, check_job_id, get_staging_store

logger = logging.getLogger(__name__)


class PipelineState(str, enum.Enum):
    IDLE = "idle"
    SUBMITTED = "submitted"
    POLLING = "polling"
    STAGED = "staged"
    ANALYZED = "analyzed"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS = {
    PipelineState.IDLE: {PipelineState.SUBMITTED},
    PipelineState.SUBMITTED: {PipelineState.POLLING},
    PipelineState.POLLING: {PipelineState.STAGED},
    PipelineState.STAGED: {PipelineState.ANALYZED},
    PipelineState.ANALYZED: {PipelineState.DONE},
    PipelineState.DONE: set(),
    PipelineState.FAILED: set(),
}

TERMINAL_STATES = {PipelineState.DONE, PipelineState.FAILED}


@dataclass
class PipelineRun:
    urls: List[str]
    state: PipelineState = PipelineState.IDLE
    job_id: Optional[str] = None
    insight: Optional[str] = None
    error: Optional[PipelineError] = None
    history: List[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error else None

    def advance(self, new_state: PipelineState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal pipeline transition {self.state.value} -> {new_state.value}")
        logger.debug("Pipeline %s: %s -> %s", self.job_id, self.state.value, new_state.value)
        self.state = new_state
        self.history.append(new_state)

    def fail(self, error: PipelineError) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Pipeline already finished in state {self.state.value}")
        self.error = error
        self.state = PipelineState.FAILED
        self.history.append(PipelineState.FAILED)


class Orchestrator:
    def __init__(self, collector: CollectionClient, staging: StagingStore, insight: InsightClient):
        self.collector = collector
        self.staging = staging
        self.insight = insight

    # staging may hit the disk; keep it off the event loop
    async def _stage(self, job_id: str, payload: Any) -> None:
        await asyncio.to_thread(self.staging.put, job_id, payload)

    async def _load_staged(self, job_id: str) -> Any:
        try:
            return await asyncio.to_thread(self.staging.get, job_id)
        except CorruptArtifact:
            await self._cleanup(job_id)
            raise

    async def _cleanup(self, job_id: str) -> None:
        await asyncio.to_thread(self.staging.delete, job_id)
        logger.info("Cleaned up staged snapshot %s", job_id)

    async def submit(self, urls: Sequence[str]) -> str:
        return await self.collector.submit(urls)

    async def check_status(self, job_id: str) -> Tuple[JobStatus, bool]:
        check_job_id(job_id)
        status, _ = await self.collector.check(job_id)
        staged = await asyncio.to_thread(self.staging.exists, job_id)
        return status, staged

    async def fetch_result(self, job_id: str) -> Any:
        check_job_id(job_id)
        payload = await self.collector.poll_until_ready(job_id)
        await self._stage(job_id, payload)
        return payload

    async def analyze(self, job_id: str) -> str:
        # raises ArtifactNotFound before any provider call
        payload = await self._load_staged(job_id)
        try:
            return await self.insight.analyze(payload)
        finally:
            await self._cleanup(job_id)

    async def run(self, urls: Sequence[str]) -> PipelineRun:
        """Drive one full pipeline run; failures end in FAILED, never raise."""
        run = PipelineRun(urls=list(urls))
        try:
            run.job_id = await self.submit(run.urls)
            run.advance(PipelineState.SUBMITTED)

            run.advance(PipelineState.POLLING)
            await self.fetch_result(run.job_id)
            run.advance(PipelineState.STAGED)

            payload = await self._load_staged(run.job_id)
            try:
                run.insight = await self.insight.analyze(payload)
                run.advance(PipelineState.ANALYZED)
            finally:
                await self._cleanup(run.job_id)
            run.advance(PipelineState.DONE)
        except PipelineError as e:
            logger.error("Pipeline for job %s failed in state %s: %s", run.job_id, run.state.value, e)
            run.fail(e)
        return run

    async def aclose(self) -> None:
        await self.collector.aclose()
        await self.insight.aclose()


def build_orchestrator(settings: Settings) -> Orchestrator:
    if not settings.brightdata_api_token:
        logger.warning("BRIGHTDATA_API_TOKEN is not set; collection requests will fail")

    collector = CollectionClient(
        api_token=settings.brightdata_api_token,
        base_url=settings.brightdata_base_url,
        dataset_id=settings.brightdata_dataset_id,
        poll_interval=settings.poll_interval,
        max_attempts=settings.poll_max_attempts,
        timeout=settings.http_timeout,
        include_errors=settings.brightdata_include_errors,
    )
    insight = InsightClient(get_llm(settings), max_payload_chars=settings.insight_max_payload_chars)
    return Orchestrator(collector, get_staging_store(settings), insight)
