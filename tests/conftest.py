"""Shared fixtures: scripted provider stand-ins and a pre-wired orchestrator."""

import httpx
import pytest

from icebreaker.core.errors import PipelineError
from icebreaker.services.ai_provider import LLM
from icebreaker.services.collector import CollectionClient
from icebreaker.services.insight import InsightClient
from icebreaker.services.pipeline import Orchestrator
from icebreaker.services.staging import MemoryStagingStore

PROFILE_URLS = [
    "https://www.linkedin.com/in/alice-example",
    "https://www.linkedin.com/in/bob-example",
]

RUNNING = {"status": "running", "message": "Snapshot is not ready yet, try again in 10s"}


class FakeSleep:
    """Records requested sleeps instead of waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeLLM(LLM):
    """Text-generation stand-in that records every prompt it receives."""

    def __init__(self, reply: str = "Shared interest: X", error: PipelineError | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def chat(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeBrightData:
    """Scripted datasets API served through httpx.MockTransport.

    Snapshot responses are consumed in order; the last one repeats.
    """

    def __init__(self, snapshot_id: str = "job1", snapshots: list | None = None) -> None:
        self.snapshot_id = snapshot_id
        self.snapshots = list(snapshots if snapshots is not None else [{"a": 1}])
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/datasets/v3/trigger":
            return httpx.Response(200, json={"snapshot_id": self.snapshot_id})
        if request.url.path.startswith("/datasets/v3/snapshot/"):
            body = self.snapshots.pop(0) if len(self.snapshots) > 1 else self.snapshots[0]
            return httpx.Response(200, json=body)
        return httpx.Response(404, json={"error": "unknown endpoint"})

    @property
    def trigger_calls(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/datasets/v3/trigger"]

    @property
    def snapshot_calls(self) -> list[httpx.Request]:
        return [r for r in self.requests if "/snapshot/" in r.url.path]


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def staging() -> MemoryStagingStore:
    return MemoryStagingStore()


@pytest.fixture
def make_orchestrator(fake_sleep, fake_llm, staging):
    """Build an Orchestrator whose collector talks to a FakeBrightData."""

    def _make(provider: FakeBrightData, llm: LLM | None = None) -> Orchestrator:
        collector = CollectionClient(
            api_token="bd-test-token",
            poll_interval=12.0,
            max_attempts=10,
            client=httpx.AsyncClient(transport=httpx.MockTransport(provider)),
            sleep=fake_sleep,
        )
        return Orchestrator(collector, staging, InsightClient(llm or fake_llm))

    return _make
