# icebreaker/services/ai_provider.py
import logging
from typing import Optional

import httpx
from openai import AsyncOpenAI, OpenAIError

from icebreaker.core.config import Settings
from icebreaker.core.errors import ProviderUnavailable

logger = logging.getLogger(__name__)


class LLM:
    async def chat(self, prompt: str) -> str:
        raise NotImplementedError

    async def aclose(self) -> None:
        pass


class OpenAILLM(LLM):
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        # one outbound call per analysis; no SDK-level retries
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )
        self.model = model

    async def chat(self, prompt: str) -> str:
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
        except OpenAIError as e:
            logger.error("OpenAI request failed: %s", e)
            raise ProviderUnavailable(f"OpenAI request failed: {e}") from e

        if not resp.choices or not resp.choices[0].message.content:
            raise ProviderUnavailable("OpenAI returned no message content")
        return resp.choices[0].message.content

    async def aclose(self) -> None:
        await self.client.close()


class OllamaLLM(LLM):
    def __init__(self, base_url: str = "http://localhost:11434", model: str = "llama3.1", timeout: float = 120.0):
        self.base = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    async def chat(self, prompt: str) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                r = await client.post(
                    f"{self.base}/api/generate",
                    json={"model": self.model, "prompt": prompt, "stream": False},
                )
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Ollama request failed: %s", e)
            raise ProviderUnavailable(f"Ollama request failed: {e}") from e

        text = data.get("response") if isinstance(data, dict) else None
        if not text:
            raise ProviderUnavailable("Ollama returned no response text")
        return text


def get_llm(settings: Settings) -> LLM:
    if settings.llm_provider == "ollama":
        return OllamaLLM(
            base_url=settings.ollama_base_url,
            model=settings.ollama_chat_model,
            timeout=settings.http_timeout,
        )
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; analysis requests will fail")
    return OpenAILLM(
        api_key=settings.openai_api_key,
        model=settings.openai_chat_model,
        base_url=settings.openai_base_url,
        timeout=settings.http_timeout,
    )
