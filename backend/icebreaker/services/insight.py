import json
import logging
from typing import Any

from icebreaker.services.ai_provider import LLM

logger = logging.getLogger(__name__)

_INSTRUCTIONS = (
    "Compare the following LinkedIn profiles based on their education details, about, "
    "city, country and position, and provide the following insights:\n"
    "1. Common Ground and Points of Connection:\n"
    "   - Shared Interests\n"
    "   - Recent Activities\n"
    "   - Mutual Connections (if any)\n"
    "   - Similar Career Paths\n"
    "   - Relevant Details\n"
    "2. Suggest casual icebreaker questions that highlight their shared interests "
    "and recent activities.\n"
)

_OUTPUT_FORMAT = (
    "Please structure the output as:\n"
    "- Common Ground and Points of Connection\n"
    "- Icebreaker Questions"
)


class InsightClient:
    """Turns a collected snapshot into common-ground notes and icebreaker questions.

    max_payload_chars caps the serialized profile data by dropping trailing
    records of a list payload; 0 sends the payload untouched.
    """

    def __init__(self, llm: LLM, max_payload_chars: int = 0):
        self.llm = llm
        self.max_payload_chars = max_payload_chars

    def _serialize(self, payload: Any) -> str:
        profile_data = json.dumps(payload, indent=2, ensure_ascii=False)
        limit = self.max_payload_chars
        if not limit or len(profile_data) <= limit:
            return profile_data

        if not isinstance(payload, list):
            logger.warning(
                "Profile data is %d chars (limit %d) and cannot be trimmed",
                len(profile_data), limit,
            )
            return profile_data

        records = list(payload)
        while len(records) > 1 and len(profile_data) > limit:
            records.pop()
            profile_data = json.dumps(records, indent=2, ensure_ascii=False)
        logger.warning(
            "Profile data over %d chars, kept %d of %d records",
            limit, len(records), len(payload),
        )
        return profile_data

    def build_prompt(self, payload: Any) -> str:
        return (
            f"{_INSTRUCTIONS}\n"
            f"Profile Data: {self._serialize(payload)}\n\n"
            f"{_OUTPUT_FORMAT}"
        )

    async def analyze(self, payload: Any) -> str:
        prompt = self.build_prompt(payload)
        return await self.llm.chat(prompt)

    async def aclose(self) -> None:
        await self.llm.aclose()
