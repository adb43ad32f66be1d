from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict

from ..codec import encode
from ..config import GeminiSettings
from ..types import ImagePayload
from .conversational import PROMPT, ConversationalClient


class _Part(BaseModel):
    model_config = ConfigDict(extra="allow")

    text: str | None = None


class _Content(BaseModel):
    parts: list[_Part] = []


class _Candidate(BaseModel):
    content: _Content | None = None


class _GenerateResponse(BaseModel):
    candidates: list[_Candidate] = []

    def text(self) -> str | None:
        chunks = [
            part.text
            for candidate in self.candidates
            if candidate.content is not None
            for part in candidate.content.parts
            if part.text
        ]
        return "\n".join(chunks) or None


class GeminiClient(ConversationalClient):
    """Client for Gemini ``generateContent``, walking a list of candidate models."""

    name = "gemini"

    def __init__(self, settings: GeminiSettings | None = None) -> None:
        self._settings = settings or GeminiSettings()
        self.timeout_seconds = self._settings.timeout_seconds

    def candidate_models(self, model: str | None) -> list[str]:
        candidates = list(self._settings.candidate_models)
        if model:
            candidates = [model] + [name for name in candidates if name != model]
        return candidates

    async def _ask(
        self, session: httpx.AsyncClient, payload: ImagePayload, credential: str, model: str
    ) -> str | None:
        response = await session.post(
            f"{self._settings.api_url.rstrip('/')}/{model}:generateContent",
            headers={"x-goog-api-key": credential},
            json={
                "contents": [
                    {
                        "parts": [
                            {"text": PROMPT},
                            {
                                "inline_data": {
                                    "mime_type": payload.content_type,
                                    "data": encode(payload.data, payload.content_type, data_uri=False),
                                }
                            },
                        ]
                    }
                ]
            },
        )
        self._check(response, model)
        return self._parse(_GenerateResponse, response).text()
