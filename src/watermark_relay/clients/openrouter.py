from __future__ import annotations

import httpx
from pydantic import BaseModel

from ..codec import encode
from ..config import OpenRouterSettings
from ..types import ImagePayload
from .conversational import PROMPT, ConversationalClient


class _Message(BaseModel):
    content: str | None = None


class _Choice(BaseModel):
    message: _Message | None = None


class _Completion(BaseModel):
    choices: list[_Choice] = []


class OpenRouterClient(ConversationalClient):
    """Client for vision models served through OpenRouter chat completions."""

    name = "openrouter"

    def __init__(self, settings: OpenRouterSettings | None = None) -> None:
        self._settings = settings or OpenRouterSettings()
        self.timeout_seconds = self._settings.timeout_seconds

    def candidate_models(self, model: str | None) -> list[str]:
        return [model or self._settings.default_model]

    async def _ask(
        self, session: httpx.AsyncClient, payload: ImagePayload, credential: str, model: str
    ) -> str | None:
        response = await session.post(
            self._settings.api_url,
            headers={
                "Authorization": f"Bearer {credential}",
                "HTTP-Referer": self._settings.referer,
                "X-Title": self._settings.title,
            },
            json={
                "model": model,
                "messages": [
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": PROMPT},
                            {
                                "type": "image_url",
                                "image_url": {"url": encode(payload.data, payload.content_type)},
                            },
                        ],
                    }
                ],
                "max_tokens": self._settings.max_tokens,
            },
        )
        self._check(response, model)
        completion = self._parse(_Completion, response)
        if not completion.choices or completion.choices[0].message is None:
            return None
        return completion.choices[0].message.content
