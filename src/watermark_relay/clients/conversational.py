from __future__ import annotations

import logging
from abc import abstractmethod

import httpx

from ..errors import CapabilityUnsupportedError
from ..types import ImagePayload
from .base import ProviderClient, error_message

logger = logging.getLogger(__name__)

_NEXT_CANDIDATE_STATUSES = {400, 404, 429}

PROMPT = (
    "You are an expert image editor. Remove any watermarks, logos, text overlays, or date stamps"
    " from this image. Reconstruct the background seamlessly where the watermark was removed."
    " Return ONLY the processed image."
)


class ModelUnavailable(Exception):
    """Raised by ``_ask`` when a candidate model cannot be used and the next should be tried."""


class ConversationalClient(ProviderClient):
    """
    Base for vision models reached through a chat-style API.

    These backends answer with text, never with edited image bytes, so a dispatch
    always ends in ``CapabilityUnsupportedError``. Candidate models are tried in
    order until one produces an answer, which is attached as diagnostic detail.
    """

    @abstractmethod
    def candidate_models(self, model: str | None) -> list[str]:
        """Ordered model names to try for this call."""

    @abstractmethod
    async def _ask(
        self, session: httpx.AsyncClient, payload: ImagePayload, credential: str, model: str
    ) -> str | None:
        """Send the edit prompt to ``model`` and return its textual answer, if any."""

    def _model_unavailable(self, response: httpx.Response) -> bool:
        """Failures tied to one model move on to the next candidate; 401/403 still fail the call."""
        status = response.status_code
        return status in _NEXT_CANDIDATE_STATUSES or status >= 500

    def _check(self, response: httpx.Response, model: str) -> None:
        if self._model_unavailable(response):
            raise ModelUnavailable(f"{model}: {error_message(response)}")
        self._raise_for_status(response, f"query {self.name} model {model}")

    async def _process(self, payload: ImagePayload, credential: str, model: str | None) -> ImagePayload:
        last_model: str | None = None
        last_text: str | None = None
        async with self._session() as session:
            for candidate in self.candidate_models(model):
                last_model = candidate
                try:
                    text = await self._ask(session, payload, credential, candidate)
                except ModelUnavailable as exc:
                    logger.info("%s model %s unavailable, trying next candidate", self.name, candidate)
                    last_text = str(exc)
                    continue
                if text:
                    raise CapabilityUnsupportedError(self.name, candidate, text)
                logger.info("%s model %s returned no text", self.name, candidate)
        raise CapabilityUnsupportedError(self.name, last_model, last_text)
