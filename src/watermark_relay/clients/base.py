from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..codec import decode_response, ensure_image
from ..errors import (
    AuthenticationError,
    DispatchError,
    InvalidInputError,
    MissingCredentialError,
    TransportError,
)
from ..log import redact
from ..types import ImagePayload

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_INVALID_INPUT_STATUSES = {400, 413, 415, 422}


def error_message(response: httpx.Response) -> str:
    """Pull the most descriptive error text out of a provider error response."""
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text.strip() or response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            error = error.get("message")
        for candidate in (body.get("message"), body.get("msg"), body.get("detail"), error):
            if candidate:
                return str(candidate)
    return response.text.strip() or response.reason_phrase


class ProviderClient(ABC):
    """
    Translate the uniform dispatch contract into one provider's wire protocol.

    Instances hold only immutable settings, so one instance can serve any number
    of concurrent dispatch calls; each call opens its own HTTP client.
    """

    name: str = ""
    timeout_seconds: float = 120.0

    async def dispatch(
        self,
        payload: ImagePayload,
        credential: str,
        model: str | None = None,
    ) -> ImagePayload:
        """Return the processed image or raise a classified ``DispatchError``."""
        if not credential or not credential.strip():
            raise MissingCredentialError(self.name)

        logger.info("Dispatching %s image to %s (key %s)", payload.content_type, self.name, redact(credential))
        try:
            result = await self._process(payload, credential.strip(), model)
        except DispatchError as exc:
            if exc.provider is None:
                exc.provider = self.name
            logger.warning("%s failed with %s: %s", self.name, exc.kind.value, exc.detail)
            raise
        except httpx.HTTPError as exc:
            logger.warning("%s transport failure: %s", self.name, exc)
            raise TransportError(f"{self.name} request failed: {exc}", provider=self.name) from exc

        logger.info("%s returned %s (%d bytes)", self.name, result.content_type, len(result.data))
        return result

    @abstractmethod
    async def _process(self, payload: ImagePayload, credential: str, model: str | None) -> ImagePayload:
        """Run the provider protocol; ``credential`` is already validated."""

    # ------------------------------------------------------------------ #
    # Helpers shared by the HTTP adapters
    # ------------------------------------------------------------------ #
    def _session(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_seconds), follow_redirects=True)

    def _raise_for_status(self, response: httpx.Response, action: str) -> None:
        """Map a non-2xx response onto the error taxonomy."""
        if response.is_success:
            return
        message = error_message(response)
        status = response.status_code
        if status in (401, 403):
            raise AuthenticationError(self.name, message)
        if status in _INVALID_INPUT_STATUSES:
            raise InvalidInputError(f"{self.name} rejected the image ({status}): {message}", provider=self.name)
        raise TransportError(f"Failed to {action}: HTTP {status} {message}", provider=self.name)

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise TransportError(f"{self.name} returned malformed JSON: {exc}", provider=self.name) from exc

    def _parse(self, model: Type[ModelT], response: httpx.Response) -> ModelT:
        """Validate a JSON response body against ``model``."""
        data = self._json(response)
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise TransportError(
                f"Unexpected {self.name} response schema: {exc.error_count()} validation error(s)",
                provider=self.name,
            ) from exc

    async def _download(self, session: httpx.AsyncClient, url: str) -> ImagePayload:
        """Fetch a result URL without provider credentials and decode it."""
        response = await session.get(url)
        if not response.is_success:
            raise TransportError(
                f"Failed to download result image: HTTP {response.status_code}", provider=self.name
            )
        return ensure_image(decode_response(response), self.name)

