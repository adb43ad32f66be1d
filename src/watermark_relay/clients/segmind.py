from __future__ import annotations

import json
import logging
from typing import Any, Literal

import httpx
from pydantic import BaseModel

from ..codec import encode
from ..config import SegmindSettings
from ..errors import AuthenticationError, RemoteProcessingError, TransportError, UnsupportedInputError
from ..polling import JobPoller
from ..types import ImagePayload, Job, JobStatus
from .base import ProviderClient, error_message

logger = logging.getLogger(__name__)

_AUTH_MARKERS = ("api key", "api-key", "unauthorized", "unauthorised")
_DATA_URI_MARKERS = ("data url", "data uri", "data:image", "base64")

_STATUS_MAP = {
    "QUEUED": JobStatus.QUEUED,
    "PROCESSING": JobStatus.PROCESSING,
    "COMPLETED": JobStatus.SUCCEEDED,
    "FAILED": JobStatus.FAILED,
}


class _PollResponse(BaseModel):
    status: Literal["QUEUED", "PROCESSING", "COMPLETED", "FAILED"] | None = None
    poll_url: str | None = None
    request_id: str | None = None
    output: str | None = None
    error: str | None = None


def _image_url_from_output(output: str) -> str | None:
    """``output`` is itself JSON: a list whose first entry holds ``value.data``."""
    parsed: Any = json.loads(output)
    if isinstance(parsed, list) and parsed:
        value = parsed[0].get("value") if isinstance(parsed[0], dict) else None
        if isinstance(value, dict) and value.get("data"):
            return str(value["data"])
    return None


class SegmindClient(ProviderClient):
    """Client for the Segmind AI watermark remover workflow."""

    name = "segmind"

    def __init__(self, settings: SegmindSettings | None = None, poller: JobPoller | None = None) -> None:
        self._settings = settings or SegmindSettings()
        self._poller = poller or JobPoller()
        self.timeout_seconds = self._settings.timeout_seconds

    def _unsupported_input(self) -> UnsupportedInputError:
        return UnsupportedInputError(
            "Segmind does not accept base64 data URLs. Upload the image to a publicly"
            " reachable URL first, or use 'picwish', which accepts direct uploads.",
            provider=self.name,
        )

    async def _submit(self, session: httpx.AsyncClient, image: str, credential: str) -> _PollResponse:
        response = await session.post(
            self._settings.workflow_url,
            headers={"Authorization": f"Bearer {credential}"},
            json={"Watermark_Image": image},
        )
        if not response.is_success:
            message = error_message(response)
            lowered = message.lower()
            if any(marker in lowered for marker in _AUTH_MARKERS):
                raise AuthenticationError(self.name, message)
            if response.status_code not in (401, 403) and any(m in lowered for m in _DATA_URI_MARKERS):
                raise self._unsupported_input()
            self._raise_for_status(response, "submit Segmind workflow")

        submitted = self._parse(_PollResponse, response)
        if not submitted.poll_url:
            raise TransportError("No poll URL returned from Segmind API", provider=self.name)
        return submitted

    async def _process(self, payload: ImagePayload, credential: str, model: str | None) -> ImagePayload:
        if not self._settings.accepts_data_uri:
            raise self._unsupported_input()

        async with self._session() as session:
            submitted = await self._submit(session, encode(payload.data, payload.content_type), credential)
            poll_url = submitted.poll_url
            job_id = submitted.request_id or poll_url
            logger.debug("Segmind request %s queued, polling %s", job_id, poll_url)

            async def fetch_status() -> Job:
                response = await session.get(poll_url, headers={"Authorization": f"Bearer {credential}"})
                self._raise_for_status(response, "check task status")
                body = self._parse(_PollResponse, response)
                status = _STATUS_MAP.get(body.status or "QUEUED", JobStatus.QUEUED)
                return Job(job_id, status, result_ref=body.output, error=body.error)

            job = await self._poller.poll(
                fetch_status,
                self._settings.poll_interval_seconds,
                self._settings.max_poll_attempts,
                provider=self.name,
            )
            if job.status is JobStatus.FAILED:
                raise RemoteProcessingError(
                    f"Watermark removal failed: {job.error or 'Unknown error'}", provider=self.name
                )
            if not job.result_ref:
                raise TransportError("No output in completed response", provider=self.name)

            try:
                image_url = _image_url_from_output(job.result_ref)
            except json.JSONDecodeError as exc:
                raise TransportError("Failed to parse output data", provider=self.name) from exc
            if not image_url:
                raise TransportError("No image URL in output data", provider=self.name)

            return await self._download(session, image_url)
