from __future__ import annotations

import logging
from typing import Any, Dict, List, Union

from pydantic import BaseModel

from ..codec import encode
from ..config import ReplicateSettings
from ..errors import RemoteProcessingError, TransportError
from ..polling import JobPoller
from ..types import ImagePayload, Job, JobStatus
from .base import ProviderClient

logger = logging.getLogger(__name__)

_STATUS_MAP = {
    "starting": JobStatus.QUEUED,
    "processing": JobStatus.PROCESSING,
    "succeeded": JobStatus.SUCCEEDED,
    "failed": JobStatus.FAILED,
    "canceled": JobStatus.FAILED,
}


class _Prediction(BaseModel):
    id: str
    status: str
    output: Union[str, List[Any], None] = None
    error: Any = None

    def to_job(self) -> Job:
        status = _STATUS_MAP.get(self.status.lower())
        if status is None:
            raise TransportError(f"Unknown Replicate prediction status: {self.status!r}", provider="replicate")
        output = self.output[0] if isinstance(self.output, list) and self.output else self.output
        return Job(
            self.id,
            status,
            result_ref=output if isinstance(output, str) and output else None,
            error=str(self.error) if self.error else None,
        )


class ReplicateClient(ProviderClient):
    """Client for Replicate predictions; the model version selects the restoration model."""

    name = "replicate"

    def __init__(self, settings: ReplicateSettings | None = None, poller: JobPoller | None = None) -> None:
        self._settings = settings or ReplicateSettings()
        self._poller = poller or JobPoller()
        self.timeout_seconds = self._settings.timeout_seconds

    def build_request(self, payload: ImagePayload, model: str | None) -> Dict[str, Any]:
        model_input: Dict[str, Any] = {self._settings.image_field: encode(payload.data, payload.content_type)}
        model_input.update(self._settings.input_defaults)
        return {"version": model or self._settings.version, "input": model_input}

    async def _process(self, payload: ImagePayload, credential: str, model: str | None) -> ImagePayload:
        headers = {"Authorization": f"Token {credential}"}
        async with self._session() as session:
            response = await session.post(
                self._settings.api_url, headers=headers, json=self.build_request(payload, model)
            )
            self._raise_for_status(response, "create Replicate prediction")
            job = self._parse(_Prediction, response).to_job()
            logger.debug("Replicate prediction %s is %s", job.id, job.status.value)

            if not job.status.is_terminal:

                async def fetch_status() -> Job:
                    status_response = await session.get(f"{self._settings.api_url}/{job.id}", headers=headers)
                    self._raise_for_status(status_response, "check prediction status")
                    return self._parse(_Prediction, status_response).to_job()

                job = await self._poller.poll(
                    fetch_status,
                    self._settings.poll_interval_seconds,
                    self._settings.max_poll_attempts,
                    provider=self.name,
                )

            if job.status is JobStatus.FAILED:
                raise RemoteProcessingError(
                    f"Replicate prediction failed: {job.error or 'Unknown error'}", provider=self.name
                )
            if not job.result_ref:
                raise TransportError("No image URL in Replicate output", provider=self.name)

            return await self._download(session, job.result_ref)
