from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel

from ..codec import filename_for
from ..config import PicWishSettings
from ..errors import AuthenticationError, InvalidInputError, RemoteProcessingError, TransportError
from ..polling import JobPoller
from ..types import ImagePayload, Job, JobStatus
from .base import ProviderClient, error_message

logger = logging.getLogger(__name__)

_AUTH_MARKERS = ("api key", "api-key", "apikey", "unauthorized", "unauthorised")
_INPUT_MARKERS = ("input file does not exist", "file type", "file format", "file size", "resolution")


class _TaskData(BaseModel):
    task_id: str | None = None
    state: int | None = None
    file: str | None = None
    err_message: str | None = None


class _TaskResponse(BaseModel):
    status: int
    message: str | None = None
    msg: str | None = None
    data: _TaskData | None = None

    @property
    def text(self) -> str:
        return self.message or self.msg or "Unknown error"


def _job_from_state(task_id: str, data: _TaskData) -> Job:
    """Translate PicWish's numeric ``state``: 1 done, negative failed, 0 queued, other positive running."""
    state = data.state if data.state is not None else 0
    if state == 1:
        return Job(task_id, JobStatus.SUCCEEDED, result_ref=data.file)
    if state < 0:
        return Job(task_id, JobStatus.FAILED, error=data.err_message or f"state: {state}")
    if state == 0:
        return Job(task_id, JobStatus.QUEUED)
    return Job(task_id, JobStatus.PROCESSING)


class PicWishClient(ProviderClient):
    """
    Client for the PicWish watermark removal API.

    Supported formats: JPG, PNG, BMP; up to 50MB. Result URLs stay valid for one hour.
    """

    name = "picwish"

    def __init__(self, settings: PicWishSettings | None = None, poller: JobPoller | None = None) -> None:
        self._settings = settings or PicWishSettings()
        self._poller = poller or JobPoller()
        self.timeout_seconds = self._settings.timeout_seconds

    def _classify(self, message: str, status_code: int | None = None) -> None:
        lowered = message.lower()
        if status_code in (401, 403) or any(marker in lowered for marker in _AUTH_MARKERS):
            raise AuthenticationError(self.name, message)
        if any(marker in lowered for marker in _INPUT_MARKERS):
            raise InvalidInputError(
                "Image upload failed. Make sure the image is JPG, PNG or BMP and no larger than 50MB."
                f" ({message})",
                provider=self.name,
            )

    async def _submit(self, session: httpx.AsyncClient, payload: ImagePayload, credential: str) -> str:
        response = await session.post(
            self._settings.api_url,
            headers={"X-API-KEY": credential},
            data={"sync": "0"},
            files={"file": (filename_for(payload.content_type), payload.data, payload.content_type)},
        )
        if not response.is_success:
            self._classify(error_message(response), response.status_code)
            self._raise_for_status(response, "create PicWish task")

        body = self._parse(_TaskResponse, response)
        if body.status != 200 or body.data is None or not body.data.task_id:
            self._classify(body.text)
            raise TransportError(f"Failed to create task: {body.text}", provider=self.name)

        logger.debug("PicWish task %s created", body.data.task_id)
        return body.data.task_id

    async def _process(self, payload: ImagePayload, credential: str, model: str | None) -> ImagePayload:
        async with self._session() as session:
            task_id = await self._submit(session, payload, credential)

            async def fetch_status() -> Job:
                response = await session.get(
                    f"{self._settings.api_url}/{task_id}", headers={"X-API-KEY": credential}
                )
                self._raise_for_status(response, "check task status")
                body = self._parse(_TaskResponse, response)
                if body.data is None:
                    raise TransportError(f"Task status response missing data: {body.text}", provider=self.name)
                return _job_from_state(task_id, body.data)

            job = await self._poller.poll(
                fetch_status,
                self._settings.poll_interval_seconds,
                self._settings.max_poll_attempts,
                provider=self.name,
            )
            if job.status is JobStatus.FAILED:
                raise RemoteProcessingError(f"Watermark removal failed ({job.error})", provider=self.name)
            if not job.result_ref:
                raise TransportError("No result image URL in response", provider=self.name)

            return await self._download(session, job.result_ref)
