from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import ProviderConfig
    from .errors import DispatchError


@dataclass(frozen=True, slots=True)
class ImagePayload:
    """An encoded image together with its declared media type."""

    data: bytes
    content_type: str = "image/png"

    def __post_init__(self) -> None:
        if not self.content_type.lower().startswith("image/"):
            raise ValueError(f"Not an image media type: {self.content_type!r}")

    def __repr__(self) -> str:
        return f"ImagePayload(content_type={self.content_type!r}, size={len(self.data)})"


class JobStatus(str, Enum):
    """Provider-independent lifecycle of a remote job."""

    QUEUED = "queued"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


@dataclass(frozen=True, slots=True)
class Job:
    """Snapshot of a remote job as last observed by an adapter."""

    id: str
    status: JobStatus
    result_ref: str | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class DispatchRequest:
    payload: ImagePayload
    config: ProviderConfig


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Outcome of a dispatch call: exactly one of ``payload`` or ``error``."""

    payload: ImagePayload | None = None
    error: DispatchError | None = None

    def __post_init__(self) -> None:
        if (self.payload is None) == (self.error is None):
            raise ValueError("DispatchResult needs exactly one of payload or error")

    @property
    def ok(self) -> bool:
        return self.payload is not None
