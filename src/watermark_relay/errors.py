"""
Error taxonomy surfaced by provider adapters and the dispatcher.

Every failure leaving the core is one ``DispatchError`` subclass, and each
subclass maps to exactly one ``ErrorKind``.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict


class ErrorKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    UNSUPPORTED_PROVIDER = "unsupported_provider"
    INVALID_INPUT = "invalid_input"
    AUTHENTICATION_FAILED = "authentication_failed"
    REMOTE_PROCESSING_FAILED = "remote_processing_failed"
    TIMEOUT = "timeout"
    CAPABILITY_UNSUPPORTED = "capability_unsupported"
    INFRASTRUCTURE_REQUIRED = "infrastructure_required"
    TRANSPORT_ERROR = "transport_error"


# Providers that actually perform watermark removal, suggested in error messages.
ALTERNATIVES: Dict[str, str] = {
    "picwish": "segmind",
    "segmind": "picwish",
    "replicate": "picwish",
    "openrouter": "picwish",
    "gemini": "picwish",
    "pixelbin": "picwish",
}


def alternative_for(provider: str) -> str:
    return ALTERNATIVES.get(provider, "picwish")


class DispatchError(Exception):
    """Base class for every classified dispatch failure."""

    kind: ErrorKind = ErrorKind.TRANSPORT_ERROR

    def __init__(self, detail: str, *, provider: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.provider = provider

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "provider": self.provider, "detail": self.detail}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider!r}, detail={self.detail!r})"


class MissingCredentialError(DispatchError):
    kind = ErrorKind.MISSING_CREDENTIAL

    def __init__(self, provider: str) -> None:
        super().__init__(f"An API key is required for provider '{provider}'.", provider=provider)


class UnsupportedProviderError(DispatchError):
    kind = ErrorKind.UNSUPPORTED_PROVIDER

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unsupported provider: {provider!r}", provider=provider)


class InvalidInputError(DispatchError):
    kind = ErrorKind.INVALID_INPUT


class UnsupportedInputError(InvalidInputError):
    """The provider cannot accept the image in the representation we can send."""


class AuthenticationError(DispatchError):
    kind = ErrorKind.AUTHENTICATION_FAILED

    def __init__(self, provider: str, reason: str | None = None) -> None:
        detail = (
            f"Invalid {provider} API key: the provider rejected the credential."
            f" Check the key or switch to '{alternative_for(provider)}'."
        )
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(detail, provider=provider)


class RemoteProcessingError(DispatchError):
    kind = ErrorKind.REMOTE_PROCESSING_FAILED


class PollTimeoutError(DispatchError):
    kind = ErrorKind.TIMEOUT

    def __init__(self, detail: str, *, provider: str | None = None, attempts: int = 0) -> None:
        super().__init__(detail, provider=provider)
        self.attempts = attempts


class CapabilityUnsupportedError(DispatchError):
    kind = ErrorKind.CAPABILITY_UNSUPPORTED

    def __init__(self, provider: str, model: str | None, response_text: str | None) -> None:
        detail = (
            f"{provider} vision models can only analyze images, they cannot return an edited image"
            f" (last model tried: {model or 'none'})."
            f" Use '{alternative_for(provider)}' for watermark removal."
        )
        if response_text:
            detail = f"{detail}\n\nModel response: {response_text}"
        super().__init__(detail, provider=provider)
        self.model = model
        self.response_text = response_text


class InfrastructureRequiredError(DispatchError):
    kind = ErrorKind.INFRASTRUCTURE_REQUIRED


class TransportError(DispatchError):
    kind = ErrorKind.TRANSPORT_ERROR
