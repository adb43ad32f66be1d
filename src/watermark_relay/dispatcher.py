"""
Single entry point for collaborators: route a request to the registered adapter.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterator

from .clients import (
    GeminiClient,
    OpenRouterClient,
    PicWishClient,
    PixelBinClient,
    ProviderClient,
    ReplicateClient,
    SegmindClient,
)
from .config import RelaySettings
from .errors import DispatchError, TransportError, UnsupportedProviderError
from .polling import JobPoller, Sleep
from .types import DispatchRequest, DispatchResult, ImagePayload

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Maps provider keys to adapters; adding a provider means registering one adapter."""

    def __init__(self) -> None:
        self._clients: Dict[str, ProviderClient] = {}

    def register(self, client: ProviderClient, name: str | None = None) -> None:
        key = (name or client.name).strip().lower()
        if not key:
            raise ValueError("Provider clients must have a name")
        self._clients[key] = client

    def get(self, provider: str) -> ProviderClient:
        client = self._clients.get(provider.strip().lower())
        if client is None:
            raise UnsupportedProviderError(provider)
        return client

    @property
    def providers(self) -> list[str]:
        return sorted(self._clients)

    def __contains__(self, provider: object) -> bool:
        return isinstance(provider, str) and provider.strip().lower() in self._clients

    def __iter__(self) -> Iterator[str]:
        return iter(self.providers)


def build_default_registry(settings: RelaySettings | None = None, sleep: Sleep | None = None) -> ProviderRegistry:
    """Register every built-in adapter, sharing one stateless poller."""
    settings = settings or RelaySettings()
    poller = JobPoller(sleep=sleep)

    registry = ProviderRegistry()
    registry.register(PicWishClient(settings.picwish, poller))
    registry.register(SegmindClient(settings.segmind, poller))
    registry.register(ReplicateClient(settings.replicate, poller))
    registry.register(OpenRouterClient(settings.openrouter))
    registry.register(GeminiClient(settings.gemini))
    registry.register(PixelBinClient())
    return registry


class Dispatcher:
    """Route dispatch requests to provider adapters. No retries happen here."""

    def __init__(self, registry: ProviderRegistry | None = None) -> None:
        self._registry = registry or build_default_registry()

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    async def dispatch(self, request: DispatchRequest) -> ImagePayload:
        """
        Process ``request`` with the provider named in its config.

        Raises
        ------
        DispatchError
            Classified failure; unknown providers fail before any network call.
        """
        config = request.config
        client = self._registry.get(config.provider)
        try:
            return await client.dispatch(
                request.payload,
                config.credential.get_secret_value(),
                config.model,
            )
        except DispatchError:
            raise
        except Exception as exc:
            logger.exception("Unclassified failure from %s", client.name)
            raise TransportError(f"{client.name} returned an unexpected response: {exc}", provider=client.name) from exc

    async def try_dispatch(self, request: DispatchRequest) -> DispatchResult:
        """Like ``dispatch`` but returns the error variant instead of raising."""
        try:
            return DispatchResult(payload=await self.dispatch(request))
        except DispatchError as exc:
            return DispatchResult(error=exc)
