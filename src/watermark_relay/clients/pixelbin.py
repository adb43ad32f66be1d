from __future__ import annotations

from ..errors import InfrastructureRequiredError
from ..types import ImagePayload
from .base import ProviderClient


class PixelBinClient(ProviderClient):
    """
    WatermarkRemover.io (PixelBin) placeholder.

    PixelBin uploads go through signed URLs that only a backend holding the admin
    token can issue, so this client fails without touching the network.
    """

    name = "pixelbin"

    async def _process(self, payload: ImagePayload, credential: str, model: str | None) -> ImagePayload:
        raise InfrastructureRequiredError(
            "WatermarkRemover.io (PixelBin) requires backend support:\n"
            "1. a backend service generates a signed upload URL with the PixelBin admin SDK\n"
            "2. the image is uploaded to that URL and transformed with wm.remove()\n"
            "No such signed-URL service is available to this client. "
            "Use 'picwish' (direct upload) or 'segmind' instead.",
            provider=self.name,
        )
