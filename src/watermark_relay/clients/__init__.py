"""
Provider adapters for PicWish, Segmind, Replicate, OpenRouter, Gemini and PixelBin.
"""
from .base import ProviderClient
from .gemini import GeminiClient
from .openrouter import OpenRouterClient
from .picwish import PicWishClient
from .pixelbin import PixelBinClient
from .replicate import ReplicateClient
from .segmind import SegmindClient

__all__ = [
    "ProviderClient",
    "GeminiClient",
    "OpenRouterClient",
    "PicWishClient",
    "PixelBinClient",
    "ReplicateClient",
    "SegmindClient",
]
