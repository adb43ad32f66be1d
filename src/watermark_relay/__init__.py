"""
Watermark removal through third-party providers behind a single dispatch contract.
"""
from .config import ProviderConfig, RelaySettings, load_provider_config, load_settings
from .dispatcher import Dispatcher, ProviderRegistry, build_default_registry
from .errors import DispatchError, ErrorKind
from .types import DispatchRequest, DispatchResult, ImagePayload

__all__ = [
    "Dispatcher",
    "DispatchError",
    "DispatchRequest",
    "DispatchResult",
    "ErrorKind",
    "ImagePayload",
    "ProviderConfig",
    "ProviderRegistry",
    "RelaySettings",
    "build_default_registry",
    "load_provider_config",
    "load_settings",
]
