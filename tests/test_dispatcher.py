"""Tests for provider routing."""

import asyncio

import pytest
from pydantic import SecretStr

from conftest import make_png
from watermark_relay import Dispatcher, DispatchRequest, ProviderConfig, build_default_registry
from watermark_relay.clients import ProviderClient
from watermark_relay.errors import (
    ErrorKind,
    MissingCredentialError,
    TransportError,
    UnsupportedProviderError,
)
from watermark_relay.types import ImagePayload

TASK_URL = "https://techhk.aoscdn.com/api/tasks/visual/external/watermark-remove"


def request_for(payload, provider, credential="key-123", model=None) -> DispatchRequest:
    return DispatchRequest(
        payload=payload, config=ProviderConfig(provider=provider, credential=SecretStr(credential), model=model)
    )


@pytest.fixture
def dispatcher(settings, sleep) -> Dispatcher:
    return Dispatcher(build_default_registry(settings, sleep=sleep))


class TestRegistry:
    def test_default_providers(self, dispatcher):
        assert dispatcher.registry.providers == ["gemini", "openrouter", "picwish", "pixelbin", "replicate", "segmind"]
        assert "PicWish" in dispatcher.registry
        assert "dall-e" not in dispatcher.registry

    async def test_register_custom_adapter(self, dispatcher, payload):
        class EchoClient(ProviderClient):
            name = "echo"

            async def _process(self, payload, credential, model):
                return payload

        dispatcher.registry.register(EchoClient())

        assert await dispatcher.dispatch(request_for(payload, "echo")) is payload

    def test_register_requires_name(self):
        class Nameless(ProviderClient):
            async def _process(self, payload, credential, model):
                return payload

        with pytest.raises(ValueError):
            build_default_registry().register(Nameless())


class TestDispatch:
    async def test_unsupported_provider(self, dispatcher, payload, httpx_mock):
        with pytest.raises(UnsupportedProviderError) as exc_info:
            await dispatcher.dispatch(request_for(payload, "dall-e"))

        assert exc_info.value.kind is ErrorKind.UNSUPPORTED_PROVIDER
        assert httpx_mock.get_requests() == []

    @pytest.mark.parametrize("provider", ["picwish", "segmind", "replicate", "openrouter", "gemini", "pixelbin"])
    async def test_missing_credential_for_every_provider(self, dispatcher, payload, httpx_mock, provider):
        with pytest.raises(MissingCredentialError) as exc_info:
            await dispatcher.dispatch(request_for(payload, provider, credential=""))

        assert exc_info.value.provider == provider
        assert httpx_mock.get_requests() == []

    async def test_try_dispatch_returns_error_variant(self, dispatcher, payload, httpx_mock):
        result = await dispatcher.try_dispatch(request_for(payload, "pixelbin"))

        assert not result.ok
        assert result.payload is None
        assert result.error.to_dict()["kind"] == "infrastructure_required"
        assert result.error.to_dict()["provider"] == "pixelbin"

    async def test_try_dispatch_returns_payload(self, dispatcher, payload, png_bytes, httpx_mock):
        httpx_mock.add_response(url=TASK_URL, method="POST", json={"status": 200, "data": {"task_id": "t1"}})
        httpx_mock.add_response(
            url=f"{TASK_URL}/t1", method="GET", json={"status": 200, "data": {"state": 1, "file": "https://x/t1.png"}}
        )
        httpx_mock.add_response(url="https://x/t1.png", content=png_bytes)

        result = await dispatcher.try_dispatch(request_for(payload, "picwish"))

        assert result.ok
        assert result.payload == ImagePayload(png_bytes, "image/png")

    async def test_config_is_not_mutated(self, dispatcher, payload, httpx_mock):
        request = request_for(payload, "pixelbin", model="m")
        before = request.config.model_dump()

        await dispatcher.try_dispatch(request)

        assert request.config.model_dump() == before

    async def test_unclassified_errors_become_transport_errors(self, payload):
        class BrokenClient(ProviderClient):
            name = "broken"

            async def _process(self, payload, credential, model):
                raise KeyError("output")

        dispatcher = Dispatcher(build_default_registry())
        dispatcher.registry.register(BrokenClient())

        with pytest.raises(TransportError) as exc_info:
            await dispatcher.dispatch(request_for(payload, "broken"))

        assert exc_info.value.provider == "broken"

    async def test_concurrent_dispatches_are_independent(self, dispatcher, payload, httpx_mock):
        """Each call owns its job; results are not crossed between calls."""
        images = {"t1": make_png((255, 0, 0)), "t2": make_png((0, 0, 255))}
        for task_id, image in images.items():
            httpx_mock.add_response(url=TASK_URL, method="POST", json={"status": 200, "data": {"task_id": task_id}})
            httpx_mock.add_response(url=f"{TASK_URL}/{task_id}", method="GET", json={"status": 200, "data": {"state": 0}})
            httpx_mock.add_response(
                url=f"{TASK_URL}/{task_id}",
                method="GET",
                json={"status": 200, "data": {"state": 1, "file": f"https://x/{task_id}.png"}},
            )
            httpx_mock.add_response(url=f"https://x/{task_id}.png", content=image)

        first, second = await asyncio.gather(
            dispatcher.dispatch(request_for(payload, "picwish")),
            dispatcher.dispatch(request_for(payload, "picwish")),
        )

        assert {first.data, second.data} == set(images.values())

    async def test_cancelled_dispatch_stops_polling(self, payload, httpx_mock):
        dispatcher = Dispatcher(build_default_registry())
        httpx_mock.add_response(url=TASK_URL, method="POST", json={"status": 200, "data": {"task_id": "t1"}})

        task = asyncio.create_task(dispatcher.dispatch(request_for(payload, "picwish")))
        while not httpx_mock.get_requests():
            await asyncio.sleep(0)
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(httpx_mock.get_requests()) == 1
