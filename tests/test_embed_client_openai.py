import asyncio
import json

import httpx
import pytest

from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.embed.openai.EmbedClientOpenai import EmbedClientOpenai
from shared.exceptions import ProviderError, ValidationError


@pytest.fixture
def openai_env(monkeypatch):
    monkeypatch.setenv("EMBED_OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("EMBED_OPENAI_BASE_URL", "https://embeddings.test/v1")
    monkeypatch.delenv("EMBED_MODEL", raising=False)
    monkeypatch.delenv("EMBED_DIMENSIONS", raising=False)


def _embed(client: EmbedClientOpenai, handler, text: str):
    async def run():
        await client.boot(transport=httpx.MockTransport(handler))
        try:
            return await client.do_embed(text)
        finally:
            await client.close()

    return asyncio.run(run())


def test_embed_sends_text_verbatim_and_returns_vector(openai_env, helper_config):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": [{"embedding": [0.1, 0.2, 0.3], "index": 0}]})

    client = EmbedClientOpenai(helper_config=helper_config)
    vector = _embed(client, handler, "  blue Bicycle ")

    assert vector == [0.1, 0.2, 0.3]
    assert seen["url"] == "https://embeddings.test/v1/embeddings"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"] == {"input": "  blue Bicycle ", "model": "text-embedding-3-small"}


def test_non_success_status_raises_provider_error(openai_env, helper_config):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"message": "Rate limit reached", "type": "requests"}})

    client = EmbedClientOpenai(helper_config=helper_config)
    with pytest.raises(ProviderError) as exc_info:
        _embed(client, handler, "milk")

    assert "429" in exc_info.value.message
    assert exc_info.value.details == "Rate limit reached"


def test_network_failure_raises_provider_error(openai_env, helper_config):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = EmbedClientOpenai(helper_config=helper_config)
    with pytest.raises(ProviderError):
        _embed(client, handler, "milk")


def test_timeout_raises_provider_error(openai_env, helper_config):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = EmbedClientOpenai(helper_config=helper_config)
    with pytest.raises(ProviderError) as exc_info:
        _embed(client, handler, "milk")

    assert "timed out" in exc_info.value.message


def test_response_without_vector_raises_provider_error(openai_env, helper_config):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": []})

    client = EmbedClientOpenai(helper_config=helper_config)
    with pytest.raises(ProviderError):
        _embed(client, handler, "milk")


def test_dimension_mismatch_raises_provider_error(openai_env, monkeypatch, helper_config):
    monkeypatch.setenv("EMBED_DIMENSIONS", "4")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": [{"embedding": [0.1, 0.2, 0.3]}]})

    client = EmbedClientOpenai(helper_config=helper_config)
    with pytest.raises(ProviderError) as exc_info:
        _embed(client, handler, "milk")

    assert "expected 4" in exc_info.value.message


def test_empty_text_is_rejected_without_a_request(openai_env, helper_config):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"data": [{"embedding": [0.1]}]})

    client = EmbedClientOpenai(helper_config=helper_config)
    with pytest.raises(ValidationError):
        _embed(client, handler, "   ")

    assert calls == []


def test_configured_model_is_used(openai_env, monkeypatch, helper_config):
    monkeypatch.setenv("EMBED_MODEL", "text-embedding-3-large")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": [{"embedding": [1.0]}]})

    client = EmbedClientOpenai(helper_config=helper_config)
    _embed(client, handler, "milk")

    assert seen["body"]["model"] == "text-embedding-3-large"


def test_missing_api_key_fails_at_construction(monkeypatch, helper_config):
    monkeypatch.delenv("EMBED_OPENAI_API_KEY", raising=False)

    with pytest.raises(ValueError):
        EmbedClientOpenai(helper_config=helper_config)


def test_manager_defaults_to_openai(openai_env, monkeypatch, helper_config):
    monkeypatch.delenv("EMBED_ENGINE", raising=False)

    client = EmbedClientManager(helper_config=helper_config).get_client()

    assert isinstance(client, EmbedClientOpenai)
    assert client.get_engine_name() == "openai"


def test_manager_rejects_unknown_engine(openai_env, monkeypatch, helper_config):
    monkeypatch.setenv("EMBED_ENGINE", "nonexistent")

    with pytest.raises(ValueError):
        EmbedClientManager(helper_config=helper_config)


@pytest.mark.parametrize("embedding", [["x", "y"], 5, [0.1, None], {"0": 0.1}])
def test_non_numeric_vector_raises_provider_error(openai_env, helper_config, embedding):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": [{"embedding": embedding}]})

    client = EmbedClientOpenai(helper_config=helper_config)
    with pytest.raises(ProviderError):
        _embed(client, handler, "milk")


@pytest.mark.parametrize("body", [["boom"], "boom", 42])
def test_error_body_that_is_not_an_object_raises_provider_error(openai_env, helper_config, body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json=body)

    client = EmbedClientOpenai(helper_config=helper_config)
    with pytest.raises(ProviderError) as exc_info:
        _embed(client, handler, "milk")

    assert "500" in exc_info.value.message
