"""Tests du client web-grounded (SDK openai simulé)."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from cosmic_insights.domain.errors import (
    ConfigurationError,
    ProviderFatalError,
    TransientProviderError,
)
from cosmic_insights.domain.models import GenerationRequest
from cosmic_insights.infra.llm.web_grounded_client import WebGroundedClient

REQUEST = GenerationRequest(
    feature="horoscope",
    system_prompt="sys",
    user_prompt="user",
    language="en",
    temperature=0.3,
    max_tokens=1024,
)
_HTTP_REQ = httpx.Request("POST", "https://api.perplexity.ai/chat/completions")


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _status_error(status):
    response = httpx.Response(status, request=_HTTP_REQ)
    return openai.APIStatusError("error", response=response, body=None)


def _client(create):
    sdk = MagicMock()
    sdk.chat.completions.create = AsyncMock(side_effect=create)
    sdk.close = AsyncMock()
    made = []

    def factory(key):
        made.append(key)
        return sdk

    return WebGroundedClient(client_factory=factory), sdk, made


@pytest.mark.asyncio
async def test_success_cleans_citations_and_sends_pair():
    client, sdk, made = _client(lambda **_: _completion("Stars align [1]  today [2]."))
    text = await client.generate("k1", REQUEST)
    assert text == "Stars align today ."
    assert made == ["k1"]
    kwargs = sdk.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "sonar"
    assert kwargs["messages"] == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "user"},
    ]
    assert kwargs["max_tokens"] == REQUEST.max_tokens
    sdk.close.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 429])
async def test_rotating_statuses_are_transient(status):
    client, sdk, _ = _client(_status_error(status))
    with pytest.raises(TransientProviderError) as excinfo:
        await client.generate("k1", REQUEST)
    assert excinfo.value.status_code == status
    sdk.close.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 500, 503])
async def test_other_statuses_are_fatal(status):
    client, _, _ = _client(_status_error(status))
    with pytest.raises(ProviderFatalError):
        await client.generate("k1", REQUEST)


@pytest.mark.asyncio
async def test_network_errors_are_transient():
    client, _, _ = _client(openai.APITimeoutError(request=_HTTP_REQ))
    with pytest.raises(TransientProviderError):
        await client.generate("k1", REQUEST)


@pytest.mark.asyncio
async def test_empty_content_is_transient():
    client, _, _ = _client(lambda **_: _completion("   "))
    with pytest.raises(TransientProviderError):
        await client.generate("k1", REQUEST)


@pytest.mark.asyncio
async def test_missing_key_is_configuration_error():
    client, sdk, made = _client(lambda **_: _completion("x"))
    with pytest.raises(ConfigurationError):
        await client.generate("", REQUEST)
    assert made == []
