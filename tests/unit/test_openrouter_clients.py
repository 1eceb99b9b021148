import asyncio
import json

import httpx
import openai
import pytest

from cartridges.config import AgentSettings
from cartridges.providers import OpenRouterClassifier, OpenRouterResponder
from cartridges.providers.classifier import build_selection_prompt
from cartridges.providers.openrouter import create_async_client
from cartridges.providers.responder import (
    build_message_history,
    build_system_prompt,
    calculate_cost,
)
from cartridges.schemas import Cartridge, CartridgeSummary, Message, utcnow
from cartridges.utils.exceptions import (
    ClassifierError,
    ConfigurationError,
    ResponderError,
)
from tests.utils.factories import fake_completion, fake_openai_client


def _cartridge() -> Cartridge:
    return Cartridge.model_validate(
        {
            "id": 1,
            "name": "Web Development",
            "description": "React patterns",
            "semanticMemory": {
                "concepts": {"hooks": {"definition": "stateful functions"}}
            },
            "metadata": {"tags": ["react"], "nodeCount": 3},
        }
    )


def _summary() -> CartridgeSummary:
    return CartridgeSummary.from_cartridge(_cartridge())


def _message(index: int, role: str) -> Message:
    return Message(id=index, content=f"{role}-{index}", role=role, created_at=utcnow())


def _api_error() -> openai.APIConnectionError:
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    return openai.APIConnectionError(request=request)


def test_create_async_client_requires_key():
    with pytest.raises(ConfigurationError) as excinfo:
        create_async_client(AgentSettings())

    assert "OPENROUTER_API_KEY" in str(excinfo.value)


def test_create_async_client_targets_openrouter():
    client = create_async_client(AgentSettings(openrouter_api_key="sk-test"))
    try:
        assert str(client.base_url).startswith("https://openrouter.ai/api/v1")
        assert client.max_retries == 0
    finally:
        asyncio.run(client.close())


def test_selection_prompt_lists_candidates():
    prompt = build_selection_prompt("How do hooks work?", [_summary()])

    assert 'User Query: "How do hooks work?"' in prompt
    assert '"name": "Web Development"' in prompt
    assert '"nodeCount": 3' in prompt
    assert '"selectedCartridgeId": <number>' in prompt


def test_classifier_returns_parsed_payload():
    payload = {"selectedCartridgeId": 1, "matchScore": 91, "reasoning": "react"}
    client = fake_openai_client(fake_completion(json.dumps(payload)))
    classifier = OpenRouterClassifier(AgentSettings(), client=client)

    result = asyncio.run(classifier.classify("hooks?", [_summary()]))

    assert result == payload
    kwargs = client.chat.completions.kwargs
    assert kwargs["model"] == "openai/gpt-4.1-nano"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["temperature"] == pytest.approx(0.1)
    assert kwargs["messages"][0]["role"] == "system"


@pytest.mark.parametrize(
    "client",
    [
        fake_openai_client(fake_completion(None)),
        fake_openai_client(fake_completion("not json")),
        fake_openai_client(fake_completion("[1, 2]")),
        fake_openai_client(error=_api_error()),
    ],
)
def test_classifier_failures_raise_classifier_error(client):
    classifier = OpenRouterClassifier(AgentSettings(), client=client)

    with pytest.raises(ClassifierError):
        asyncio.run(classifier.classify("hooks?", [_summary()]))


def test_system_prompt_embeds_memory():
    prompt = build_system_prompt(_cartridge())

    assert '"Web Development" cartridge' in prompt
    assert "Cartridge Description: React patterns" in prompt
    assert "stateful functions" in prompt


def test_message_history_keeps_recent_turns():
    history = [_message(i, "user" if i % 2 else "assistant") for i in range(1, 15)]
    history.append(_message(99, "system"))

    messages = build_message_history("latest", _cartridge(), history, max_history=4)

    assert messages[0]["role"] == "system"
    assert [m["content"] for m in messages[1:-1]] == [
        "assistant-12",
        "user-13",
        "assistant-14",
    ]
    assert messages[-1] == {"role": "user", "content": "latest"}


def test_calculate_cost_formats_six_decimals():
    assert calculate_cost(1000) == "0.000375"
    assert calculate_cost(0) == "0.000000"


def test_responder_returns_content_and_usage():
    client = fake_openai_client(fake_completion("Use hooks.", total_tokens=2000))
    responder = OpenRouterResponder(AgentSettings(), client=client)

    result = asyncio.run(responder.respond("hooks?", _cartridge(), []))

    assert result.content == "Use hooks."
    assert result.token_count == 2000
    assert result.cost == "0.000750"
    kwargs = client.chat.completions.kwargs
    assert kwargs["model"] == "openai/gpt-4o-mini"
    assert kwargs["max_tokens"] == 2000


def test_responder_without_usage_counts_zero_tokens():
    client = fake_openai_client(fake_completion("ok"))
    responder = OpenRouterResponder(AgentSettings(), client=client)

    result = asyncio.run(responder.respond("q", _cartridge(), []))

    assert result.token_count == 0
    assert result.cost == "0.000000"


def test_responder_failures_raise_responder_error():
    empty = OpenRouterResponder(
        AgentSettings(), client=fake_openai_client(fake_completion(""))
    )
    broken = OpenRouterResponder(
        AgentSettings(), client=fake_openai_client(error=_api_error())
    )
    unconfigured = OpenRouterResponder(AgentSettings())

    for responder in (empty, broken, unconfigured):
        with pytest.raises(ResponderError):
            asyncio.run(responder.respond("q", _cartridge(), []))
