from collections.abc import Iterable, Mapping, Sequence
from types import SimpleNamespace
from typing import Any

from cartridges.core import CartridgeSelector, MemoryConsolidator
from cartridges.schemas import Cartridge, CartridgeCreate, Message, ResponderResult
from cartridges.storage import InMemoryCartridgeStore
from cartridges.utils.exceptions import ResponderError


def cartridge_payload(
    name: str,
    description: str | None = None,
    *,
    tags: list[str] | None = None,
    node_count: int = 0,
    size_mb: float = 0.1,
    is_active: bool = False,
) -> CartridgeCreate:
    """Create a cartridge creation payload for tests."""
    return CartridgeCreate(
        name=name,
        description=description or f"{name} knowledge",
        metadata={
            "version": "1.0.0",
            "sizeMb": size_mb,
            "nodeCount": node_count,
            "tags": tags or [],
        },
        is_active=is_active,
    )


async def populate_store(store, payloads: Iterable[CartridgeCreate]) -> list[Cartridge]:
    """Create each payload in ``store`` and return the stored cartridges."""
    return [await store.create_cartridge(payload) for payload in payloads]


class FakeClassifier:
    """Classifier returning a fixed payload and recording its calls."""

    def __init__(self, payload: Any = None):
        self.payload = payload
        self.calls: list[tuple[str, list[Any]]] = []

    async def classify(self, query: str, candidates: Sequence[Any]) -> Mapping[str, Any]:
        self.calls.append((query, list(candidates)))
        return self.payload


class FailingClassifier(FakeClassifier):
    """Classifier that raises on every call."""

    def __init__(self, error: Exception | None = None):
        super().__init__()
        self.error = error or RuntimeError("classifier unavailable")

    async def classify(self, query: str, candidates: Sequence[Any]) -> Mapping[str, Any]:
        self.calls.append((query, list(candidates)))
        raise self.error


class FakeResponder:
    """Responder echoing the cartridge name and recording what it was given."""

    model = "fake/responder"

    def __init__(self, content: str | None = None, token_count: int = 42):
        self.content = content
        self.token_count = token_count
        self.calls: list[tuple[str, Cartridge, list[Message]]] = []

    async def respond(
        self, query: str, cartridge: Cartridge, history: Sequence[Message]
    ) -> ResponderResult:
        self.calls.append((query, cartridge, list(history)))
        return ResponderResult(
            content=self.content or f"Answer from {cartridge.name}",
            token_count=self.token_count,
            cost="0.000016",
        )


class FailingResponder(FakeResponder):
    def __init__(self, error: Exception | None = None):
        super().__init__()
        self.error = error or ResponderError("responder unavailable")

    async def respond(self, query, cartridge, history):
        self.calls.append((query, cartridge, list(history)))
        raise self.error


class FailingConsolidator(MemoryConsolidator):
    """Consolidator whose writes always fail."""

    async def consolidate(self, cartridge, user_message, ai_response):
        raise RuntimeError("disk full")


def build_selector(
    store: InMemoryCartridgeStore | None = None,
    *,
    classifier: Any = None,
    responder: Any = None,
    consolidator: MemoryConsolidator | None = None,
) -> CartridgeSelector:
    """Wire a selector around fakes, creating an in-memory store when needed."""
    store = store or InMemoryCartridgeStore()
    return CartridgeSelector(
        store,
        classifier or FakeClassifier(),
        responder or FakeResponder(),
        consolidator=consolidator,
    )


def fake_completion(content: str | None, total_tokens: int | None = None):
    """Mimic the attribute layout of an OpenAI chat completion."""
    usage = None if total_tokens is None else SimpleNamespace(total_tokens=total_tokens)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=usage,
    )


class FakeCompletions:
    def __init__(self, result: Any = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.kwargs: dict[str, Any] | None = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.result


def fake_openai_client(result: Any = None, error: Exception | None = None):
    """Async client stub exposing ``chat.completions.create``."""
    completions = FakeCompletions(result, error)

    async def close():
        return None

    return SimpleNamespace(
        chat=SimpleNamespace(completions=completions), close=close
    )
