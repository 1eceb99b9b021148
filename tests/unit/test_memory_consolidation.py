import asyncio

import pytest

from cartridges.config import MemorySettings
from cartridges.core import MemoryConsolidator, extract_key_concepts, extract_topic
from cartridges.core.consolidation import truncate_outcome
from cartridges.utils.exceptions import ConsolidationError
from tests.utils.factories import cartridge_payload


def test_key_concepts_skip_short_and_stop_words():
    concepts = extract_key_concepts("The react hooks should have been simpler with state")

    assert concepts == ["react", "hooks", "simpler", "state"]


def test_key_concepts_are_distinct_and_capped():
    text = "alpha alpha bravo charlie delta" + " " + " ".join(
        f"word{i}" for i in range(20)
    )

    concepts = extract_key_concepts(text, limit=10)

    assert len(concepts) == 10
    assert concepts[:4] == ["alpha", "bravo", "charlie", "delta"]
    assert len(set(concepts)) == len(concepts)


def test_key_concept_filtering_is_idempotent():
    text = "Would these distributed systems have been consistent under partitions"

    first = extract_key_concepts(text)
    second = extract_key_concepts(" ".join(first))

    assert set(first) == set(second)
    assert extract_key_concepts(text) == first


def test_topic_is_first_five_words():
    assert extract_topic("how do I scale a postgres cluster today") == "how do I scale a"
    assert extract_topic("short one") == "short one"


def test_outcome_truncation_marks_cut_text_only():
    assert truncate_outcome("x" * 200) == "x" * 200
    assert truncate_outcome("x" * 201) == "x" * 200 + "..."


def test_consolidate_appends_record_and_bumps_metadata(store):
    cartridge = asyncio.run(
        store.create_cartridge(cartridge_payload("Web", node_count=5, size_mb=1.0))
    )
    consolidator = MemoryConsolidator(store)

    updated = asyncio.run(
        consolidator.consolidate(
            cartridge, "How should React components share state", "Lift state up."
        )
    )

    conversations = updated.episodic_memory.conversations
    assert len(conversations) == 1
    record = conversations[0]
    assert record.id.startswith("conv_")
    assert record.topic == "How should React components share"
    assert "react" in record.key_concepts
    assert record.outcomes == ["Lift state up."]
    assert updated.metadata.node_count == 6
    assert updated.metadata.size_mb == pytest.approx(1.001)


def test_conversation_sequence_is_capped_fifo(store):
    cartridge = asyncio.run(store.create_cartridge(cartridge_payload("Capped")))
    consolidator = MemoryConsolidator(store)

    for turn in range(51):
        cartridge = asyncio.run(
            consolidator.consolidate(cartridge, f"question number {turn}", f"answer {turn}")
        )
        assert len(cartridge.episodic_memory.conversations) <= 50

    conversations = cartridge.episodic_memory.conversations
    assert len(conversations) == 50
    assert conversations[0].topic == "question number 1"
    assert conversations[-1].topic == "question number 50"
    assert cartridge.metadata.node_count == 51


def test_settings_drive_consolidator_limits(store):
    settings = MemorySettings(max_conversations=2, topic_words=2, outcome_chars=5)
    consolidator = MemoryConsolidator.from_settings(store, settings)
    cartridge = asyncio.run(store.create_cartridge(cartridge_payload("Small")))

    for turn in range(3):
        cartridge = asyncio.run(
            consolidator.consolidate(cartridge, f"turn {turn} words", "long answer")
        )

    conversations = cartridge.episodic_memory.conversations
    assert [c.topic for c in conversations] == ["turn 1", "turn 2"]
    assert conversations[-1].outcomes == ["long ..."]


def test_consolidate_missing_cartridge_returns_none(store):
    cartridge = asyncio.run(store.create_cartridge(cartridge_payload("Gone")))
    asyncio.run(store.delete_cartridge(cartridge.id))

    assert asyncio.run(MemoryConsolidator(store).consolidate(cartridge, "q", "a")) is None


def test_consolidate_wraps_store_failures(store):
    cartridge = asyncio.run(store.create_cartridge(cartridge_payload("Broken")))

    async def broken_update(cartridge_id, updates):
        raise RuntimeError("write failed")

    store.update_cartridge = broken_update

    with pytest.raises(ConsolidationError) as excinfo:
        asyncio.run(MemoryConsolidator(store).consolidate(cartridge, "q", "a"))

    assert excinfo.value.context["cartridge_id"] == cartridge.id
