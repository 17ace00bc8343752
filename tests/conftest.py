"""Shared pytest fixtures."""

import random

import pytest

from rechenbot.intents import IntentMatcher, IntentRule, build_rule
from rechenbot.models import Message, Speaker
from rechenbot.resolver import ResponseResolver
from rechenbot.storage import InMemoryKeyValueStore
from rechenbot.transcript import TranscriptStore

SUCCESS = "Das Ergebnis ist: {result}"
FALLBACK = "Ich kann im Moment nur mathematische Ausdrücke berechnen."
GREETING = "Hallo! Stell mir eine Rechenaufgabe."


@pytest.fixture
def sample_rules() -> list[IntentRule]:
    return [
        build_rule("greeting", "exact", ["hallo", "hi", "hey"], ["Hallo!"]),
        build_rule("how_are_you", "contains", ["wie gehts", "wie geht es"], ["Mir geht es gut."]),
        build_rule("thanks", "contains", ["danke"], ["Gern geschehen!"]),
        build_rule("joke", "contains", ["witz"], ["Witz A", "Witz B", "Witz C"]),
    ]


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def matcher(sample_rules, seeded_rng) -> IntentMatcher:
    return IntentMatcher(sample_rules, rng=seeded_rng)


@pytest.fixture
def resolver(matcher) -> ResponseResolver:
    return ResponseResolver(matcher, success_template=SUCCESS, fallback=FALLBACK)


@pytest.fixture
def memory_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def transcript(memory_store) -> TranscriptStore:
    store = TranscriptStore(memory_store, greeting=GREETING)
    store.load()
    return store


@pytest.fixture
def sample_messages() -> list[Message]:
    return [
        Message(Speaker.ASSISTANT, GREETING),
        Message(Speaker.USER, "5 * 5"),
        Message(Speaker.ASSISTANT, "Das Ergebnis ist: 25"),
    ]
