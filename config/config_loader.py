"""Load settings.yaml into typed dataclasses. Builds the intent rule table."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from rechenbot.intents import IntentRule, build_rule

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

STORE_DIR_ENV = "RECHENBOT_STORE_DIR"
SEED_ENV = "RECHENBOT_SEED"


@dataclass
class ChatConfig:
    storage_key: str
    store_dir: Path
    delay_sec: float
    seed: int | None = None


@dataclass
class MessagesConfig:
    greeting: str
    success: str
    fallback: str


@dataclass
class AppConfig:
    chat: ChatConfig
    messages: MessagesConfig
    intents: list[IntentRule] = field(default_factory=list)


def _parse_seed(raw: object) -> int | None:
    if raw is None or raw == "":
        return None
    return int(raw)


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Environment overrides: RECHENBOT_STORE_DIR replaces chat.store_dir,
    RECHENBOT_SEED replaces chat.seed.

    Raises:
        FileNotFoundError: If the settings file is missing.
        ValueError: If an intent is malformed or the success message has
            no {result} field.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    chat_raw = raw["chat"]
    store_dir = Path(chat_raw["store_dir"]).expanduser()
    env_store_dir = os.environ.get(STORE_DIR_ENV, "").strip()
    if env_store_dir:
        store_dir = Path(env_store_dir).expanduser()
        logger.info("Store dir from %s: %s", STORE_DIR_ENV, store_dir)

    seed = _parse_seed(chat_raw.get("seed"))
    env_seed = os.environ.get(SEED_ENV, "").strip()
    if env_seed:
        seed = int(env_seed)

    chat = ChatConfig(
        storage_key=str(chat_raw["storage_key"]),
        store_dir=store_dir,
        delay_sec=float(chat_raw["delay_sec"]),
        seed=seed,
    )

    messages_raw = raw["messages"]
    messages = MessagesConfig(
        greeting=str(messages_raw["greeting"]),
        success=str(messages_raw["success"]),
        fallback=str(messages_raw["fallback"]),
    )
    if "{result}" not in messages.success:
        raise ValueError("messages.success must contain a {result} field")

    intents = [
        build_rule(
            name=str(intent_raw["name"]),
            kind=str(intent_raw["match"]),
            phrases=[str(p) for p in intent_raw.get("phrases", [])],
            responses=[str(r) for r in intent_raw.get("responses", [])],
        )
        for intent_raw in raw.get("intents") or []
    ]
    logger.debug("Loaded %d intents", len(intents))

    return AppConfig(chat=chat, messages=messages, intents=intents)
