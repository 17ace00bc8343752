"""Store health check: make sure the transcript can be saved before chatting."""

import logging

from rechenbot.storage import KeyValueStore, StoreError

logger = logging.getLogger(__name__)

_PROBE_VALUE = b"[]"


def check_store(store: KeyValueStore, key: str) -> tuple[bool, str]:
    """Write and delete a probe record next to the transcript key.

    Returns:
        (ok, error_message). error_message is "" when ok is True.
    """
    probe_key = f"{key}.probe"
    try:
        store.set(probe_key, _PROBE_VALUE)
        if store.get(probe_key) != _PROBE_VALUE:
            return False, "probe record did not read back"
        store.delete(probe_key)
    except StoreError as exc:
        logger.debug("Store probe failed: %s", exc)
        return False, str(exc)
    return True, ""
