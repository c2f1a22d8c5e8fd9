"""
Store identifier classification.

A tenant can be named by two identifier formats:
- Canonical tenant UUID: "123e4567-e89b-12d3-a456-426614174000"
- Peer commerce store id: "store_01HQWE1234567890"

classify() is a total function: every input maps to exactly one IdFormat
and nothing here touches storage.
"""

import re
from functools import lru_cache
from enum import Enum
from typing import Any

DEFAULT_PEER_PREFIX = "store_"

_UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)


class IdFormat(str, Enum):
    UUID = "uuid"
    PEER = "peer"
    UNKNOWN = "unknown"


@lru_cache(maxsize=8)
def _peer_pattern(prefix: str) -> re.Pattern:
    return re.compile(re.escape(prefix) + r"[A-Za-z0-9]+")


def is_uuid(value: Any) -> bool:
    return isinstance(value, str) and _UUID_PATTERN.fullmatch(value) is not None


def is_peer_id(value: Any, prefix: str = DEFAULT_PEER_PREFIX) -> bool:
    if not isinstance(value, str) or not prefix:
        return False
    return _peer_pattern(prefix).fullmatch(value) is not None


def classify(raw: Any, prefix: str = DEFAULT_PEER_PREFIX) -> IdFormat:
    """
    Classify a raw scope identifier.

    Args:
        raw: Header value (any type, usually str or None)
        prefix: Peer identifier prefix

    Returns:
        IdFormat.UUID, IdFormat.PEER or IdFormat.UNKNOWN
    """
    if is_uuid(raw):
        return IdFormat.UUID
    if is_peer_id(raw, prefix):
        return IdFormat.PEER
    return IdFormat.UNKNOWN


def canonical_uuid(value: str) -> str:
    """Lower-case form used for storage keys"""
    return value.lower()
