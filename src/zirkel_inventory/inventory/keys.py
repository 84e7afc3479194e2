"""ZirkelKey construction and sequential key synthesis."""

import re
from typing import Iterable

ZIRKEL_KEY_PREFIX = "ZM"


def build_zirkel_key(provider_code: str, original_key: str) -> str:
    """``ZM<providerCode><originalKey>``, e.g. ("IMU", "101") -> "ZMIMU101"."""
    return f"{ZIRKEL_KEY_PREFIX}{provider_code.strip()}{original_key.strip()}"


def _sequence_pattern(provider_code: str) -> "re.Pattern[str]":
    return re.compile(rf"^{ZIRKEL_KEY_PREFIX}{re.escape(provider_code)}-(\d+)$")


def highest_sequence(existing_keys: Iterable[str], provider_code: str) -> int:
    """Highest ``n`` among keys shaped ``ZM<providerCode>-<n>``, or 0."""
    pattern = _sequence_pattern(provider_code)
    highest = 0
    for key in existing_keys:
        match = pattern.match(str(key).strip())
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def next_sequential_key(existing_keys: Iterable[str], provider_code: str) -> str:
    """The next free ``ZM<providerCode>-<n>`` key."""
    n = highest_sequence(existing_keys, provider_code) + 1
    return f"{ZIRKEL_KEY_PREFIX}{provider_code}-{n}"
