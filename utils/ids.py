from __future__ import annotations

import re

from models.schema import SPECIALTY_KEY_SEPARATOR

# Realtime Database keys may not contain any of: . # $ [ ]  (nor "/", which is the path separator)
_FORBIDDEN_KEY_CHARS = re.compile(r"[.#$\[\]]")
_WHITESPACE = re.compile(r"\s")


def safe_record_key(value: str) -> str:
    # Same rule the console uses for doctor keys derived from email addresses.
    return _FORBIDDEN_KEY_CHARS.sub("_", (value or "").strip())


def specialty_key(name: str) -> str:
    return _WHITESPACE.sub(SPECIALTY_KEY_SEPARATOR, name)


def specialty_name(key: str) -> str:
    return key.replace(SPECIALTY_KEY_SEPARATOR, " ")
