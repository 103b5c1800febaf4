from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

UNKNOWN_CHANNEL_KEY = "unknown"


@dataclass(frozen=True)
class SenderIdentity:
    """Raw sender fields as handed over by the ingestion pipeline."""

    email: Optional[str] = None
    name: Optional[str] = None
    channel_id: Optional[str] = None


@dataclass(frozen=True)
class NormalizedIdentity:
    email: Optional[str]
    channel_key: str
    display_name: str
    first_name: Optional[str]
    last_name: Optional[str]
    sender_name: Optional[str]

    @property
    def has_name(self) -> bool:
        return self.sender_name is not None


Rule = tuple[Callable[[SenderIdentity, Optional[str]], bool], Callable[[SenderIdentity, Optional[str]], str]]

# Most reliable discriminator first: platform id, then email, then free-text name.
CHANNEL_KEY_RULES: Sequence[Rule] = (
    (lambda raw, email: bool(raw.channel_id), lambda raw, email: raw.channel_id),
    (lambda raw, email: bool(email), lambda raw, email: email),
    (lambda raw, email: bool(raw.name), lambda raw, email: raw.name),
)

DISPLAY_NAME_RULES: Sequence[Rule] = (
    (lambda raw, email: bool(raw.name), lambda raw, email: raw.name),
    (lambda raw, email: bool(email), lambda raw, email: email),
)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _first_match(rules: Sequence[Rule], raw: SenderIdentity, email: Optional[str], default: str) -> str:
    for predicate, extractor in rules:
        if predicate(raw, email):
            return extractor(raw, email)
    return default


def split_name(name: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """Split on the first whitespace run: ("Ana Maria Souza") -> ("Ana", "Maria Souza")."""
    if not name:
        return None, None
    parts = name.split(None, 1)
    first = parts[0]
    last = parts[1] if len(parts) > 1 else None
    return first, last


def normalize_email(value: Optional[str]) -> Optional[str]:
    cleaned = _clean(value)
    return cleaned.lower() if cleaned else None


def normalize_identity(
    sender_email: Optional[str] = None,
    sender_name: Optional[str] = None,
    channel_id: Optional[str] = None,
) -> NormalizedIdentity:
    """Canonicalize an inbound sender identity. Never raises."""

    raw = SenderIdentity(
        email=_clean(sender_email),
        name=_clean(sender_name),
        channel_id=_clean(channel_id),
    )
    email = normalize_email(raw.email)
    channel_key = _first_match(CHANNEL_KEY_RULES, raw, email, UNKNOWN_CHANNEL_KEY)
    display_name = _first_match(DISPLAY_NAME_RULES, raw, email, channel_key)
    first_name, last_name = split_name(raw.name)

    return NormalizedIdentity(
        email=email,
        channel_key=channel_key,
        display_name=display_name,
        first_name=first_name,
        last_name=last_name,
        sender_name=raw.name,
    )
