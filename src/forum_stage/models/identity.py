"""Acting identity of a post submission.

Raw user ids arrive as ints or strings from several entry points. They are
parsed once, at the normalization boundary, into either an authenticated
identity or the guest identity so that nothing downstream relies on numeric
truthiness.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from forum_stage.core.errors import InvalidActorError

GUEST_UID = 0

_UID_PATTERN = re.compile(r"-?[0-9]+")


@dataclass(frozen=True)
class Authenticated:
    """A registered user."""

    uid: int

    @property
    def is_guest(self) -> bool:
        return False


@dataclass(frozen=True)
class Guest:
    """The shared unauthenticated identity."""

    @property
    def uid(self) -> int:
        return GUEST_UID

    @property
    def is_guest(self) -> bool:
        return True


Actor = Authenticated | Guest

GUEST = Guest()


def parse_actor(raw: Any) -> Actor:
    """Parse a raw user id into an :data:`Actor`.

    ``0`` and ``"0"`` are the guest identity. Positive integers, or their
    decimal string form, are authenticated users.

    Raises:
        InvalidActorError: If the value is missing, not an integer, or negative.
    """
    if raw is None or isinstance(raw, bool):
        raise InvalidActorError()
    if isinstance(raw, int):
        uid = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if not _UID_PATTERN.fullmatch(text):
            raise InvalidActorError()
        uid = int(text)
    else:
        raise InvalidActorError()

    if uid < 0:
        raise InvalidActorError()
    if uid == GUEST_UID:
        return GUEST
    return Authenticated(uid)
