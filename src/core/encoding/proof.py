"""Proof codec: a set of quest badges <-> a short ASCII string.

Wire format::

    v1.<lowercase hex>.<unix timestamp or empty>.<unique id or empty>

Every series owns a fixed-width field of `SLOTS_PER_SERIES` bits. Bit 0 of a
field is the series' special badge (`SSQnn`), bits 1..8 are tasks `SQnn01`
to `SQnn08`. Series 1 sits in the lowest field, series 2 right above it, and
so on. Tasks above `MAX_TASK` have no slot and are left out.
"""

from __future__ import annotations

import logging
import re
from functools import reduce
from typing import Iterable

from core.domain.errors import ProofEncodingError, ProofError, ProofErrorKind
from core.domain.models import BadgeDefinition, Proof, dedupe_badges

logger = logging.getLogger(__name__)

VERSION = "v1"
FIELD_DELIMITER = "."
SLOTS_PER_SERIES = 9
MAX_TASK = SLOTS_PER_SERIES - 1
SPECIAL_TASK = 0

_SPECIAL_CODE = re.compile(r"SSQ(\d{2})")
_TASK_CODE = re.compile(r"SQ(\d{2})(\d{2})")
_HEX = re.compile(r"[0-9a-fA-F]+")
_DECIMAL = re.compile(r"[0-9]+")


def parse_quest_code(code: str) -> tuple[int, int]:
    """Split a badge code into `(series, task)`; special badges are task 0."""

    special = _SPECIAL_CODE.fullmatch(code)
    if special:
        series, task = int(special.group(1)), SPECIAL_TASK
    else:
        regular = _TASK_CODE.fullmatch(code)
        if not regular:
            raise ProofEncodingError(f"Not a quest badge code: {code!r}")
        series, task = int(regular.group(1)), int(regular.group(2))
        if task == SPECIAL_TASK:
            raise ProofEncodingError(f"Task index must be 1-99: {code!r}")
    if series < 1:
        raise ProofEncodingError(f"Series index must be 1-99: {code!r}")
    return series, task


def quest_code(series: int, task: int) -> str:
    """Inverse of `parse_quest_code`."""

    if task == SPECIAL_TASK:
        return f"SSQ{series:02}"
    return f"SQ{series:02}{task:02}"


def is_encodable(badge: BadgeDefinition) -> bool:
    """True when `badge` has a slot in the bit field."""

    try:
        _, task = parse_quest_code(badge.code)
    except ProofEncodingError:
        return False
    return task <= MAX_TASK


def pack_slots(slots: Iterable[tuple[int, int]]) -> int:
    """Fold `(series, task)` pairs into the packed integer."""

    slots = [(series, task) for series, task in slots if task <= MAX_TASK]
    if not slots:
        return 0

    fields = [0] * max(series for series, _ in slots)
    for series, task in slots:
        fields[series - 1] |= 1 << task

    return reduce(
        lambda total, item: total + (item[1] << (SLOTS_PER_SERIES * item[0])),
        enumerate(fields),
        0,
    )


def unpack_slots(value: int) -> list[tuple[int, int]]:
    """Walk `value` LSB first and return every set `(series, task)` slot."""

    slots: list[tuple[int, int]] = []
    series, task = 1, SPECIAL_TASK
    while value:
        if value & 1:
            slots.append((series, task))
        value >>= 1
        task += 1
        if task > MAX_TASK:
            task = SPECIAL_TASK
            series += 1
    return slots


def encode(proof: Proof) -> str:
    """Render `proof` in the v1 wire format.

    Raises:
        ProofEncodingError: a code does not follow the quest grammar, or the
            unique id contains the field delimiter.
    """

    if proof.unique_id is not None and FIELD_DELIMITER in proof.unique_id:
        raise ProofEncodingError(
            f"Proof unique id must not contain {FIELD_DELIMITER!r}"
        )

    badges = dedupe_badges(proof.owned_badges)
    slots = [parse_quest_code(badge.code) for badge in badges]
    total = pack_slots(slots)
    logger.debug("encoding %d badges -> %x", len(badges), total)

    timestamp = "" if proof.timestamp is None else str(proof.timestamp)
    return FIELD_DELIMITER.join([VERSION, format(total, "x"), timestamp, proof.unique_id or ""])


def decode(encoded: str, catalog: list[BadgeDefinition]) -> Proof:
    """Parse a v1 proof string and resolve its badges against `catalog`.

    Badges present in the string but missing from `catalog` are dropped.

    Raises:
        ProofError: fewer than four fields (INVALID_ENCODING) or a version
            other than v1 (WRONG_VERSION).
    """

    parts = encoded.split(FIELD_DELIMITER)
    logger.debug("decoding proof %r: %s", encoded, parts)
    if len(parts) < 4:
        raise ProofError(ProofErrorKind.INVALID_ENCODING, f"expected 4 fields, got {len(parts)}")
    version, hex_value, timestamp_text, *rest = parts
    if version != VERSION:
        raise ProofError(ProofErrorKind.WRONG_VERSION, f"unsupported proof version {version!r}")

    # Malformed numbers are tolerated: no badges / no timestamp.
    value = int(hex_value, 16) if _HEX.fullmatch(hex_value) else 0
    timestamp = int(timestamp_text) if _DECIMAL.fullmatch(timestamp_text) else None
    unique_id = "".join(rest) or None

    names = {quest_code(series, task) for series, task in unpack_slots(value)}
    logger.debug("proof claims %s", sorted(names))

    return Proof(
        owned_badges=[badge for badge in catalog if badge.code in names],
        timestamp=timestamp,
        unique_id=unique_id,
    )
