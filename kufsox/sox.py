"""
kufsox: TroopInfo.sox record codec.

Binary layout (little-endian, 6436 bytes):
  +0x0000  int32       version (must be 100)
  +0x0004  int32       count (must be 43)
  +0x0008  43 x 148    troop records, fields in TROOP_FIELDS order,
                       then 3 x (int32 skill_id, float32 skill_per_level),
                       then float32 damage_distribution
  +0x18E4  64 bytes    opaque trailer ("the end"), kept verbatim

Records are plain dicts keyed by field name; level_up_data is a list of
three dicts. Floats hold the exact float32 value.
"""

import math
import struct
from dataclasses import dataclass, field

from .constants import (
    SOX_VERSION, TROOP_COUNT, SOX_SIZE, THE_END_SIZE,
    HEADER_FORMAT, HEADER_SIZE, TROOP_FORMAT, TROOP_SIZE,
    TROOP_FIELDS, LEVEL_UP_KEY, LEVEL_UP_COUNT, LEVEL_UP_FIELDS,
    TROOP_TAIL_FIELDS,
)


class SoxFormatError(ValueError):
    """Data does not match the TroopInfo.sox layout."""


_HEADER = struct.Struct(HEADER_FORMAT)
_TROOP = struct.Struct(TROOP_FORMAT)
_F32 = struct.Struct('<f')


# =============================================================================
# FLOAT32 HELPERS
# =============================================================================

def f32(value: float) -> float:
    """Round value to the nearest float32. OverflowError if out of range."""
    return _F32.unpack(_F32.pack(value))[0]


def f32_bits(value: float) -> int:
    """Raw IEEE-754 single precision bit pattern of value."""
    return struct.unpack('<I', _F32.pack(value))[0]


def shortest_f32(value: float) -> float:
    """
    Shortest decimal that packs to the same float32 as value.

    float32 values widened to Python floats print with noise digits
    (0.1f -> 0.10000000149011612); 9 significant digits always suffice.
    """
    if math.isnan(value) or math.isinf(value):
        return value
    packed = _F32.pack(value)
    for digits in range(1, 10):
        candidate = float(f'{value:.{digits}g}')
        if _F32.pack(candidate) == packed:
            return candidate
    return value


# =============================================================================
# CONTAINER MODEL
# =============================================================================

def _zero(code):
    return 0 if code == 'i' else 0.0


def blank_troop() -> dict:
    """A troop record with every field zeroed."""
    troop = {name: _zero(code) for name, code, _ in TROOP_FIELDS}
    troop[LEVEL_UP_KEY] = [
        {name: _zero(code) for name, code, _ in LEVEL_UP_FIELDS}
        for _ in range(LEVEL_UP_COUNT)
    ]
    for name, code, _ in TROOP_TAIL_FIELDS:
        troop[name] = _zero(code)
    return troop


@dataclass
class TroopInfoSox:
    """Decoded contents of one TroopInfo.sox file."""
    version: int = SOX_VERSION
    count: int = TROOP_COUNT
    troop_infos: list = field(default_factory=list)
    the_end: bytes = bytes(THE_END_SIZE)

    @classmethod
    def blank(cls):
        return cls(troop_infos=[blank_troop() for _ in range(TROOP_COUNT)])


def troop_fields(troop: dict):
    """
    Flatten a troop record into [(path, struct code, value), ...] in file order.

    Paths look like 'defense' or 'level_up_data[2].skill_id'.
    Raises SoxFormatError if a field or level-up entry is missing.
    """
    out = []
    try:
        for name, code, _ in TROOP_FIELDS:
            out.append((name, code, troop[name]))
        entries = troop[LEVEL_UP_KEY]
        if len(entries) != LEVEL_UP_COUNT:
            raise SoxFormatError(
                f"{LEVEL_UP_KEY} needs {LEVEL_UP_COUNT} entries, got {len(entries)}")
        for i, entry in enumerate(entries):
            for name, code, _ in LEVEL_UP_FIELDS:
                out.append((f"{LEVEL_UP_KEY}[{i}].{name}", code, entry[name]))
        for name, code, _ in TROOP_TAIL_FIELDS:
            out.append((name, code, troop[name]))
    except KeyError as e:
        raise SoxFormatError(f"troop record missing field {e.args[0]!r}") from None
    return out


# =============================================================================
# RECORD CODEC
# =============================================================================

def unpack_troop(data: bytes, offset: int = 0) -> dict:
    """Decode one 148-byte troop record starting at offset."""
    values = iter(_TROOP.unpack_from(data, offset))
    troop = {}
    for name, _, _ in TROOP_FIELDS:
        troop[name] = next(values)
    troop[LEVEL_UP_KEY] = []
    for _ in range(LEVEL_UP_COUNT):
        entry = {}
        for name, _, _ in LEVEL_UP_FIELDS:
            entry[name] = next(values)
        troop[LEVEL_UP_KEY].append(entry)
    for name, _, _ in TROOP_TAIL_FIELDS:
        troop[name] = next(values)
    return troop


def pack_troop(troop: dict) -> bytes:
    """Encode one troop record to its 148-byte form."""
    values = [value for _, _, value in troop_fields(troop)]
    try:
        return _TROOP.pack(*values)
    except (struct.error, OverflowError) as e:
        raise SoxFormatError(f"cannot pack troop record: {e}") from None


def decode_sox(data: bytes) -> TroopInfoSox:
    """
    Decode a complete TroopInfo.sox image.

    Raises:
        SoxFormatError: data shorter than SOX_SIZE, or header is not
            version 100 / count 43
    """
    if len(data) < SOX_SIZE:
        raise SoxFormatError(
            f"TroopInfo.sox too short: {len(data)} bytes (need {SOX_SIZE})")

    version, count = _HEADER.unpack_from(data, 0)
    if version != SOX_VERSION or count != TROOP_COUNT:
        raise SoxFormatError(
            f"not a valid SOX file: version={version}, count={count} "
            f"(expected {SOX_VERSION}, {TROOP_COUNT})")

    troops = [unpack_troop(data, HEADER_SIZE + i * TROOP_SIZE)
              for i in range(TROOP_COUNT)]

    # Whatever follows the last record, cut or zero-filled to 64 bytes
    rest = bytes(data[HEADER_SIZE + TROOP_COUNT * TROOP_SIZE:])
    the_end = rest[:THE_END_SIZE].ljust(THE_END_SIZE, b'\x00')

    return TroopInfoSox(version=version, count=count,
                        troop_infos=troops, the_end=the_end)


def encode_sox(sox: TroopInfoSox) -> bytes:
    """
    Encode a container back to the binary layout.

    Raises:
        SoxFormatError: wrong number of records, malformed record,
            trailer not 64 bytes, or a value out of int32/float32 range
    """
    if len(sox.troop_infos) != TROOP_COUNT:
        raise SoxFormatError(
            f"need {TROOP_COUNT} troop records, got {len(sox.troop_infos)}")
    if len(sox.the_end) != THE_END_SIZE:
        raise SoxFormatError(
            f"trailer must be {THE_END_SIZE} bytes, got {len(sox.the_end)}")

    try:
        header = _HEADER.pack(sox.version, sox.count)
    except struct.error as e:
        raise SoxFormatError(f"cannot pack header: {e}") from None

    parts = [header]
    for idx, troop in enumerate(sox.troop_infos):
        try:
            parts.append(pack_troop(troop))
        except SoxFormatError as e:
            raise SoxFormatError(f"troop #{idx}: {e}") from None
    parts.append(bytes(sox.the_end))
    return b''.join(parts)
