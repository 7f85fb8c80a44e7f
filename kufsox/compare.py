"""
kufsox: compare two TroopInfo.sox containers.

Field-level differences are reported per scalar; floats compare by their
float32 bit pattern so -0.0 vs 0.0 and NaN payloads show up. Byte-level
helpers map raw file offsets back to troop fields.
"""

from .constants import HEADER_SIZE, TROOP_COUNT, TROOP_SIZE, SOX_SIZE
from .sox import TroopInfoSox, blank_troop, f32_bits, troop_fields

# Field path of each 4-byte word inside a troop record
_WORD_PATHS = [path for path, _, _ in troop_fields(blank_troop())]
_THE_END_OFFSET = HEADER_SIZE + TROOP_COUNT * TROOP_SIZE


def _same(code, a, b):
    if code == 'f':
        return f32_bits(a) == f32_bits(b)
    return a == b


def diff_sox(current: TroopInfoSox, edited: TroopInfoSox) -> list:
    """
    List every scalar that differs between two containers.

    Returns a list of dicts: {'path', 'troop', 'current', 'edited'}, where
    'troop' is the record index (None for header fields and the trailer).
    """
    diffs = []

    for name in ('version', 'count'):
        a, b = getattr(current, name), getattr(edited, name)
        if a != b:
            diffs.append({'path': name, 'troop': None, 'current': a, 'edited': b})

    if len(current.troop_infos) != len(edited.troop_infos):
        diffs.append({
            'path': 'troop_infos', 'troop': None,
            'current': len(current.troop_infos), 'edited': len(edited.troop_infos),
        })

    for idx, (cur, new) in enumerate(zip(current.troop_infos, edited.troop_infos)):
        for (path, code, a), (_, _, b) in zip(troop_fields(cur), troop_fields(new)):
            if not _same(code, a, b):
                diffs.append({
                    'path': f"troop_infos[{idx}].{path}", 'troop': idx,
                    'current': a, 'edited': b,
                })

    if bytes(current.the_end) != bytes(edited.the_end):
        diffs.append({
            'path': 'the_end', 'troop': None,
            'current': bytes(current.the_end), 'edited': bytes(edited.the_end),
        })

    return diffs


def first_byte_difference(a: bytes, b: bytes):
    """Offset of the first differing byte, or None if a == b."""
    for i, (x, y) in enumerate(zip(a, b)):
        if x != y:
            return i
    if len(a) != len(b):
        return min(len(a), len(b))
    return None


def count_byte_differences(a: bytes, b: bytes) -> int:
    diffs = sum(1 for x, y in zip(a, b) if x != y)
    return diffs + abs(len(a) - len(b))


def describe_offset(offset: int) -> str:
    """Name the field a byte offset of a TroopInfo.sox image falls into."""
    if offset < 0:
        raise ValueError(f"negative offset: {offset}")
    if offset < 4:
        return "version"
    if offset < HEADER_SIZE:
        return "count"
    if offset < _THE_END_OFFSET:
        rel = offset - HEADER_SIZE
        idx = rel // TROOP_SIZE
        return f"troop_infos[{idx}].{_WORD_PATHS[(rel % TROOP_SIZE) // 4]}"
    if offset < SOX_SIZE:
        return f"the_end[{offset - _THE_END_OFFSET}]"
    return "beyond end of file"
