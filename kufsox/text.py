"""
kufsox: YAML text form of TroopInfo.sox.

The document starts with one comment line per troop ('# 3 -- Spearman'),
followed by a mapping with keys version, count and troop_infos. Comments
are annotation only and are never read back. The 64-byte trailer is not
part of the text form.
"""

import math
import re

import yaml

from .constants import (
    SOX_VERSION, TROOP_COUNT, THE_END_SIZE, INT32_MIN, INT32_MAX,
    TROOP_FIELDS, LEVEL_UP_KEY, LEVEL_UP_COUNT, LEVEL_UP_FIELDS,
    TROOP_TAIL_FIELDS, TROOP_NAMES,
)
from .sox import SoxFormatError, TroopInfoSox, f32, shortest_f32


# =============================================================================
# YAML 1.2 CORE SCHEMA LOADER
# =============================================================================

_BOOL_TAG = 'tag:yaml.org,2002:bool'
_INT_TAG = 'tag:yaml.org,2002:int'
_FLOAT_TAG = 'tag:yaml.org,2002:float'


class SoxLoader(yaml.SafeLoader):
    """
    SafeLoader with YAML 1.2 core schema scalars and strict mappings.

    PyYAML follows YAML 1.1: '010' is octal 8, '1:30' is 90 and '1e3' is a
    string. Here '010' is 10, '1e3' is 1000.0 and '1:30' stays a string.
    Duplicate mapping keys are an error.
    """

    def construct_mapping(self, node, deep=False):
        if isinstance(node, yaml.MappingNode):
            self.flatten_mapping(node)
            seen = set()
            for key_node, _ in node.value:
                key = self.construct_object(key_node, deep=deep)
                try:
                    duplicate = key in seen
                except TypeError:
                    continue
                if duplicate:
                    raise yaml.constructor.ConstructorError(
                        "while constructing a mapping", node.start_mark,
                        f"found duplicate key {key!r}", key_node.start_mark)
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


def _construct_int(loader, node):
    value = loader.construct_scalar(node)
    if value.startswith('0o'):
        return int(value[2:], 8)
    if value.startswith('0x'):
        return int(value[2:], 16)
    return int(value)


def _construct_float(loader, node):
    value = loader.construct_scalar(node).lower()
    if value in ('.inf', '+.inf'):
        return math.inf
    if value == '-.inf':
        return -math.inf
    if value == '.nan':
        return math.nan
    return float(value)


SoxLoader.yaml_implicit_resolvers = {
    first: [(tag, rx) for tag, rx in resolvers
            if tag not in (_BOOL_TAG, _INT_TAG, _FLOAT_TAG)]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
SoxLoader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r'^(?:true|True|TRUE|false|False|FALSE)$'),
    list('tTfF'))
SoxLoader.add_implicit_resolver(
    _INT_TAG,
    re.compile(r'^(?:[-+]?[0-9]+|0o[0-7]+|0x[0-9a-fA-F]+)$'),
    list('-+0123456789'))
SoxLoader.add_implicit_resolver(
    _FLOAT_TAG,
    re.compile(r'''^(?:[-+]?(?:\.[0-9]+|[0-9]+(?:\.[0-9]*)?)(?:[eE][-+]?[0-9]+)?
                |[-+]?\.(?:inf|Inf|INF)
                |\.(?:nan|NaN|NAN))$''', re.X),
    list('-+.0123456789'))
SoxLoader.add_constructor(_INT_TAG, _construct_int)
SoxLoader.add_constructor(_FLOAT_TAG, _construct_float)


# =============================================================================
# SOX -> YAML
# =============================================================================

def _scalar_out(code, value):
    return shortest_f32(value) if code == 'f' else value


def troop_to_doc(troop: dict) -> dict:
    """Troop record as an ordered mapping ready for yaml.safe_dump."""
    doc = {name: _scalar_out(code, troop[name]) for name, code, _ in TROOP_FIELDS}
    doc[LEVEL_UP_KEY] = [
        {name: _scalar_out(code, entry[name]) for name, code, _ in LEVEL_UP_FIELDS}
        for entry in troop[LEVEL_UP_KEY]
    ]
    for name, code, _ in TROOP_TAIL_FIELDS:
        doc[name] = _scalar_out(code, troop[name])
    return doc


def sox_to_yaml(sox: TroopInfoSox) -> str:
    """Render a decoded container as an annotated YAML document."""
    header = ''.join(f"# {i} -- {name}\n" for i, name in enumerate(TROOP_NAMES))
    doc = {
        'version': sox.version,
        'count': sox.count,
        'troop_infos': [troop_to_doc(t) for t in sox.troop_infos],
    }
    return header + yaml.safe_dump(doc, sort_keys=False, default_flow_style=False)


# =============================================================================
# YAML -> SOX
# =============================================================================

def _scalar_in(mapping, name, code, where):
    if name not in mapping:
        raise SoxFormatError(f"{where or 'document'}: missing field {name!r}")
    value = mapping[name]
    label = f"{where}.{name}" if where else name

    # YAML booleans load as bool, which is an int subclass
    if isinstance(value, bool):
        raise SoxFormatError(f"{label}: expected a number, got {value!r}")

    if code == 'i':
        if not isinstance(value, int):
            raise SoxFormatError(f"{label}: expected an integer, got {value!r}")
        if not INT32_MIN <= value <= INT32_MAX:
            raise SoxFormatError(f"{label}: {value} out of int32 range")
        return value

    if not isinstance(value, (int, float)):
        raise SoxFormatError(f"{label}: expected a number, got {value!r}")
    try:
        return f32(float(value))
    except OverflowError:
        raise SoxFormatError(f"{label}: {value} out of float32 range") from None


def _mapping(value, where):
    if not isinstance(value, dict):
        raise SoxFormatError(f"{where}: expected a mapping, got {type(value).__name__}")
    return value


def _sequence(value, length, where):
    if not isinstance(value, list):
        raise SoxFormatError(f"{where}: expected a list, got {type(value).__name__}")
    if len(value) != length:
        raise SoxFormatError(f"{where}: expected {length} entries, got {len(value)}")
    return value


def troop_from_doc(doc, where: str) -> dict:
    """Validate one troop mapping and convert it to a record dict."""
    doc = _mapping(doc, where)
    troop = {}
    for name, code, _ in TROOP_FIELDS:
        troop[name] = _scalar_in(doc, name, code, where)

    if LEVEL_UP_KEY not in doc:
        raise SoxFormatError(f"{where}: missing field {LEVEL_UP_KEY!r}")
    entries = _sequence(doc[LEVEL_UP_KEY], LEVEL_UP_COUNT, f"{where}.{LEVEL_UP_KEY}")
    troop[LEVEL_UP_KEY] = []
    for i, entry in enumerate(entries):
        entry_where = f"{where}.{LEVEL_UP_KEY}[{i}]"
        entry = _mapping(entry, entry_where)
        troop[LEVEL_UP_KEY].append({
            name: _scalar_in(entry, name, code, entry_where)
            for name, code, _ in LEVEL_UP_FIELDS
        })

    for name, code, _ in TROOP_TAIL_FIELDS:
        troop[name] = _scalar_in(doc, name, code, where)
    return troop


def sox_from_yaml(text: str, the_end: bytes = None) -> TroopInfoSox:
    """
    Parse the YAML text form back into a container.

    Every field is required; unknown keys are ignored. The trailer is
    taken from the_end when given (e.g. from the decoded source file),
    otherwise it is zero-filled.

    Raises:
        SoxFormatError: invalid YAML, header mismatch, wrong list length,
            missing or non-numeric field
    """
    try:
        doc = yaml.load(text, Loader=SoxLoader)
    except yaml.YAMLError as e:
        raise SoxFormatError(f"invalid YAML: {e}") from None

    doc = _mapping(doc, "document")
    version = _scalar_in(doc, 'version', 'i', "")
    count = _scalar_in(doc, 'count', 'i', "")
    if version != SOX_VERSION or count != TROOP_COUNT:
        raise SoxFormatError(
            f"unsupported header: version={version}, count={count} "
            f"(expected {SOX_VERSION}, {TROOP_COUNT})")

    if 'troop_infos' not in doc:
        raise SoxFormatError("missing field 'troop_infos'")
    troops = [
        troop_from_doc(t, f"troop_infos[{i}]")
        for i, t in enumerate(_sequence(doc['troop_infos'], TROOP_COUNT, "troop_infos"))
    ]

    if the_end is None:
        the_end = bytes(THE_END_SIZE)
    return TroopInfoSox(version=version, count=count,
                        troop_infos=troops, the_end=bytes(the_end))
