"""
Pytest fixtures: synthetic TroopInfo.sox images.
"""

import struct
import sys
from pathlib import Path

import pytest

# Add project paths
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
sys.path.insert(0, str(PROJECT_ROOT / "tools"))

from kufsox.constants import (  # noqa: E402
    SOX_VERSION, TROOP_COUNT, TROOP_FORMAT, THE_END_SIZE,
)
from kufsox.sox import decode_sox  # noqa: E402


def make_sox_bytes(version=SOX_VERSION, count=TROOP_COUNT, the_end=None):
    """
    Build a TroopInfo.sox image where every word is distinct.

    Integer word n of troop t holds t * 100 + n; float words hold
    (t + 1) * 0.25 + n / 10 rounded to float32.
    """
    codes = TROOP_FORMAT[1:]
    parts = [struct.pack('<ii', version, count)]
    for t in range(TROOP_COUNT):
        values = []
        for n, code in enumerate(codes):
            if code == 'i':
                values.append(t * 100 + n)
            else:
                values.append((t + 1) * 0.25 + n / 10)
        parts.append(struct.pack(TROOP_FORMAT, *values))
    if the_end is None:
        the_end = bytes(range(1, THE_END_SIZE + 1))
    parts.append(the_end)
    return b''.join(parts)


@pytest.fixture
def sox_bytes():
    return make_sox_bytes()


@pytest.fixture
def sox(sox_bytes):
    return decode_sox(sox_bytes)


@pytest.fixture
def sox_file(tmp_path, sox_bytes):
    path = tmp_path / "TroopInfo.sox"
    path.write_bytes(sox_bytes)
    return path


@pytest.fixture
def make_sox():
    return make_sox_bytes
