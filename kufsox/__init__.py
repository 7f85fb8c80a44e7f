"""kufsox: Kingdom Under Fire SOX data library."""
from .constants import (  # noqa: F401
    SOX_VERSION, TROOP_COUNT, TROOP_SIZE, SOX_SIZE, THE_END_SIZE,
    TROOP_NAMES, troop_name,
    DEFAULT_SOX_PATH, BACKUP_SUFFIX,
)
from .sox import (  # noqa: F401
    SoxFormatError, TroopInfoSox, blank_troop, decode_sox, encode_sox,
)
from .text import sox_to_yaml, sox_from_yaml  # noqa: F401
from .compare import diff_sox, first_byte_difference, describe_offset  # noqa: F401
