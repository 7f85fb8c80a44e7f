"""
kufsox: SOX layout constants and data tables.

Kingdom Under Fire: The Crusaders, Data/SOX/TroopInfo.sox.
All values are little-endian; 'i' = int32, 'f' = float32 (struct codes).
"""

import ntpath
import struct


# =============================================================================
# FILE LOCATIONS (Steam install)
# =============================================================================

DEFAULT_SOX_DIR = ntpath.join(
    "C:\\Program Files (x86)", "Steam", "steamapps", "common",
    "KUF Crusader", "Data", "SOX",
)
DEFAULT_SOX_PATH  = ntpath.join(DEFAULT_SOX_DIR, "TroopInfo.sox")
BACKUP_SUFFIX     = ".bak"


# =============================================================================
# SOX HEADER
# =============================================================================

SOX_VERSION = 100
TROOP_COUNT = 43
HEADER_FORMAT = "<ii"                       # version, count
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)
THE_END_SIZE = 64                           # opaque trailer after the records


# =============================================================================
# TROOP RECORD LAYOUT
# =============================================================================

# Scalars before level_up_data, in file order: (name, struct code, description)
TROOP_FIELDS = [
    ("job",                       "i", "Job type (K2JobDef.h)"),
    ("type_id",                   "i", "Troop type ID (K2TroopDef.h)"),
    ("move_speed",                "f", "Max move speed"),
    ("rotate_rate",               "f", "Max rotate rate"),
    ("move_acceleration",         "f", "Move acceleration"),
    ("move_deceleration",         "f", "Move deceleration"),
    ("sight_range",               "f", "Visible range"),
    ("attack_range_max",          "f", "Max attack range"),
    ("attack_range_min",          "f", "Ranged attack range (0 = no ranged attack)"),
    ("attack_front_range",        "f", "Frontal attack range (0 = no frontal attack)"),
    ("direct_attack",             "f", "Direct (melee/frontal) attack strength"),
    ("indirect_attack",           "f", "Indirect (ranged) attack strength"),
    ("defense",                   "f", "Defense strength"),
    ("base_width",                "f", "Base troop size"),
    ("resist_melee",              "f", "Melee resistance"),
    ("resist_ranged",             "f", "Ranged resistance"),
    ("resist_frontal",            "f", "Frontal resistance"),
    ("resist_explosion",          "f", "Explosion resistance"),
    ("resist_fire",               "f", "Fire resistance"),
    ("resist_ice",                "f", "Ice resistance"),
    ("resist_lightning",          "f", "Lightning resistance"),
    ("resist_holy",               "f", "Holy resistance"),
    ("resist_curse",              "f", "Curse resistance"),
    ("resist_poison",             "f", "Poison resistance"),
    ("max_unit_speed_multiplier", "f", "Max unit speed multiplier"),
    ("default_unit_hp",           "f", "Default unit HP"),
    ("formation_random",          "i", "Formation randomness"),
    ("default_unit_num_x",        "i", "Default units per row"),
    ("default_unit_num_y",        "i", "Default rows"),
    ("unit_hp_lev_up",            "f", "Unit HP gained per level"),
]

LEVEL_UP_KEY = "level_up_data"
LEVEL_UP_COUNT = 3
LEVEL_UP_FIELDS = [
    ("skill_id",        "i", "Skill ID"),
    ("skill_per_level", "f", "Skill gained per level"),
]

# Scalars after level_up_data
TROOP_TAIL_FIELDS = [
    ("damage_distribution",       "f", "Damage distribution"),
]

TROOP_FORMAT = "<" + "".join(
    [code for _, code, _ in TROOP_FIELDS]
    + [code for _, code, _ in LEVEL_UP_FIELDS] * LEVEL_UP_COUNT
    + [code for _, code, _ in TROOP_TAIL_FIELDS]
)
TROOP_SIZE = struct.calcsize(TROOP_FORMAT)   # 148

SOX_SIZE = HEADER_SIZE + TROOP_COUNT * TROOP_SIZE + THE_END_SIZE   # 6436

INT32_MIN = -2**31
INT32_MAX = 2**31 - 1


# =============================================================================
# TROOP NAMES (record index -> unit name, annotation only)
# =============================================================================

TROOP_NAMES = [
    "Archer",
    "Longbows",
    "Infantry",
    "Spearman",
    "Heavy Infantry",
    "Knight",
    "Paladin",
    "Calvary",
    "Heavy Calvary",
    "Storm Riders",
    "Sappers",
    "Pyro Techs",
    "Bomber Wings",
    "Mortar",
    "Ballista",
    "Harpoon",
    "Catapult",
    "Battaloon",
    "Dark Elves Archer",
    "Dark Elves Calvary Archers",
    "Dark Elves Infantry",
    "Dark Elves Knights",
    "Dark Elves Calvary",
    "Orc Infantry",
    "Orc Riders",
    "Orc Heavy Riders",
    "Orc Axe Man",
    "Orc Heavy Infantry",
    "Orc Sappers",
    "Orc Scorpion",
    "Orc Swamp Mammoth",
    "Orc Dirigible",
    "Orc Black Wyverns",
    "Orc Ghouls",
    "Orc Bone Dragon",
    "Wall Archers (Humans)",
    "Scouts",
    "Ghoul Selfdestruct",
    "Encablossa Monster (Melee)",
    "Encablossa Flying Monster",
    "Encablossa Monster (Ranged)",
    "Wall Archers (Elves)",
    "Encablossa Main",
]


def troop_name(idx: int) -> str:
    """Human-readable name for a troop record index."""
    if 0 <= idx < len(TROOP_NAMES):
        return TROOP_NAMES[idx]
    return f"Troop {idx}"
