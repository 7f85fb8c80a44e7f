#!/usr/bin/env python
"""
Kingdom Under Fire: The Crusaders - TroopInfo.sox Editor
=========================================================
Converts Data/SOX/TroopInfo.sox (troop stats) to an editable YAML file
and writes the edited YAML back into the SOX file.

The YAML file defaults to TroopInfo.yaml next to the SOX file.

Usage:
  python troopinfo_editor.py                       # Show summary
  python troopinfo_editor.py --update              # SOX -> TroopInfo.yaml
  python troopinfo_editor.py --diff                # Show what --write would change
  python troopinfo_editor.py --write               # TroopInfo.yaml -> SOX (keeps a .bak)
  python troopinfo_editor.py --restore             # Copy TroopInfo.sox.bak back
  python troopinfo_editor.py --debug               # Dump every decoded field
  python troopinfo_editor.py --debug --troop 3     # Dump troop #3 only
  python troopinfo_editor.py --sox TroopInfo.sox --update
"""

import argparse
import os
import shutil
import sys

# Add parent dir to path for kufsox imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from kufsox.constants import (
    DEFAULT_SOX_PATH, BACKUP_SUFFIX, SOX_SIZE, TROOP_COUNT,
    TROOP_FIELDS, LEVEL_UP_FIELDS, TROOP_TAIL_FIELDS, troop_name,
)
from kufsox.sox import SoxFormatError, decode_sox, encode_sox, shortest_f32, troop_fields
from kufsox.text import sox_to_yaml, sox_from_yaml
from kufsox.compare import (
    diff_sox, first_byte_difference, count_byte_differences, describe_offset,
)


FIELD_DESCRIPTIONS = {
    name: desc for name, _, desc in TROOP_FIELDS + LEVEL_UP_FIELDS + TROOP_TAIL_FIELDS
}


# =============================================================================
# FILE I/O
# =============================================================================

def default_yaml_path(sox_path):
    return os.path.splitext(sox_path)[0] + '.yaml'


def read_sox(path):
    """Read and decode a SOX file. Returns (container, raw bytes)."""
    with open(path, 'rb') as f:
        raw = f.read()
    sox = decode_sox(raw)
    print(f"  Loaded: {path} ({len(raw):,} bytes)")
    if len(raw) > SOX_SIZE:
        print(f"  Note: {len(raw) - SOX_SIZE:,} bytes past the {SOX_SIZE:,}-byte layout are ignored")
    return sox, raw


def read_yaml(path, the_end=None):
    with open(path, 'r', encoding='utf-8') as f:
        text = f.read()
    sox = sox_from_yaml(text, the_end=the_end)
    print(f"  Loaded: {path}")
    return sox


def write_yaml(path, text):
    with open(path, 'w', encoding='utf-8', newline='\n') as f:
        f.write(text)
    print(f"  Saved: {path}")


def write_with_backup(path, data):
    """Write data to path, copying the existing file to path.bak first if no backup exists."""
    backup = path + BACKUP_SUFFIX
    if os.path.exists(path) and not os.path.exists(backup):
        shutil.copy2(path, backup)
        print(f"  Backup: {backup}")
    with open(path, 'wb') as f:
        f.write(data)
    print(f"  Saved: {len(data):,} bytes → {path}")


def restore_backup(path):
    backup = path + BACKUP_SUFFIX
    shutil.copyfile(backup, path)
    print(f"  Restored: {backup} → {path} ({os.path.getsize(path):,} bytes)")


# =============================================================================
# DISPLAY FUNCTIONS
# =============================================================================

def format_value(value):
    if isinstance(value, float):
        return repr(shortest_f32(value))
    if isinstance(value, (bytes, bytearray)):
        return ' '.join(f'{b:02X}' for b in value)
    return str(value)


def hex_lines(data, indent='  '):
    lines = []
    for i in range(0, len(data), 16):
        chunk = data[i:i + 16]
        hex_str = ' '.join(f'{b:02X}' for b in chunk)
        asc = ''.join(chr(b) if 32 <= b < 127 else '.' for b in chunk)
        lines.append(f"{indent}{i:04X}: {hex_str:<48}  {asc}")
    return lines


def show_troop(sox, idx):
    print(f"\n=== Troop #{idx}: {troop_name(idx)} ===")
    for path, _, value in troop_fields(sox.troop_infos[idx]):
        desc = FIELD_DESCRIPTIONS[path.rsplit('.', 1)[-1]]
        print(f"  {path:<30} {format_value(value):>14}  {desc}")


def show_debug(sox, troop_idx=None):
    """Pretty-print the decoded container (or a single troop)."""
    if troop_idx is not None:
        show_troop(sox, troop_idx)
        return

    print(f"\n  Version: {sox.version}")
    print(f"  Count:   {sox.count}")
    for idx in range(len(sox.troop_infos)):
        show_troop(sox, idx)
    print(f"\n=== Trailer ({len(sox.the_end)} bytes) ===")
    for line in hex_lines(sox.the_end):
        print(line)


def show_summary(sox, size):
    print(f"\n{'='*72}")
    print(f" TroopInfo.sox: version {sox.version}, {sox.count} troops, {size:,} bytes")
    print(f"{'='*72}\n")
    fmt = "{:>3}  {:<28}  {:>4}  {:>5}  {:>8}  {:>7}  {:>7}  {:>7}"
    print(fmt.format("#", "Name", "Job", "Type", "HP", "Direct", "Defense", "Speed"))
    print(fmt.format("---", "---", "---", "---", "---", "---", "---", "---"))
    for i, t in enumerate(sox.troop_infos):
        print(fmt.format(
            i, troop_name(i), t['job'], t['type_id'],
            format_value(t['default_unit_hp']),
            format_value(t['direct_attack']),
            format_value(t['defense']),
            format_value(t['move_speed']),
        ))
    print(f"\n  Use --update to write the YAML file, --diff / --write to apply it.")


def show_diff(current, edited, current_data, edited_data):
    """Report what writing `edited` over `current` would change. Returns the diff count."""
    diffs = diff_sox(current, edited)

    if not diffs:
        print("\n[OK] No field differences")
    else:
        print(f"\n[DIFF] {len(diffs)} field differences (current → YAML):")
        for d in diffs:
            where = f" ({troop_name(d['troop'])})" if d['troop'] is not None else ""
            print(f"  {d['path']}{where}: {format_value(d['current'])} → {format_value(d['edited'])}")

    byte_diffs = count_byte_differences(current_data, edited_data)
    print(f"\nOverall: {byte_diffs:,} bytes differ out of "
          f"{max(len(current_data), len(edited_data)):,}")
    first = first_byte_difference(current_data, edited_data)
    if first is None:
        print("Files are byte-identical!")
    else:
        print(f"First difference at byte {first} (0x{first:04X}) [{describe_offset(first)}]")
    return len(diffs)


# =============================================================================
# MAIN
# =============================================================================

def run(args, yaml_path):
    if args.restore:
        restore_backup(args.sox)
        return 0

    sox, raw = read_sox(args.sox)

    if args.debug:
        show_debug(sox, args.troop)
        return 0

    if args.update:
        write_yaml(yaml_path, sox_to_yaml(sox))
        return 0

    if args.diff or args.write:
        # The trailer is not part of the YAML; carry over the current one
        edited = read_yaml(yaml_path, the_end=sox.the_end)
        data = encode_sox(edited)
        if args.diff:
            show_diff(sox, edited, raw, data)
            return 0
        write_with_backup(args.sox, data)
        return 0

    show_summary(sox, len(raw))
    return 0


def main(argv=None):
    p = argparse.ArgumentParser(
        description='Kingdom Under Fire: The Crusaders TroopInfo.sox Editor',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --update
  %(prog)s --diff
  %(prog)s --write
  %(prog)s --sox TroopInfo.sox --yaml edited.yaml --write
        """)
    mode = p.add_mutually_exclusive_group()
    mode.add_argument('--restore', action='store_true',
                      help='Restore TroopInfo.sox from its .bak backup')
    mode.add_argument('--debug', action='store_true',
                      help='Pretty-print the decoded SOX file to stdout')
    mode.add_argument('--diff', action='store_true',
                      help='Show what --write would change in the SOX file')
    mode.add_argument('--write', action='store_true',
                      help='Write the YAML file back into the SOX file')
    mode.add_argument('--update', action='store_true',
                      help='Regenerate the YAML file from the SOX file')
    p.add_argument('--sox', default=DEFAULT_SOX_PATH, metavar='FILE',
                   help='TroopInfo.sox path (default: Steam install)')
    p.add_argument('--yaml', default=None, metavar='FILE',
                   help='YAML path (default: TroopInfo.yaml next to the SOX file)')
    p.add_argument('--troop', type=int, default=None, metavar='N',
                   help='With --debug: show troop N only')
    args = p.parse_args(argv)

    if args.troop is not None:
        if not args.debug:
            p.error("--troop requires --debug")
        if not 0 <= args.troop < TROOP_COUNT:
            p.error(f"--troop must be 0-{TROOP_COUNT - 1}")

    yaml_path = args.yaml or default_yaml_path(args.sox)

    try:
        return run(args, yaml_path)
    except (SoxFormatError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main() or 0)
