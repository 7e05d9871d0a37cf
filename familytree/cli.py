"""Command line helper for family tree snapshots.

Usage:
  familytree-snapshot new --out family-tree.json
  familytree-snapshot validate family-tree.json
  familytree-snapshot render family-tree.json --out tree.png
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from familytree import snapshot
from familytree.settings import EditorSettings, configure_logging
from familytree.snapshot import SnapshotFormatError
from familytree.tree import check_invariants, make_root

logger = logging.getLogger(__name__)

FORMATS = ("png", "pdf", "svg")


def _cmd_new(args: argparse.Namespace) -> int:
    out = Path(args.out)
    if out.exists() and not args.force:
        raise SystemExit(f"Refusing to overwrite {out} (use --force)")
    snapshot.save_file(out, [make_root()])
    print(f"Wrote {out}")
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    try:
        nodes = snapshot.load_file(args.file)
    except (SnapshotFormatError, OSError) as exc:
        print(f"{args.file}: {exc}", file=sys.stderr)
        return 1

    problems = check_invariants(nodes)
    print(f"{args.file}: {len(nodes)} node(s)")
    for problem in problems:
        print(f"  - {problem}")
    return 1 if problems else 0


def _cmd_render(args: argparse.Namespace) -> int:
    from familytree.export import TreeExporter

    try:
        nodes = snapshot.load_file(args.file)
    except (SnapshotFormatError, OSError) as exc:
        print(f"{args.file}: {exc}", file=sys.stderr)
        return 1

    out = Path(args.out)
    fmt = args.format or out.suffix.lstrip(".").lower()
    if fmt not in FORMATS:
        raise SystemExit(f"Unknown export format {fmt!r}; choose from {', '.join(FORMATS)}")

    scale = args.scale if args.scale is not None else EditorSettings.load().export_scale
    exporter = TreeExporter(scale=scale)
    export = getattr(exporter, f"export_{fmt}")
    if not export(nodes, str(out)):
        print("Nothing to export", file=sys.stderr)
        return 1
    print(f"Exported to {out}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="familytree-snapshot")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_new = sub.add_parser("new", help="Write a fresh single-root snapshot")
    p_new.add_argument("--out", required=True, help="Output .json path")
    p_new.add_argument("--force", action="store_true", help="Overwrite an existing file")
    p_new.set_defaults(func=_cmd_new)

    p_val = sub.add_parser("validate", help="Check a snapshot's shape and tree invariants")
    p_val.add_argument("file", help="Snapshot .json path")
    p_val.set_defaults(func=_cmd_validate)

    p_ren = sub.add_parser("render", help="Draw a snapshot to an image or document")
    p_ren.add_argument("file", help="Snapshot .json path")
    p_ren.add_argument("--out", required=True, help="Output path (.png, .pdf or .svg)")
    p_ren.add_argument("--format", choices=FORMATS, help="Override the format guessed from --out")
    p_ren.add_argument("--scale", type=float, help="PNG pixel scale (default from settings)")
    p_ren.set_defaults(func=_cmd_render)

    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
