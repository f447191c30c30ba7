#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
from pathlib import Path

from snake_arrow.services.errors import MalformedPieceError
from snake_arrow.services.generator import generate_replacement
from snake_arrow.services.level_loader import LEVELS_DIR, export_level, read_level
from snake_arrow.services.solver import solve


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check that every level file can be cleared."
    )
    parser.add_argument(
        "--levels-dir",
        type=Path,
        default=LEVELS_DIR,
        help="Directory with level_<n>.json files.",
    )
    parser.add_argument(
        "--fix",
        action="store_true",
        help="Replace unsolvable levels with a generated variant. Without this flag, the script only reports issues.",
    )
    return parser.parse_args()


def level_number_from_path(path: Path) -> int | None:
    stem = path.stem
    if not stem.startswith("level_"):
        return None
    raw_number = stem.removeprefix("level_")
    try:
        return int(raw_number)
    except ValueError:
        return None


def process_level(path: Path, apply_fix: bool) -> str | None:
    """Returns a problem description, or None when the level is fine."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    try:
        level = read_level(raw, fallback_id=path.stem)
    except MalformedPieceError as exc:
        return f"malformed piece {exc.piece_index}: {exc}"

    result = solve(level.board)
    if result.solved:
        return None

    problem = f"{result.status.value} ({len(level.board)} snakes)"
    if not apply_fix:
        return problem

    replacement = generate_replacement(level.board)
    if not replacement.ok:
        return f"{problem}, no replacement after {replacement.attempts} attempts"

    path.write_text(
        json.dumps(export_level(replacement.board, level.id, level.name), ensure_ascii=False, indent="\t") + "\n",
        encoding="utf-8",
    )
    return f"{problem}, replaced with a generated variant"


def main() -> int:
    args = parse_args()

    if not args.levels_dir.exists():
        raise SystemExit(f"Levels directory not found: {args.levels_dir}")

    processed = 0
    broken = 0

    for path in sorted(args.levels_dir.glob("level_*.json"), key=lambda p: level_number_from_path(p) or 0):
        if level_number_from_path(path) is None:
            continue

        processed += 1
        problem = process_level(path, args.fix)
        if problem is None:
            continue

        broken += 1
        print(f"{path.name}: {problem}")

    print(f"Processed {processed} level files, {broken} with issues.")
    return 1 if broken and not args.fix else 0


if __name__ == "__main__":
    raise SystemExit(main())
