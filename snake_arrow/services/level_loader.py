import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import settings
from .errors import MalformedPieceError
from .generator import clamp, generate_replacement
from .geometry import Board, Direction, Piece, is_grid_int, validate_cells
from .solver import solve

logger = logging.getLogger(__name__)

# Folder with level files (relative to this file)
LEVELS_DIR = Path(__file__).parent.parent / "levels"
PIECE_LIST_KEYS = ("snakes", "pieces", "arrows")
DEFAULT_COLOR = "#FFFFFF"


@dataclass
class Level:
    id: str
    name: str
    board: Board


@dataclass
class PlayableLevel:
    number: int
    level: Level
    board: Board
    order: Optional[List[int]]
    regenerated: bool = False

    @property
    def solvable(self) -> bool:
        return self.order is not None


def level_thickness(index: int) -> float:
    """Authored snakes cycle through three widths."""
    return clamp(settings.BASE_THICKNESS + (index % 3) * 2, 12, 22)


def _normalize_color(value: Any) -> str:
    if isinstance(value, str):
        color = value.strip()
        if color:
            return color
    return DEFAULT_COLOR


def _to_int_pair(coord: Any) -> Optional[List[int]]:
    # {"x": 1, "y": 2} or [1, 2]
    if isinstance(coord, dict):
        coord = [coord.get("x"), coord.get("y")]
    if not isinstance(coord, (list, tuple)) or len(coord) != 2:
        return None
    # 1.7, "3" and True are rejected, not coerced
    if not (is_grid_int(coord[0]) and is_grid_int(coord[1])):
        return None
    return [coord[0], coord[1]]


def _raw_piece_list(raw: Any) -> List[Any]:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict):
        for key in PIECE_LIST_KEYS:
            if key in raw:
                pieces = raw[key]
                if not isinstance(pieces, list):
                    raise MalformedPieceError(f"'{key}' must be a list")
                return pieces
        return []
    raise MalformedPieceError(f"Unsupported level data: {type(raw).__name__}")


def parse_piece(raw_piece: Any, index: int) -> Piece:
    """One `{dir, cells}` spec -> Piece. Raises MalformedPieceError."""
    if not isinstance(raw_piece, dict):
        raise MalformedPieceError("Piece spec must be an object", piece_index=index)

    raw_dir = raw_piece.get("dir", raw_piece.get("direction"))
    direction = Direction.parse(raw_dir)
    if direction is None:
        raise MalformedPieceError(f"Unknown direction {raw_dir!r}", piece_index=index)

    raw_cells = raw_piece.get("cells")
    if not isinstance(raw_cells, list):
        raise MalformedPieceError("Piece spec has no cell list", piece_index=index)

    pairs = []
    for raw_cell in raw_cells:
        pair = _to_int_pair(raw_cell)
        if pair is None:
            raise MalformedPieceError(f"Invalid cell {raw_cell!r}", piece_index=index)
        pairs.append(pair)

    raw_id = raw_piece.get("id")
    return Piece(
        id=str(index) if raw_id is None else str(raw_id),
        cells=validate_cells(pairs, piece_index=index),
        direction=direction,
        thickness=level_thickness(index),
        color=_normalize_color(raw_piece.get("color")),
    )


def parse_level(
    raw: Any,
    cols: Optional[int] = None,
    rows: Optional[int] = None,
    cell_size: Optional[int] = None,
) -> Board:
    """
    Level data -> Board.

    Accepts a bare list of piece specs or an object holding one under
    "snakes" (or "pieces"/"arrows"). An empty list is a valid, empty board.
    Every cell must lie inside the grid.
    """
    pieces = [parse_piece(p, i) for i, p in enumerate(_raw_piece_list(raw))]

    grid = (raw.get("grid") or {}) if isinstance(raw, dict) else {}
    if not isinstance(grid, dict):
        grid = {}

    return Board(
        pieces=tuple(pieces),
        cols=cols or _grid_size(grid, "width", settings.BOARD_COLS),
        rows=rows or _grid_size(grid, "height", settings.BOARD_ROWS),
        cell_size=cell_size or settings.CELL_SIZE,
    )


def _grid_size(grid: Dict[str, Any], key: str, default: int) -> int:
    value = grid.get(key, default)
    if not is_grid_int(value) or value <= 0:
        raise MalformedPieceError(f"Grid {key} must be a positive integer, got {value!r}")
    return value


def read_level(raw: Dict[str, Any], fallback_id: str = "level") -> Level:
    return Level(
        id=str(raw.get("id", fallback_id)),
        name=str(raw.get("name") or "Untitled"),
        board=parse_level(raw),
    )


# ============================================
# EXPORT
# ============================================

def export_board(board: Board) -> List[Dict[str, Any]]:
    """Board -> list of `{dir, cells}` specs, head first. Cosmetics are dropped."""
    return [
        {
            "dir": piece.direction.key,
            "cells": [{"x": c.x, "y": c.y} for c in piece.cells],
        }
        for piece in board.pieces
    ]


def export_level(board: Board, level_id: Optional[str] = None, name: Optional[str] = None) -> Dict[str, Any]:
    timestamp = int(time.time() * 1000)
    return {
        "id": level_id or f"generated-{timestamp}",
        "name": name or f"Generated {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        "grid": {"width": board.cols, "height": board.rows},
        "snakes": export_board(board),
    }


# ============================================
# FILES
# ============================================

def load_level_from_file(level_num: int) -> Optional[Level]:
    """Load a level file; None when it is missing or malformed."""
    possible_names = [f"level_{level_num}.json", f"{level_num}.json"]
    file_path = None
    for name in possible_names:
        temp_path = LEVELS_DIR / name
        if temp_path.exists():
            file_path = temp_path
            break

    if not file_path:
        logger.warning(f"[LevelLoader] Level file not found for level {level_num}")
        return None

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            raw_data = json.load(f)
        level = read_level(raw_data, fallback_id=f"level-{level_num}")
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"[LevelLoader] Error reading level file {file_path}: {e}")
        return None
    except MalformedPieceError as e:
        logger.error(f"[LevelLoader] Malformed level {file_path} (piece {e.piece_index}): {e}")
        return None

    logger.info(f"[LevelLoader] Level {level_num}: '{level.name}', snakes={len(level.board)}")
    return level


def available_levels() -> List[int]:
    numbers = []
    for path in LEVELS_DIR.glob("level_*.json"):
        raw_number = path.stem.removeprefix("level_")
        if raw_number.isdigit():
            numbers.append(int(raw_number))
    return sorted(numbers)


def load_playable_level(level_num: int) -> Optional[PlayableLevel]:
    """
    Load a level and make sure it can be cleared.

    An authored board the solver rejects is swapped for a generated board with
    the same snake count and length range. If that fails as well the authored
    board is returned with `order=None`.
    """
    level = load_level_from_file(level_num)
    if level is None:
        return None

    result = solve(level.board)
    if result.solved:
        return PlayableLevel(level_num, level, level.board, result.order)

    logger.info(f"[LevelLoader] Level {level_num} is {result.status.value}, generating a solvable variant")
    replacement = generate_replacement(level.board)
    if replacement.ok:
        return PlayableLevel(level_num, level, replacement.board, replacement.order, regenerated=True)

    logger.warning(f"[LevelLoader] Level {level_num}: no solvable variant found")
    return PlayableLevel(level_num, level, level.board, None)
