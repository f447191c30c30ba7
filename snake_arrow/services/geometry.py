"""
Snake Arrow Puzzle - Geometry

Boards, pieces and the collision layer shared by the solver and generator.

A piece leaves the board head first, so the only exit check is whether the
head's lane to the edge is clear:

    lane(piece) ∩ AABB(other) == ∅   for every other present piece

Coordinates are grid cells; collision geometry works in pixels on cell
centers so that piece thickness can pad boxes and lanes.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Set, Tuple

from ..config import settings
from .errors import MalformedPieceError


# ============================================
# DIRECTIONS
# ============================================

class Direction(str, Enum):
    """Exit direction of a piece."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def vector(self) -> Tuple[int, int]:
        return DIRECTION_VECTORS[self]

    @property
    def key(self) -> str:
        """Single-letter key used in level files."""
        return DIRECTION_KEYS[self]

    @classmethod
    def parse(cls, value: object) -> Optional["Direction"]:
        """Accepts 'U'/'D'/'L'/'R' or a direction name in any case."""
        if isinstance(value, Direction):
            return value
        if not isinstance(value, str):
            return None
        token = value.strip().lower()
        if token in KEY_TO_DIRECTION:
            return KEY_TO_DIRECTION[token]
        try:
            return cls(token)
        except ValueError:
            return None


# Screen coordinates: y grows downward.
DIRECTION_VECTORS: Dict[Direction, Tuple[int, int]] = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

DIRECTION_KEYS: Dict[Direction, str] = {
    Direction.UP: "U",
    Direction.DOWN: "D",
    Direction.LEFT: "L",
    Direction.RIGHT: "R",
}

KEY_TO_DIRECTION: Dict[str, Direction] = {k.lower(): d for d, k in DIRECTION_KEYS.items()}

DIRECTIONS: List[Direction] = [Direction.RIGHT, Direction.LEFT, Direction.DOWN, Direction.UP]


# ============================================
# RECORDS
# ============================================

class Cell(NamedTuple):
    x: int
    y: int


class Rect(NamedTuple):
    """Axis-aligned rectangle in pixels, inclusive on every side."""
    x1: float
    y1: float
    x2: float
    y2: float


# Padding of a piece's bounding box, relative to thickness.
AABB_PAD_RATIO = 0.85
# Head lane width and its offset beyond the head center.
LANE_WIDTH_RATIO = 1.35
LANE_OFFSET_RATIO = 0.6


@dataclass(frozen=True)
class Piece:
    """One snake: ordered cells (head first), exit direction, thickness."""

    id: str
    cells: Tuple[Cell, ...]
    direction: Direction
    thickness: float = 16
    color: str = "#FFFFFF"

    @property
    def head(self) -> Cell:
        return self.cells[0]

    @property
    def length(self) -> int:
        return len(self.cells)


def is_grid_int(value: object) -> bool:
    # bool is an int subclass but never a coordinate
    return isinstance(value, int) and not isinstance(value, bool)


def validate_cells(cells: Iterable[Sequence[int]], piece_index: Optional[int] = None) -> Tuple[Cell, ...]:
    """
    Normalizes raw cells and checks they form a simple grid path.

    Raises MalformedPieceError on fewer than two cells, a diagonal or
    distant step, or a revisited cell.
    """
    result: List[Cell] = []
    for raw in cells:
        try:
            x, y = raw
        except (TypeError, ValueError) as exc:
            raise MalformedPieceError(f"Invalid cell {raw!r}", piece_index=piece_index) from exc
        if not (is_grid_int(x) and is_grid_int(y)):
            raise MalformedPieceError(f"Invalid cell {raw!r}", piece_index=piece_index)
        result.append(Cell(x, y))

    if len(result) < 2:
        raise MalformedPieceError(
            f"Piece needs at least 2 cells, got {len(result)}",
            piece_index=piece_index,
        )

    seen: Set[Cell] = set()
    for i, cell in enumerate(result):
        if cell in seen:
            raise MalformedPieceError(f"Cell {tuple(cell)} visited twice", piece_index=piece_index)
        seen.add(cell)
        if i == 0:
            continue
        prev = result[i - 1]
        if abs(cell.x - prev.x) + abs(cell.y - prev.y) != 1:
            raise MalformedPieceError(
                f"Cells {tuple(prev)} and {tuple(cell)} are not grid-adjacent",
                piece_index=piece_index,
            )

    return tuple(result)


# ============================================
# BOARD
# ============================================

@dataclass(frozen=True)
class Board:
    """
    A set of pieces on a fixed grid.

    Pieces never share a cell. A board is only changed by removing whole
    pieces, which returns a new board.
    """

    pieces: Tuple[Piece, ...] = ()
    cols: int = field(default_factory=lambda: settings.BOARD_COLS)
    rows: int = field(default_factory=lambda: settings.BOARD_ROWS)
    cell_size: int = field(default_factory=lambda: settings.CELL_SIZE)

    def __post_init__(self):
        object.__setattr__(self, "pieces", tuple(self.pieces))

        ids: Set[str] = set()
        owner: Dict[Cell, str] = {}
        for index, piece in enumerate(self.pieces):
            if piece.id in ids:
                raise MalformedPieceError(
                    f"Duplicate piece id {piece.id!r}",
                    piece_index=index,
                    piece_id=piece.id,
                )
            ids.add(piece.id)
            for cell in piece.cells:
                if not self.in_bounds(cell.x, cell.y):
                    raise MalformedPieceError(
                        f"Cell {tuple(cell)} is outside the {self.cols}x{self.rows} board",
                        piece_index=index,
                        piece_id=piece.id,
                    )
                if cell in owner:
                    raise MalformedPieceError(
                        f"Cell {tuple(cell)} shared by pieces {owner[cell]!r} and {piece.id!r}",
                        piece_index=index,
                        piece_id=piece.id,
                    )
                owner[cell] = piece.id

    def __len__(self) -> int:
        return len(self.pieces)

    def __iter__(self):
        return iter(self.pieces)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.cols and 0 <= y < self.rows

    def occupied_cells(self) -> Dict[Cell, str]:
        """Cell -> piece id."""
        return {cell: piece.id for piece in self.pieces for cell in piece.cells}

    def index_of(self, piece_id: str) -> int:
        for index, piece in enumerate(self.pieces):
            if piece.id == piece_id:
                return index
        raise KeyError(piece_id)

    def get(self, piece_id: str) -> Piece:
        return self.pieces[self.index_of(piece_id)]

    def remove(self, piece_id: str) -> "Board":
        """New board without the given piece."""
        index = self.index_of(piece_id)
        return replace(self, pieces=self.pieces[:index] + self.pieces[index + 1:])


# ============================================
# COLLISION
# ============================================

def cell_center(cell: Cell, cell_size: Optional[int] = None) -> Tuple[float, float]:
    size = cell_size or settings.CELL_SIZE
    return ((cell.x + 0.5) * size, (cell.y + 0.5) * size)


def compute_aabb(piece: Piece, cell_size: Optional[int] = None) -> Rect:
    """Bounding box of the piece's cell centers, padded by its thickness."""
    centers = [cell_center(c, cell_size) for c in piece.cells]
    xs = [p[0] for p in centers]
    ys = [p[1] for p in centers]
    pad = piece.thickness * AABB_PAD_RATIO
    return Rect(min(xs) - pad, min(ys) - pad, max(xs) + pad, max(ys) + pad)


def compute_head_lane(piece: Piece, cell_size: Optional[int] = None) -> Rect:
    """Corridor from just beyond the head to infinity along the exit direction."""
    hx, hy = cell_center(piece.head, cell_size)
    half = piece.thickness * LANE_WIDTH_RATIO / 2
    offset = piece.thickness * LANE_OFFSET_RATIO

    if piece.direction is Direction.RIGHT:
        return Rect(hx + offset, hy - half, math.inf, hy + half)
    if piece.direction is Direction.LEFT:
        return Rect(-math.inf, hy - half, hx - offset, hy + half)
    if piece.direction is Direction.DOWN:
        return Rect(hx - half, hy + offset, hx + half, math.inf)
    return Rect(hx - half, -math.inf, hx + half, hy - offset)


def overlap(a: Rect, b: Rect) -> bool:
    """Inclusive overlap: rectangles that only touch still overlap."""
    return not (a.x2 < b.x1 or a.x1 > b.x2 or a.y2 < b.y1 or a.y1 > b.y2)


def can_exit(piece: Piece, board: Board) -> bool:
    """True iff no other piece on the board intersects the piece's head lane."""
    lane = compute_head_lane(piece, board.cell_size)
    for other in board.pieces:
        if other.id == piece.id:
            continue
        if overlap(lane, compute_aabb(other, board.cell_size)):
            return False
    return True


def forward_dot(dx: int, dy: int, direction: Direction) -> int:
    """Projection of (dx, dy) onto the direction's unit vector."""
    vx, vy = direction.vector
    return dx * vx + dy * vy
