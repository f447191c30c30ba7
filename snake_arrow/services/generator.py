"""
Snake Arrow Puzzle - Board Generator

Rejection sampling:
  1. place random snakes without overlap (bendy tails, head looking out)
  2. keep the candidate only if some snake can leave right away
     and the exact solver finds a full removal order
  3. if the primary budget runs out, retry with a looser, larger pass

Randomness is not seeded; every call produces a fresh board.
"""

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from ..config import settings
from .errors import GenerationStatus
from .geometry import (
    Board,
    Cell,
    Direction,
    DIRECTIONS,
    Piece,
    can_exit,
    cell_center,
    forward_dot,
)
from .solver import solve

logger = logging.getLogger(__name__)


# ============================================
# CONSTANTS
# ============================================

PIECE_COLORS = [
    "#FF6B6B",  # red
    "#4ECDC4",  # teal
    "#45B7D1",  # blue
    "#96CEB4",  # green
    "#FFEAA7",  # yellow
    "#DDA0DD",  # plum
    "#F39C12",  # orange
    "#9B59B6",  # purple
    "#1ABC9C",  # turquoise
    "#E74C3C",  # crimson
]

MIN_COUNT = 1
MIN_LENGTH = 2
MAX_MIN_LENGTH = 20
MAX_LENGTH = 30

MIN_THICKNESS = 12
MAX_THICKNESS = 24

# Heads are kept off the outermost ring of cells.
HEAD_MARGIN_CELLS = 1
MIN_GRID_CELLS = 2 * HEAD_MARGIN_CELLS + 1

# Above this share of occupied cells boards get hard to place.
DENSITY_WARNING_RATIO = 0.80


def clamp(value, lo, hi):
    return max(lo, min(hi, value))


# ============================================
# OPTIONS
# ============================================

@dataclass(frozen=True)
class GeneratorOptions:
    count: int
    min_len: int
    max_len: int


def clamp_options(
    count: Optional[int] = None,
    min_len: Optional[int] = None,
    max_len: Optional[int] = None,
    cols: Optional[int] = None,
    rows: Optional[int] = None,
) -> GeneratorOptions:
    """
    Pulls out-of-range options back to the nearest supported value.

    Never fails: counts above the solver cap are lowered to the cap and a
    reversed length range is swapped.
    """
    cols = cols or settings.BOARD_COLS
    rows = rows or settings.BOARD_ROWS
    requested = (count, min_len, max_len)

    count = settings.DEFAULT_COUNT if count is None else int(count)
    min_len = settings.DEFAULT_MIN_LEN if min_len is None else int(min_len)
    max_len = settings.DEFAULT_MAX_LEN if max_len is None else int(max_len)

    count = clamp(count, MIN_COUNT, settings.SOLVER_MAX_PIECES)
    min_len = clamp(min_len, MIN_LENGTH, MAX_MIN_LENGTH)
    max_len = clamp(max_len, MIN_LENGTH, MAX_LENGTH)
    if min_len > max_len:
        min_len, max_len = max_len, min_len

    options = GeneratorOptions(count=count, min_len=min_len, max_len=max_len)

    changed = any(
        raw is not None and int(raw) != value
        for raw, value in zip(requested, (count, min_len, max_len))
    )
    if changed:
        logger.warning(
            f"[Generator] options clamped: requested count={requested[0]}, "
            f"min_len={requested[1]}, max_len={requested[2]} -> {options}"
        )

    if count * min_len > cols * rows * DENSITY_WARNING_RATIO:
        logger.warning(
            f"[Generator] very dense board: {count} snakes x {min_len}+ cells "
            f"on {cols}x{rows}, generation will likely fail"
        )

    return options


# ============================================
# PIECE SPEC
# ============================================

@dataclass(frozen=True)
class PieceSpec:
    direction: Direction
    length: int
    thickness: float
    color: str


def random_piece_spec(index: int, min_len: int, max_len: int) -> PieceSpec:
    return PieceSpec(
        direction=random.choice(DIRECTIONS),
        length=random.randint(min_len, max_len),
        thickness=clamp(settings.BASE_THICKNESS + random.randint(-3, 6), MIN_THICKNESS, MAX_THICKNESS),
        color=PIECE_COLORS[index % len(PIECE_COLORS)],
    )


# ============================================
# SNAKE GROWTH
# ============================================

def make_snake_path(
    head: Cell,
    direction: Direction,
    length: int,
    cols: int,
    rows: int,
) -> Optional[Tuple[Cell, ...]]:
    """
    Grows a snake from its head.

    The neck sits directly behind the head; every further cell goes straight,
    left or right (shuffled) and may never lie in front of the head.
    Sideways cells (dot product 0) are allowed.
    """
    dx, dy = direction.vector
    neck = Cell(head.x - dx, head.y - dy)
    if not (0 <= neck.x < cols and 0 <= neck.y < rows):
        return None

    cells = [head, neck]
    used = {head, neck}
    step_x, step_y = -dx, -dy
    current = neck

    while len(cells) < length:
        options = [
            (step_x, step_y),
            (-step_y, step_x),
            (step_y, -step_x),
        ]
        random.shuffle(options)

        placed = False
        for sx, sy in options:
            nxt = Cell(current.x + sx, current.y + sy)
            if not (0 <= nxt.x < cols and 0 <= nxt.y < rows):
                continue
            if nxt in used:
                continue
            if forward_dot(nxt.x - head.x, nxt.y - head.y, direction) > 0:
                continue

            cells.append(nxt)
            used.add(nxt)
            current = nxt
            step_x, step_y = sx, sy
            placed = True
            break

        if not placed:
            return None

    return tuple(cells)


def head_too_close_to_exit(
    head: Cell,
    direction: Direction,
    cols: int,
    rows: int,
    cell_size: int,
    edge_buffer: float,
) -> bool:
    """True when the head center is within edge_buffer px of the edge it faces."""
    hx, hy = cell_center(head, cell_size)
    width = cols * cell_size
    height = rows * cell_size

    if direction is Direction.RIGHT:
        return hx > width - edge_buffer
    if direction is Direction.LEFT:
        return hx < edge_buffer
    if direction is Direction.DOWN:
        return hy > height - edge_buffer
    return hy < edge_buffer


def place_piece(
    spec: PieceSpec,
    piece_id: str,
    used_cells: Set[Cell],
    cols: int,
    rows: int,
    cell_size: int,
    edge_buffer: float,
    tries: int,
) -> Optional[Piece]:
    """Random head positions until the snake fits; None after `tries` misses."""
    for _ in range(tries):
        head = Cell(
            random.randint(HEAD_MARGIN_CELLS, cols - 1 - HEAD_MARGIN_CELLS),
            random.randint(HEAD_MARGIN_CELLS, rows - 1 - HEAD_MARGIN_CELLS),
        )

        cells = make_snake_path(head, spec.direction, spec.length, cols, rows)
        if cells is None:
            continue

        if head_too_close_to_exit(head, spec.direction, cols, rows, cell_size, edge_buffer):
            continue

        if any(c in used_cells for c in cells):
            continue

        return Piece(
            id=piece_id,
            cells=cells,
            direction=spec.direction,
            thickness=spec.thickness,
            color=spec.color,
        )

    return None


def generate_candidate(
    options: GeneratorOptions,
    cols: int,
    rows: int,
    cell_size: int,
    edge_buffer: float,
) -> Optional[Board]:
    """One candidate board, or None when some snake could not be placed."""
    pieces: List[Piece] = []
    used_cells: Set[Cell] = set()

    for i in range(options.count):
        spec = random_piece_spec(i, options.min_len, options.max_len)
        piece = place_piece(
            spec,
            f"s{i}",
            used_cells,
            cols,
            rows,
            cell_size,
            edge_buffer,
            settings.PLACEMENT_TRIES,
        )
        if piece is None:
            return None
        pieces.append(piece)
        used_cells.update(piece.cells)

    return Board(pieces=tuple(pieces), cols=cols, rows=rows, cell_size=cell_size)


# ============================================
# MAIN GENERATOR FUNCTION
# ============================================

@dataclass
class GenerationResult:
    status: GenerationStatus
    board: Optional[Board] = None
    order: Optional[List[int]] = None
    attempts: int = 0
    fallback_used: bool = False

    @property
    def ok(self) -> bool:
        return self.status is GenerationStatus.GENERATED


def _run_pass(
    options: GeneratorOptions,
    cols: int,
    rows: int,
    cell_size: int,
    edge_buffer: float,
    budget: int,
    require_exit: bool,
) -> Tuple[Optional[Board], Optional[List[int]], int]:
    for attempt in range(1, budget + 1):
        candidate = generate_candidate(options, cols, rows, cell_size, edge_buffer)
        if candidate is None:
            continue

        if require_exit and not any(can_exit(p, candidate) for p in candidate.pieces):
            continue

        result = solve(candidate)
        if not result.solved:
            continue

        return candidate, result.order, attempt

    return None, None, budget


def generate_board(
    count: Optional[int] = None,
    min_len: Optional[int] = None,
    max_len: Optional[int] = None,
    cols: Optional[int] = None,
    rows: Optional[int] = None,
    cell_size: Optional[int] = None,
) -> GenerationResult:
    """
    Generates a board the solver certifies solvable.

    Guarantees for a GENERATED result:
      - no two snakes share a cell
      - every snake is a simple grid path, head first
      - at least one snake can leave immediately
      - `order` is a full removal order
    Otherwise the result is EXHAUSTED and carries no board.
    """
    cols = cols or settings.BOARD_COLS
    rows = rows or settings.BOARD_ROWS
    cell_size = cell_size or settings.CELL_SIZE
    options = clamp_options(count, min_len, max_len, cols, rows)

    if min(cols, rows) < MIN_GRID_CELLS:
        logger.warning(
            f"[Generator] {cols}x{rows} grid leaves no room for heads "
            f"(needs at least {MIN_GRID_CELLS}x{MIN_GRID_CELLS})"
        )
        return GenerationResult(GenerationStatus.EXHAUSTED)

    board, order, attempts = _run_pass(
        options, cols, rows, cell_size,
        edge_buffer=settings.EDGE_BUFFER_PX,
        budget=settings.MAX_GEN_ATTEMPTS,
        require_exit=True,
    )
    if board is not None:
        logger.info(
            f"[Generator] board accepted: {options.count} snakes, "
            f"len {options.min_len}-{options.max_len}, attempt {attempts}"
        )
        return GenerationResult(GenerationStatus.GENERATED, board, order, attempts)

    logger.info(f"[Generator] primary pass exhausted after {attempts} attempts, trying fallback")

    # Fallback: heads may face a nearby edge. A solved board always has a
    # free snake, so the solver check alone is enough here.
    board, order, fallback_attempts = _run_pass(
        options, cols, rows, cell_size,
        edge_buffer=0,
        budget=settings.FALLBACK_GEN_ATTEMPTS,
        require_exit=False,
    )
    attempts += fallback_attempts
    if board is not None:
        logger.info(f"[Generator] fallback board accepted after {attempts} attempts")
        return GenerationResult(GenerationStatus.GENERATED, board, order, attempts, fallback_used=True)

    logger.warning(
        f"[Generator] generation exhausted: {options.count} snakes, "
        f"len {options.min_len}-{options.max_len}, {attempts} attempts"
    )
    return GenerationResult(GenerationStatus.EXHAUSTED, attempts=attempts, fallback_used=True)


def generate_replacement(board: Board) -> GenerationResult:
    """
    Solvable stand-in for an authored board: same snake count and the same
    length range, on the same grid.
    """
    if len(board) == 0:
        return GenerationResult(GenerationStatus.GENERATED, board, [], 0)

    lengths = [p.length for p in board.pieces]
    min_len = max(MIN_LENGTH, min(lengths))
    max_len = max(min_len, max(lengths))

    return generate_board(
        count=len(lengths),
        min_len=min_len,
        max_len=max_len,
        cols=board.cols,
        rows=board.rows,
        cell_size=board.cell_size,
    )
