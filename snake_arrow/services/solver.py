"""
Snake Arrow Puzzle - Exact Solver

Decides whether every piece of a board can be removed and returns a witness
removal order.

State is a bitmask of remaining pieces. Geometry of a piece never changes
while it is on the board, so the "lane of i hits box of j" relation is
computed once; only the set of present pieces changes during the search.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from ..config import settings
from .errors import SolveStatus
from .geometry import Board, Piece, can_exit, compute_aabb, compute_head_lane, overlap

logger = logging.getLogger(__name__)


@dataclass
class SolveResult:
    status: SolveStatus
    order: Optional[List[int]] = None
    # Masks expanded by the search (0 when the search never ran).
    explored: int = 0
    dead_masks: int = 0

    @property
    def solved(self) -> bool:
        return self.status is SolveStatus.SOLVED


PieceSource = Union[Board, Sequence[Piece]]


def _unpack(source: PieceSource, cell_size: Optional[int]) -> Tuple[List[Piece], Optional[int]]:
    if isinstance(source, Board):
        return list(source.pieces), cell_size or source.cell_size
    return list(source), cell_size


# ============================================
# BLOCKING RELATION
# ============================================

def build_blocking_relation(pieces: Sequence[Piece], cell_size: Optional[int] = None) -> List[int]:
    """
    blockers[i] is a bitmask of every j whose AABB overlaps the head lane of i,
    computed with all pieces present.
    """
    boxes = [compute_aabb(p, cell_size) for p in pieces]
    lanes = [compute_head_lane(p, cell_size) for p in pieces]
    n = len(pieces)

    blockers = [0] * n
    for i in range(n):
        for j in range(n):
            if i == j:
                continue
            if overlap(lanes[i], boxes[j]):
                blockers[i] |= 1 << j
    return blockers


def _unblock_scores(blockers: List[int]) -> List[int]:
    """How many pieces list each piece as a blocker."""
    n = len(blockers)
    return [sum(1 for k in range(n) if (blockers[k] >> i) & 1) for i in range(n)]


# ============================================
# SEARCH
# ============================================

def solve(
    source: PieceSource,
    cell_size: Optional[int] = None,
    max_pieces: Optional[int] = None,
) -> SolveResult:
    """
    Exhaustive depth-first search over removal orders.

    Returns SOLVED with a full order of piece indices, UNSOLVABLE when no
    order exists, or UNVERIFIABLE without searching when there are more
    pieces than the cap.
    """
    pieces, cell_size = _unpack(source, cell_size)
    cap = max_pieces if max_pieces is not None else settings.SOLVER_MAX_PIECES
    n = len(pieces)

    if n > cap:
        logger.debug(f"[Solver] {n} pieces exceed cap {cap}, not searching")
        return SolveResult(status=SolveStatus.UNVERIFIABLE)

    if n == 0:
        return SolveResult(status=SolveStatus.SOLVED, order=[])

    blockers = build_blocking_relation(pieces, cell_size)
    scores = _unblock_scores(blockers)
    # Most-unblocking first; sort is stable so ties keep index order.
    priority = sorted(range(n), key=lambda i: -scores[i])

    full = (1 << n) - 1
    dead: Set[int] = set()
    choice: Dict[int, int] = {}
    explored = 0

    def exits(mask: int) -> List[int]:
        return [
            i for i in priority
            if (mask >> i) & 1 and not (blockers[i] & mask)
        ]

    def dfs(mask: int) -> bool:
        nonlocal explored
        if mask == 0:
            return True
        if mask in dead:
            return False

        explored += 1
        for i in exits(mask):
            if dfs(mask & ~(1 << i)):
                choice[mask] = i
                return True

        dead.add(mask)
        return False

    if not dfs(full):
        logger.debug(f"[Solver] unsolvable: n={n}, explored={explored}, dead={len(dead)}")
        return SolveResult(
            status=SolveStatus.UNSOLVABLE,
            explored=explored,
            dead_masks=len(dead),
        )

    order: List[int] = []
    mask = full
    while mask:
        i = choice[mask]
        order.append(i)
        mask &= ~(1 << i)

    return SolveResult(
        status=SolveStatus.SOLVED,
        order=order,
        explored=explored,
        dead_masks=len(dead),
    )


# ============================================
# MOVE VALIDATION
# ============================================

def validate_moves(board: Board, moves: Sequence[str]) -> Tuple[bool, Optional[str]]:
    """
    Replays a sequence of piece ids against the blocking relation.

    Every piece must be removed exactly once, and only while its head lane is
    clear of the pieces still present.
    """
    ids = [p.id for p in board.pieces]
    index_by_id = {pid: i for i, pid in enumerate(ids)}

    if len(moves) != len(ids):
        return False, f"Expected {len(ids)} moves, got {len(moves)}"

    blockers = build_blocking_relation(board.pieces, board.cell_size)
    present = (1 << len(ids)) - 1

    for step, move_id in enumerate(moves):
        mid = str(move_id)

        if mid not in index_by_id:
            return False, f"Step {step + 1}: unknown piece '{mid}'"

        i = index_by_id[mid]
        if not (present >> i) & 1:
            return False, f"Step {step + 1}: piece '{mid}' already removed"

        if blockers[i] & present:
            return False, f"Step {step + 1}: piece '{mid}' is blocked"

        present &= ~(1 << i)

    if present:
        return False, "Not all pieces removed"

    return True, None


# ============================================
# HINTS
# ============================================

def get_free_pieces(board: Board) -> List[Piece]:
    """Pieces that can leave right now."""
    return [p for p in board.pieces if can_exit(p, board)]


def get_hint(board: Board) -> Optional[str]:
    """
    Id of a piece whose removal keeps the board solvable.

    None for an empty, unsolvable or unverifiable board.
    """
    result = solve(board)
    if not result.solved or not result.order:
        return None
    return board.pieces[result.order[0]].id
