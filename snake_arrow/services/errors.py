"""
Error taxonomy and result statuses shared by the solver, generator and loader.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class SolveStatus(str, Enum):
    SOLVED = "solved"
    UNSOLVABLE = "unsolvable"
    # Too many pieces for an exhaustive search; the solver declined to run.
    UNVERIFIABLE = "unverifiable"


class GenerationStatus(str, Enum):
    GENERATED = "generated"
    EXHAUSTED = "exhausted"


class MalformedPieceError(ValueError):
    """
    Raised when piece data cannot describe a valid snake: fewer than two
    cells, non-adjacent consecutive cells, a revisited cell, an unknown
    direction, cells outside the board, or cells shared with another
    piece on the same board.
    """

    def __init__(
        self,
        message: str,
        *,
        piece_index: int | None = None,
        piece_id: Any = None,
    ) -> None:
        super().__init__(message)
        self.piece_index = piece_index
        self.piece_id = piece_id
