"""
Snake Arrow Puzzle - Pydantic Schemas

All request/response validation in one file.
"""

from typing import Optional, List
from pydantic import BaseModel, Field

from .services.errors import GenerationStatus, SolveStatus


# ============================================
# BOARD
# ============================================

class Cell(BaseModel):
    """Grid cell."""
    x: int
    y: int


class PieceSpec(BaseModel):
    """Snake as stored in level data (head first)."""
    dir: str  # 'U', 'D', 'L', 'R' or a direction name
    cells: List[Cell]
    id: Optional[str] = None
    color: Optional[str] = None


class PieceOut(BaseModel):
    """Snake as sent to the client."""
    id: str
    dir: str
    cells: List[Cell]
    thickness: float
    color: str


class Grid(BaseModel):
    """Board size."""
    width: int
    height: int


class BoardRequest(BaseModel):
    """Pieces posted by a client."""
    snakes: List[PieceSpec] = []
    grid: Optional[Grid] = None


class BoardResponse(BaseModel):
    grid: Grid
    snakes: List[PieceOut]
    order: Optional[List[int]] = None


# ============================================
# LEVELS
# ============================================

class LevelResponse(BaseModel):
    """Authored level, possibly swapped for a solvable variant."""
    level: int
    id: str
    name: str
    board: BoardResponse
    solvable: bool
    regenerated: bool = False


class GenerateRequest(BaseModel):
    """Generator options; out-of-range values are clamped, not rejected."""
    count: Optional[int] = None
    min_len: Optional[int] = None
    max_len: Optional[int] = None


class GenerateResponse(BaseModel):
    status: GenerationStatus
    attempts: int
    fallback_used: bool = False
    board: BoardResponse


# ============================================
# SOLVER
# ============================================

class SolveResponse(BaseModel):
    status: SolveStatus
    order: Optional[List[int]] = None
    explored: int = 0


class CanExitRequest(BoardRequest):
    piece_index: int = Field(ge=0)


class CanExitResponse(BaseModel):
    piece_index: int
    can_exit: bool


class ValidateRequest(BoardRequest):
    moves: List[str]  # piece ids in removal order


class ValidateResponse(BaseModel):
    valid: bool
    error: Optional[str] = None


class HintResponse(BaseModel):
    piece_id: Optional[str] = None
