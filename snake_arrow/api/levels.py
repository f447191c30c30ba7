"""
Snake Arrow Puzzle - Levels API

Thin HTTP layer over the core: authored levels, generation, solving,
exit checks, move validation and hints. Boards travel with every request;
nothing is kept between calls.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException

from ..schemas import (
    BoardRequest, BoardResponse, CanExitRequest, CanExitResponse,
    GenerateRequest, GenerateResponse, Grid, HintResponse, LevelResponse,
    PieceOut, SolveResponse, ValidateRequest, ValidateResponse, Cell,
)
from ..services.geometry import Board, can_exit
from ..services.generator import generate_board
from ..services.level_loader import load_playable_level, parse_level
from ..services.solver import get_hint, solve, validate_moves


router = APIRouter(prefix="/levels", tags=["levels"])


# ============================================
# HELPERS
# ============================================

def _board_from_request(request: BoardRequest) -> Board:
    # MalformedPieceError is turned into a 422 by the app handler.
    return parse_level(request.model_dump(exclude_none=True))


def _board_response(board: Board, order: Optional[List[int]] = None) -> BoardResponse:
    return BoardResponse(
        grid=Grid(width=board.cols, height=board.rows),
        snakes=[
            PieceOut(
                id=piece.id,
                dir=piece.direction.key,
                cells=[Cell(x=c.x, y=c.y) for c in piece.cells],
                thickness=piece.thickness,
                color=piece.color,
            )
            for piece in board.pieces
        ],
        order=order,
    )


# ============================================
# ENDPOINTS
# ============================================

@router.get("/{level}", response_model=LevelResponse)
def get_level(level: int):
    """Authored level; unsolvable layouts come back as a generated variant."""
    playable = load_playable_level(level)
    if playable is None:
        raise HTTPException(status_code=404, detail=f"Level {level} not found")

    return LevelResponse(
        level=level,
        id=playable.level.id,
        name=playable.level.name,
        board=_board_response(playable.board, playable.order),
        solvable=playable.solvable,
        regenerated=playable.regenerated,
    )


@router.post("/generate", response_model=GenerateResponse)
def generate(request: GenerateRequest):
    result = generate_board(request.count, request.min_len, request.max_len)
    if not result.ok:
        raise HTTPException(
            status_code=503,
            detail=f"No solvable board found after {result.attempts} attempts, try fewer or shorter snakes",
        )

    return GenerateResponse(
        status=result.status,
        attempts=result.attempts,
        fallback_used=result.fallback_used,
        board=_board_response(result.board, result.order),
    )


@router.post("/solve", response_model=SolveResponse)
def solve_board(request: BoardRequest):
    result = solve(_board_from_request(request))
    return SolveResponse(status=result.status, order=result.order, explored=result.explored)


@router.post("/can-exit", response_model=CanExitResponse)
def check_can_exit(request: CanExitRequest):
    board = _board_from_request(request)
    if request.piece_index >= len(board):
        raise HTTPException(status_code=404, detail=f"No piece at index {request.piece_index}")

    piece = board.pieces[request.piece_index]
    return CanExitResponse(piece_index=request.piece_index, can_exit=can_exit(piece, board))


@router.post("/validate", response_model=ValidateResponse)
def validate(request: ValidateRequest):
    valid, error = validate_moves(_board_from_request(request), request.moves)
    return ValidateResponse(valid=valid, error=error)


@router.post("/hint", response_model=HintResponse)
def hint(request: BoardRequest):
    return HintResponse(piece_id=get_hint(_board_from_request(request)))
