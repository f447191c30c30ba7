import unittest
from unittest import mock

from snake_arrow.config import settings
from snake_arrow.services.errors import GenerationStatus, SolveStatus
from snake_arrow.services.generator import (
    GeneratorOptions,
    clamp_options,
    generate_board,
    generate_replacement,
    head_too_close_to_exit,
    make_snake_path,
)
from snake_arrow.services.geometry import (
    Board,
    Cell,
    Direction,
    Piece,
    can_exit,
    forward_dot,
    validate_cells,
)
from snake_arrow.services.solver import solve


def assert_board_invariants(test, board, order):
    occupied = set()
    for piece in board:
        validate_cells(piece.cells)
        for cell in piece.cells:
            test.assertNotIn(cell, occupied)
            test.assertTrue(board.in_bounds(cell.x, cell.y))
            occupied.add(cell)

    test.assertTrue(any(can_exit(p, board) for p in board))

    remaining = board
    for index in order:
        piece = board.pieces[index]
        test.assertTrue(can_exit(piece, remaining), f"{piece.id} removed while blocked")
        remaining = remaining.remove(piece.id)
    test.assertEqual(len(remaining), 0)


class TestClampOptions(unittest.TestCase):

    def test_defaults(self):
        options = clamp_options()
        self.assertEqual(
            options,
            GeneratorOptions(settings.DEFAULT_COUNT, settings.DEFAULT_MIN_LEN, settings.DEFAULT_MAX_LEN),
        )

    def test_count_above_cap(self):
        self.assertEqual(clamp_options(999, 2, 4).count, settings.SOLVER_MAX_PIECES)

    def test_low_values(self):
        self.assertEqual(clamp_options(0, 1, 0), GeneratorOptions(1, 2, 2))

    def test_high_lengths(self):
        self.assertEqual(clamp_options(3, 50, 100), GeneratorOptions(3, 20, 30))

    def test_reversed_range_is_swapped(self):
        self.assertEqual(clamp_options(5, 9, 3), GeneratorOptions(5, 3, 9))

    def test_clamping_is_logged(self):
        with self.assertLogs("snake_arrow.services.generator", level="WARNING"):
            clamp_options(999, 2, 4)


class TestSnakePath(unittest.TestCase):

    def test_neck_is_behind_head(self):
        for direction in Direction:
            cells = make_snake_path(Cell(10, 10), direction, 2, 30, 20)
            dx, dy = direction.vector
            self.assertEqual(cells, (Cell(10, 10), Cell(10 - dx, 10 - dy)))

    def test_neck_outside_grid(self):
        self.assertIsNone(make_snake_path(Cell(0, 5), Direction.RIGHT, 3, 30, 20))
        self.assertIsNone(make_snake_path(Cell(5, 19), Direction.UP, 3, 30, 20))

    def test_body_never_ahead_of_head(self):
        for _ in range(200):
            for direction in Direction:
                head = Cell(15, 10)
                cells = make_snake_path(head, direction, 8, 30, 20)
                if cells is None:
                    continue
                self.assertEqual(len(cells), 8)
                validate_cells(cells)
                for cell in cells[1:]:
                    self.assertLessEqual(forward_dot(cell.x - head.x, cell.y - head.y, direction), 0)

    def test_sideways_growth_is_possible(self):
        # Right next to the wall behind it the snake can only turn sideways.
        seen_sideways = False
        for _ in range(200):
            cells = make_snake_path(Cell(1, 10), Direction.RIGHT, 4, 30, 20)
            if cells is None:
                continue
            if any(c.x == 1 for c in cells[1:]):
                seen_sideways = True
                break
        self.assertTrue(seen_sideways)

    def test_too_long_for_grid(self):
        self.assertIsNone(make_snake_path(Cell(1, 1), Direction.RIGHT, 10, 3, 3))


class TestEdgeBuffer(unittest.TestCase):

    def test_head_facing_near_edge(self):
        self.assertTrue(head_too_close_to_exit(Cell(28, 5), Direction.RIGHT, 30, 20, 30, 60))
        self.assertFalse(head_too_close_to_exit(Cell(27, 5), Direction.RIGHT, 30, 20, 30, 60))
        self.assertTrue(head_too_close_to_exit(Cell(1, 5), Direction.LEFT, 30, 20, 30, 60))
        self.assertTrue(head_too_close_to_exit(Cell(5, 1), Direction.UP, 30, 20, 30, 60))
        self.assertTrue(head_too_close_to_exit(Cell(5, 18), Direction.DOWN, 30, 20, 30, 60))

    def test_facing_away_is_fine(self):
        self.assertFalse(head_too_close_to_exit(Cell(28, 5), Direction.LEFT, 30, 20, 30, 60))

    def test_zero_buffer(self):
        self.assertFalse(head_too_close_to_exit(Cell(29, 5), Direction.RIGHT, 30, 20, 30, 0))


class TestGenerateBoard(unittest.TestCase):

    def test_three_short_snakes(self):
        result = generate_board(count=3, min_len=2, max_len=2)
        self.assertEqual(result.status, GenerationStatus.GENERATED)
        self.assertTrue(result.ok)
        self.assertEqual(len(result.board), 3)
        self.assertTrue(all(p.length == 2 for p in result.board))
        self.assertEqual(solve(result.board).status, SolveStatus.SOLVED)
        assert_board_invariants(self, result.board, result.order)

    def test_accepted_boards_are_solvable(self):
        for _ in range(5):
            result = generate_board(count=8, min_len=2, max_len=6)
            self.assertTrue(result.ok)
            self.assertEqual(len(result.board), 8)
            for piece in result.board:
                self.assertGreaterEqual(piece.length, 2)
                self.assertLessEqual(piece.length, 6)
            assert_board_invariants(self, result.board, result.order)

    def test_ids_are_unique(self):
        result = generate_board(count=6, min_len=2, max_len=4)
        ids = [p.id for p in result.board]
        self.assertEqual(len(ids), len(set(ids)))

    def test_custom_grid(self):
        result = generate_board(count=2, min_len=2, max_len=3, cols=10, rows=10, cell_size=20)
        self.assertTrue(result.ok)
        self.assertEqual((result.board.cols, result.board.rows, result.board.cell_size), (10, 10, 20))
        assert_board_invariants(self, result.board, result.order)

    def test_grid_too_small_for_heads(self):
        for cols, rows in ((2, 2), (2, 10), (10, 1), (-4, 5)):
            with self.subTest(cols=cols, rows=rows):
                result = generate_board(count=1, min_len=2, max_len=2, cols=cols, rows=rows)
                self.assertEqual(result.status, GenerationStatus.EXHAUSTED)
                self.assertIsNone(result.board)
                self.assertEqual(result.attempts, 0)

    def test_smallest_usable_grid(self):
        # The only head cell is the center, always within the edge buffer,
        # so only the fallback pass can place it.
        with mock.patch.object(settings, "MAX_GEN_ATTEMPTS", 5):
            result = generate_board(count=1, min_len=2, max_len=2, cols=3, rows=3, cell_size=30)

        self.assertTrue(result.ok)
        self.assertTrue(result.fallback_used)
        self.assertEqual(result.board.pieces[0].head, Cell(1, 1))
        assert_board_invariants(self, result.board, result.order)

    def test_exhausted(self):
        with mock.patch.object(settings, "MAX_GEN_ATTEMPTS", 3), \
                mock.patch.object(settings, "FALLBACK_GEN_ATTEMPTS", 2), \
                mock.patch.object(settings, "PLACEMENT_TRIES", 5):
            result = generate_board(count=20, min_len=20, max_len=20, cols=4, rows=4)

        self.assertEqual(result.status, GenerationStatus.EXHAUSTED)
        self.assertFalse(result.ok)
        self.assertIsNone(result.board)
        self.assertIsNone(result.order)
        self.assertEqual(result.attempts, 5)
        self.assertTrue(result.fallback_used)


class TestGenerateReplacement(unittest.TestCase):

    def make_deadlock(self):
        return Board(pieces=(
            Piece("a", (Cell(2, 5), Cell(1, 5), Cell(1, 6)), Direction.RIGHT),
            Piece("b", (Cell(5, 5), Cell(6, 5)), Direction.LEFT),
        ), cols=30, rows=20, cell_size=30)

    def test_matches_count_and_lengths(self):
        authored = self.make_deadlock()
        self.assertEqual(solve(authored).status, SolveStatus.UNSOLVABLE)

        result = generate_replacement(authored)
        self.assertTrue(result.ok)
        self.assertEqual(len(result.board), 2)
        for piece in result.board:
            self.assertIn(piece.length, (2, 3))
        assert_board_invariants(self, result.board, result.order)

    def test_narrow_authored_grid(self):
        narrow = Board(pieces=(
            Piece("a", (Cell(0, 1), Cell(0, 2)), Direction.RIGHT),
            Piece("b", (Cell(1, 1), Cell(1, 2)), Direction.LEFT),
        ), cols=2, rows=4, cell_size=30)

        result = generate_replacement(narrow)
        self.assertEqual(result.status, GenerationStatus.EXHAUSTED)
        self.assertIsNone(result.board)

    def test_empty_board(self):
        empty = Board(pieces=())
        result = generate_replacement(empty)
        self.assertTrue(result.ok)
        self.assertEqual(result.board, empty)
        self.assertEqual(result.order, [])


if __name__ == '__main__':
    unittest.main()
