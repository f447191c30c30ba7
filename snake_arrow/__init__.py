"""Snake Arrow Puzzle: board generator and exact solver."""

__version__ = "1.0.0"
