class OutOfBoundsError(ValueError):
    """Raised when a move references a cell outside the board."""


class BoardInvariantError(RuntimeError):
    """Raised when the world holds a board state the engine can never produce."""
