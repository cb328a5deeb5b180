"""Chess rules engine: 0x88 board, legal move generation and game state."""

__version__ = "0.1.0"
