from __future__ import annotations


class InvariantViolation(RuntimeError):
    """Raised when the board reaches a state the rules make impossible.

    This signals a bug in the engine (or a hand-built board that breaks the
    rules, e.g. a missing king), never an expected game outcome.
    """
