"""Tic Tac Toe engine: board rules, computer opponent, match session, stats and history."""

__version__ = "0.2.0"
