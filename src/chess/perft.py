"""
Perft: count the leaf nodes of the legal move tree to a fixed depth.

The counts get compared against published reference numbers for a handful of well known positions.
Any difference means a bug in move generation or legality.
"""

from src.chess.game import Game


def count_positions(game: Game, depth: int) -> int:
    """Compute perft node count for `game` at `depth`.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Walks the move tree with push / pop, so the game is unchanged when this returns.
    Draw rules are not adjudicated: the reference counts don't stop at a repetition or the fifty-move rule.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    moves = game.legal_moves()
    # leaf level: no need to play the moves just to count them
    if depth == 1:
        return len(moves)

    nodes = 0
    for move in moves:
        game.push(move)
        try:
            nodes += count_positions(game, depth - 1)
        finally:
            game.pop()
    return nodes


def divide(game: Game, depth: int) -> dict[str, int]:
    """Node count per root move (keyed by UCI), to find the move whose subtree disagrees with a reference engine."""
    if depth < 1:
        raise ValueError("depth must be >= 1")

    counts: dict[str, int] = {}
    for move in game.legal_moves():
        game.push(move)
        try:
            counts[move.to_uci()] = count_positions(game, depth - 1)
        finally:
            game.pop()
    return counts
