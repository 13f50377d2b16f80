"""Headless demo for the dicefall engine.

Drops vertical two-die pieces into random columns until the board tops out or
the piece budget runs out, then prints the board, active boosters and score
statistics.

Run with: ``python src/main.py [difficulty] [seed] [pieces]``
"""
import logging
import random
import sys

from dicefall.session import GameSession
from dicefall.systems.score_manager import ScoreManager

DOMINO = [(0, 0), (0, 1)]
SECONDS_PER_PIECE = 0.8


def play(difficulty: str = "medium", seed: int = 0, pieces: int = 200) -> GameSession:
    rng = random.Random(seed)
    session = GameSession(difficulty, rng=rng)
    grid = session.grid
    for _ in range(pieces):
        if session.game_over:
            break
        dice = session.spawn_piece(len(DOMINO))
        x = rng.randrange(grid.width)
        y = grid.find_drop_position(DOMINO, x)
        if y is None:
            y = 0
        placements = [((x + dx, y + dy), entity) for (dx, dy), entity in zip(DOMINO, dice)]
        turn = session.place_piece(placements)
        if turn.score_breakdown is not None and turn.score_breakdown.total_score:
            print(ScoreManager.format_breakdown(turn.score_breakdown))
        session.tick(SECONDS_PER_PIECE)
    return session


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = sys.argv[1:]
    difficulty = args[0] if args else "medium"
    seed = int(args[1]) if len(args) > 1 else 0
    pieces = int(args[2]) if len(args) > 2 else 200
    session = play(difficulty, seed, pieces)
    print(session.grid.debug_string())
    print(session.booster_manager.debug_string())
    for key, value in session.score_manager.get_score_statistics().items():
        print(f"{key}: {value}")
    print("game over" if session.game_over else "budget exhausted")


if __name__ == "__main__":
    main()
