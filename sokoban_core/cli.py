from __future__ import annotations

import argparse
import sys
from typing import Dict, List, Optional

from .board import Board
from .errors import SokobanError
from .geometry import Direction
from .moves import make_step
from .validate import is_solved, parse_board

MOVE_LETTERS: Dict[str, Direction] = {
    'L': Direction.Backward,
    'B': Direction.Backward,
    'R': Direction.Forward,
    'F': Direction.Forward,
    'U': Direction.Up,
    'D': Direction.Down,
}


def parse_moves(text: str) -> List[Direction]:
    """Turns a move string like 'RRLD' into directions. Whitespace and commas are ignored."""
    out: List[Direction] = []
    for ch in text.upper():
        if ch in ' ,\t\n':
            continue
        if ch not in MOVE_LETTERS:
            raise ValueError(f"unknown move letter {ch!r}")
        out.append(MOVE_LETTERS[ch])
    return out


def replay(board: Board, moves: List[Direction], verbose: bool = True) -> Board:
    """Applies moves in order, stopping early once the board is solved."""
    for i, d in enumerate(moves, start=1):
        board = make_step(board, d)
        if verbose:
            print(f"Move {i}: {d.name}")
            print(board.pretty())
        if is_solved(board):
            break
    return board


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Sokoban board simulator')
    parser.add_argument('board', help="Board file using the symbols * . c C s S X, one row per line")
    parser.add_argument('--moves', default='', help='Moves to replay, e.g. RRLD (L/B, R/F, U, D)')
    parser.add_argument('--play', action='store_true', help='Play interactively after replaying --moves')
    args = parser.parse_args(argv)

    try:
        with open(args.board, 'r', encoding='utf-8') as f:
            board = parse_board(f.read())
        moves = parse_moves(args.moves)
    except (OSError, ValueError, SokobanError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    print('Initial board:')
    print(board.pretty())
    if not board.is_valid:
        print('Board is not valid: it needs exactly one agent and as many crates as destinations.')
        return 1

    board = replay(board, moves)
    if args.play:
        while not is_solved(board):
            text = input('Move (L/R/U/D, q to quit): ').strip()
            if text.lower() == 'q':
                break
            try:
                steps = parse_moves(text)
            except ValueError:
                print('Could not parse. Try again.')
                continue
            board = replay(board, steps)

    if is_solved(board):
        print('Solved!')
    return 0


if __name__ == '__main__':
    sys.exit(main())
