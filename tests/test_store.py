import os
import tempfile
import unittest

from game import (
    AlreadyStartedError,
    Board,
    Direction,
    GameStatus,
    InvalidBoardError,
    LengthMismatchError,
    NotFoundError,
    Point,
    Size,
    UnauthorizedError,
    create_board,
    create_game,
    db_append_board,
    db_get_board,
    db_get_game,
    db_replace_board,
    start_game,
    step_game,
    step_stored_board,
    validate_stored_board,
)


def _push_board() -> Board:
    board = Board.new(Size(4, 2))
    board.set(Point(0, 0), 1)
    board.set(Point(1, 0), 4)
    board.set(Point(2, 0), 2)
    board.set(Point(3, 0), 6)
    board.set(Point(1, 1), 1)
    return board


class TestStore(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.db = os.path.join(self._tmp.name, "sokoban.db")

    def tearDown(self):
        self._tmp.cleanup()

    def test_given_raw_field_when_created_then_get_returns_same_bytes(self):
        field = bytearray(32)
        field[0] = 50
        index = create_board(self.db, bytes(field))
        self.assertEqual(index, 0)
        board = db_get_board(self.db, 0)
        self.assertIsNotNone(board)
        self.assertEqual(bytes(board.cells), bytes(field))
        self.assertEqual(board.size, Size(8, 8))
        self.assertFalse(board.is_valid)
        self.assertIsNone(db_get_board(self.db, 1))

    def test_given_wrong_length_when_created_then_nothing_stored(self):
        with self.assertRaises(LengthMismatchError):
            create_board(self.db, bytes(3), Size(4, 2))
        self.assertIsNone(db_get_board(self.db, 0))

    def test_given_several_boards_when_appended_then_indexes_sequential(self):
        b = _push_board()
        self.assertEqual(create_board(self.db, bytes(b.cells), b.size), 0)
        self.assertEqual(create_board(self.db, bytes(b.cells), b.size), 1)
        self.assertEqual(db_append_board(self.db, b), 2)
        stored = db_get_board(self.db, 1)
        self.assertTrue(stored.is_valid)
        self.assertEqual(stored.agent_position, Point(1, 0))

    def test_given_stored_board_when_replaced_and_revalidated_then_index_updated(self):
        b = _push_board()
        index = db_append_board(self.db, b)
        self.assertFalse(db_get_board(self.db, index).is_valid)
        board = validate_stored_board(self.db, index)
        self.assertTrue(board.is_valid)
        self.assertTrue(db_get_board(self.db, index).is_valid)

        b.set(Point(0, 0), 4)
        db_replace_board(self.db, index, b)
        self.assertEqual(db_get_board(self.db, index).pretty(), "sscX\n*.**\n")
        self.assertFalse(validate_stored_board(self.db, index).is_valid)
        with self.assertRaises(NotFoundError):
            db_replace_board(self.db, 5, b)
        with self.assertRaises(NotFoundError):
            validate_stored_board(self.db, 5)

    def test_given_stored_board_when_stepped_then_replaced_in_place(self):
        b = _push_board()
        index = create_board(self.db, bytes(b.cells), b.size)
        board = step_stored_board(self.db, index, Direction.Forward)
        self.assertEqual(board.pretty(), "..sC\n*.**\n")
        self.assertEqual(db_get_board(self.db, index).pretty(), "..sC\n*.**\n")
        self.assertEqual(db_get_board(self.db, index).agent_position, Point(2, 0))

    def test_given_invalid_stored_board_when_stepped_then_none_and_untouched(self):
        index = create_board(self.db, bytes(4), Size(4, 2))
        self.assertIsNone(step_stored_board(self.db, index, Direction.Forward))
        self.assertEqual(bytes(db_get_board(self.db, index).cells), bytes(4))

    def test_given_valid_board_when_game_created_then_get_returns_copy_for_player(self):
        b = _push_board()
        board_index = create_board(self.db, bytes(b.cells), b.size)
        game_index = create_game(self.db, board_index, "alice.near")
        self.assertEqual(game_index, 0)
        game = db_get_game(self.db, game_index)
        self.assertIsNotNone(game)
        self.assertIsNone(db_get_game(self.db, game_index + 1))
        self.assertEqual(game.player, "alice.near")
        self.assertEqual(game.status, GameStatus.Unactive)
        self.assertEqual(bytes(game.board.cells), bytes(b.cells))

    def test_given_invalid_or_missing_board_when_game_created_then_rejected(self):
        index = create_board(self.db, bytes(4), Size(4, 2))
        with self.assertRaises(InvalidBoardError):
            create_game(self.db, index, "alice.near")
        with self.assertRaises(NotFoundError):
            create_game(self.db, 42, "alice.near")
        self.assertIsNone(db_get_game(self.db, 0))

    def test_given_game_when_started_and_solved_then_status_persisted(self):
        b = _push_board()
        board_index = create_board(self.db, bytes(b.cells), b.size)
        game_index = create_game(self.db, board_index, "alice.near")

        start_game(self.db, game_index)
        self.assertEqual(db_get_game(self.db, game_index).status, GameStatus.Running)
        with self.assertRaises(AlreadyStartedError):
            start_game(self.db, game_index)

        with self.assertRaises(UnauthorizedError):
            step_game(self.db, game_index, Direction.Forward, "mallory.near")
        self.assertEqual(db_get_game(self.db, game_index).board.pretty(), ".scX\n*.**\n")

        game = step_game(self.db, game_index, Direction.Forward, "alice.near")
        self.assertEqual(game.status, GameStatus.Finished)
        stored = db_get_game(self.db, game_index)
        self.assertEqual(stored.status, GameStatus.Finished)
        self.assertEqual(stored.board.pretty(), "..sC\n*.**\n")
        # The source board is not touched by game moves.
        self.assertEqual(db_get_board(self.db, board_index).pretty(), ".scX\n*.**\n")

    def test_given_missing_game_when_started_or_stepped_then_not_found(self):
        with self.assertRaises(NotFoundError):
            start_game(self.db, 0)
        with self.assertRaises(NotFoundError):
            step_game(self.db, 0, Direction.Up, "alice.near")

    def test_given_nested_path_when_storing_then_directories_created(self):
        nested = os.path.join(self._tmp.name, "deep", "nest", "file.db")
        index = create_board(nested, bytes(1), Size(1, 1))
        self.assertEqual(index, 0)
        self.assertTrue(os.path.isfile(nested))


if __name__ == "__main__":
    unittest.main(verbosity=2)
