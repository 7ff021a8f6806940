"""
Sokoban core Python package.

Pure board physics and game lifecycle, kept free of HTTP and storage
concerns so they can be tested on their own.
Modules:
- geometry.py: Point, Size, Direction, cell states
- codec.py: packed nibble grid encoding
- board.py: Board
- validate.py: board validation and the solved check
- moves.py: make_step
- session.py: GameSession
- store.py: sqlite-backed indexed storage
"""
