import sys, os

# Ensure src (and the repo root, for tests.helpers) is on path for test imports
ROOT = os.path.dirname(os.path.dirname(__file__))
SRC = os.path.join(ROOT, "src")
for path in (ROOT, SRC):
    if path not in sys.path:
        sys.path.insert(0, path)

from tests.helpers import ScriptedRandom, build_game, parse_board

__all__ = [
    "ScriptedRandom",
    "build_game",
    "parse_board",
]
