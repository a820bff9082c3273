"""
Guardados por usuario, votos y selección del comparador.
"""

from vitrina.bookmarks.manager import BookmarkManager, ComparisonSelection, ToggleResult
from vitrina.bookmarks.votes import VoteManager, VoteResult

__all__ = [
    "BookmarkManager",
    "ComparisonSelection",
    "ToggleResult",
    "VoteManager",
    "VoteResult",
]
