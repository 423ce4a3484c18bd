"""Challenge mutation actions.

Provides functionality for:
- Adding, renaming and removing players
- Editing, completing, adding and removing books
- Detecting and copying continued books from earlier months
- Logging reading days and requesting AI difficulty scores
"""

from .manager import ChallengeManager, Continuation, find_continuation

__all__ = [
    "ChallengeManager",
    "Continuation",
    "find_continuation",
]
