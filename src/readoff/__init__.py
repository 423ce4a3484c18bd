"""Read Off: a two-or-more player yearly reading challenge.

Players log books month by month, an AI rates each book's difficulty, and
missed monthly targets feed a penalty pool shared by the players who passed.
"""

__version__ = "0.1.0"
