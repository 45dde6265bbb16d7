"""Map a free-text category guess onto an existing category.

Used by the receipt pipeline: the extraction service returns a category name
such as "Food & Dining", which is matched exactly (ignoring case), then by
string similarity. Anything below the threshold means "create a new one".
"""

from dataclasses import dataclass
from typing import List, Optional

from rapidfuzz.distance import Indel

from models.category import Category

MATCH_EXACT = "exact"
MATCH_FUZZY = "fuzzy"
MATCH_NONE = "none"

# Similarity must be strictly greater than this to count as a match
SIMILARITY_THRESHOLD = 0.7


@dataclass(frozen=True)
class CategoryMatch:
    """Result of matching a guess against existing categories.

    Attributes:
        kind: "exact", "fuzzy" or "none".
        category: The matched category, None when kind is "none".
        score: Similarity in [0, 1]; 1.0 for exact matches.
    """

    kind: str
    category: Optional[Category] = None
    score: float = 0.0

    @property
    def matched(self) -> bool:
        return self.category is not None


def similarity(a: str, b: str) -> float:
    """Case-folded similarity of two names, 0.0 to 1.0.

    Normalized Indel similarity, the same score as ``fuzz.ratio`` scaled to 1.
    """
    return Indel.normalized_similarity(a.casefold(), b.casefold())


def match_category(guess: Optional[str], categories: List[Category]) -> CategoryMatch:
    """Find the existing category that best matches guess.

    Args:
        guess: Category name suggested by the extraction service.
        categories: All existing categories.

    Returns:
        CategoryMatch. Ties on score go to the first category in the list.
    """
    if not guess or not guess.strip() or not categories:
        return CategoryMatch(kind=MATCH_NONE)

    folded = guess.strip().casefold()
    for category in categories:
        if category.name.casefold() == folded:
            return CategoryMatch(kind=MATCH_EXACT, category=category, score=1.0)

    best: Optional[Category] = None
    best_score = -1.0
    for category in categories:
        score = similarity(folded, category.name)
        if score > best_score:
            best, best_score = category, score

    if best is not None and best_score > SIMILARITY_THRESHOLD:
        return CategoryMatch(kind=MATCH_FUZZY, category=best, score=best_score)
    return CategoryMatch(kind=MATCH_NONE, score=max(best_score, 0.0))
