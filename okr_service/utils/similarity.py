"""String similarity utilities."""
from rapidfuzz.distance import Levenshtein


def edit_distance(first: str, second: str) -> int:
    """
    Unit-cost Levenshtein distance (insert, delete, substitute).

    Examples:
        >>> edit_distance("kitten", "sitting")
        3
    """
    return Levenshtein.distance(first, second)


def similarity(first: str, second: str) -> float:
    """
    Normalised edit-distance similarity in [0, 1].

    Computed as ``(longer - distance) / longer`` where ``longer`` is the
    length of the longer string. Two empty strings are identical (1.0).
    No case folding or trimming happens here.

    Examples:
        >>> similarity("abc", "abc")
        1.0
        >>> similarity("", "")
        1.0
        >>> similarity("abcd", "abce")
        0.75
    """
    longer = max(len(first), len(second))
    if longer == 0:
        return 1.0

    return (longer - edit_distance(first, second)) / longer


def normalize_title(title: str) -> str:
    """Lower-case and trim a title before comparison."""
    return title.lower().strip()
