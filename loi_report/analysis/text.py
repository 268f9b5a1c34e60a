"""School name text analysis.

Names are split on whitespace only; punctuation stays attached to its word,
so "St. Joseph's" is two tokens.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

ACADEMY_WORDS: frozenset[str] = frozenset({"Institute", "Collegiate", "Academy"})


def tokenize_name(name: Any) -> list[str]:
    """Split a school name into whitespace-separated tokens.

    Missing names (None/NaN) have no tokens.
    """
    if name is None or (not isinstance(name, str) and pd.isna(name)):
        return []
    return str(name).split()


def word_count(name: Any) -> int:
    """Number of whitespace-separated tokens in a name."""
    return len(tokenize_name(name))


def is_academy_name(name: Any, words: Iterable[str] = ACADEMY_WORDS) -> bool:
    """Check whether any token of the name is in the word list.

    Matching is on whole tokens and is case-sensitive, so "Collegiate"
    matches but "collegiate-style" does not.
    """
    word_set = set(words)
    return any(token in word_set for token in tokenize_name(name))


@dataclass
class WordFrequencyResult:
    """Word frequencies over a set of names.

    Attributes:
        counts: Counter of word -> occurrences
        total_names: Number of names counted (missing names excluded)
        total_words: Total number of tokens
    """

    counts: Counter[str] = field(default_factory=Counter)
    total_names: int = 0
    total_words: int = 0

    def most_common(self, n: int | None = None) -> list[tuple[str, int]]:
        """Words by descending frequency."""
        return self.counts.most_common(n)

    def to_frame(self, n: int | None = None) -> pd.DataFrame:
        """Frequencies as a DataFrame with columns word, count, share."""
        rows = self.most_common(n)
        df = pd.DataFrame(rows, columns=["word", "count"])
        df["share"] = df["count"] / self.total_names if self.total_names else 0.0
        return df

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_names": self.total_names,
            "total_words": self.total_words,
            "unique_words": len(self.counts),
            "most_common": self.most_common(20),
        }

    def format_for_display(self, n: int = 10) -> str:
        """Format as human-readable string."""
        lines = [f"**Most common name words** ({self.total_names} names)"]
        for word, count in self.most_common(n):
            lines.append(f"  {word}: {count}")
        return "\n".join(lines)


def word_frequencies(
    names: Iterable[Any],
    top_n: int | None = None,
    ignore_case: bool = False,
) -> WordFrequencyResult:
    """Count how often each word appears across school names.

    Args:
        names: School names; missing values are skipped
        top_n: Keep only the top N words (None = all)
        ignore_case: Count words case-insensitively

    Returns:
        WordFrequencyResult

    Example:
        >>> result = word_frequencies(df["name"], top_n=10)
        >>> result.most_common(3)
        [('School', 301), ('Public', 280), ('Junior', 77)]
    """
    counts: Counter[str] = Counter()
    total_names = 0

    for name in names:
        tokens = tokenize_name(name)
        if not tokens:
            continue
        total_names += 1
        if ignore_case:
            tokens = [t.lower() for t in tokens]
        counts.update(tokens)

    total_words = sum(counts.values())
    if top_n is not None:
        counts = Counter(dict(counts.most_common(top_n)))

    return WordFrequencyResult(counts=counts, total_names=total_names, total_words=total_words)


def partition_by_words(
    df: pd.DataFrame,
    words: Iterable[str] = ACADEMY_WORDS,
    name_column: str = "name",
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Split records by whether their name contains one of the words.

    Every record lands in exactly one of the two frames.

    Args:
        df: Records with a name column
        words: Word list to match on whole tokens
        name_column: Column holding the names

    Returns:
        Tuple of (matched, unmatched) DataFrames
    """
    if name_column not in df.columns:
        raise ValueError(f"Column {name_column} not found in DataFrame")

    word_set = frozenset(words)
    mask = df[name_column].map(lambda n: is_academy_name(n, word_set)).astype(bool)
    return df[mask], df[~mask]
