"""
Fuzzy suggestion ranking for autocomplete and "did you mean" hints.

rank(candidate, hint) scores one candidate, 0 being the best; the first rule that
matches wins:

1. acronym: the candidate has two or more hyphen segments and every hint character
   starts the segment at the same position ("gf" → "get-file")
2. prefix: the hint starts one hyphen segment or the whole candidate
3. suffix: the candidate ends with the hint (score 1)
4. otherwise the Levenshtein distance between hint and candidate

every comparison is case-insensitive.
"""
from .tokenizer import QUOTE


def levenshtein(source, target, /):
    """edit distance (insertions, deletions, substitutions) between two strings."""
    if not source:
        return len(target)
    if not target:
        return len(source)

    previous = list(range(len(target) + 1))
    for row, char in enumerate(source, 1):
        current = [row]
        for column, other in enumerate(target, 1):
            current.append(min(
                previous[column] + 1,
                current[column - 1] + 1,
                previous[column - 1] + (char != other),
            ))
        previous = current
    return previous[-1]


def rank(candidate, hint, /):
    folded = candidate.casefold()
    needle = hint.casefold()
    segments = folded.split("-")

    if len(segments) > 1 and 0 < len(needle) <= len(segments):
        if all(segment.startswith(char) for segment, char in zip(segments, needle)):
            return 0

    if folded.startswith(needle) or any(segment.startswith(needle) for segment in segments):
        return 0

    if folded.endswith(needle):
        return 1

    return levenshtein(needle.upper(), folded.upper())


def rank_all(candidates, hint, /):
    """
    order candidates by ascending rank, ties broken by ascending length.

    blank candidates are dropped and the rest are stripped; candidates scoring at
    least their own length are filtered out. a blank hint keeps every candidate in
    its original order.
    """
    candidates = [candidate.strip() for candidate in candidates if candidate and candidate.strip()]
    if not hint or not hint.strip():
        return candidates

    scored = ((rank(candidate, hint), candidate) for candidate in candidates)
    return [
        candidate
        for score, candidate in sorted(scored, key=lambda pair: (pair[0], len(pair[1])))
        if score < len(candidate)
    ]


def quote_if_needed(text, /):
    """wrap text containing spaces in quotes (doubling inner quotes) unless already quoted."""
    if " " in text and not text.startswith(QUOTE):
        return QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE
    return text


__all__ = (
    "levenshtein",
    "rank",
    "rank_all",
    "quote_if_needed",
)
