"""Unordered user pairs - one canonical key per {a, b} regardless of orientation."""


def canonical_pair(a: str, b: str) -> tuple[str, str]:
    """Sorted (low, high) key; stored alongside the oriented ids and unique-constrained."""
    return (a, b) if a <= b else (b, a)


def other_party(a: str, b: str, me: str) -> str:
    return b if me == a else a
