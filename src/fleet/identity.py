"""Replica index -> fixed-width identity string."""

from typing import Iterator, List

from src.config.constants import IDENTITY_WIDTH


def max_replicas(width: int = IDENTITY_WIDTH) -> int:
    """Largest index representable without colliding at this width."""
    return 10 ** width - 1


def identity(index: int, width: int = IDENTITY_WIDTH) -> str:
    """Zero-padded identity for a replica index, e.g. 7 -> "007"."""
    if not 1 <= index <= max_replicas(width):
        raise ValueError(f"Replica index {index} outside [1, {max_replicas(width)}]")
    return f"{index:0{width}d}"


def iter_identities(n: int, width: int = IDENTITY_WIDTH) -> Iterator[str]:
    for index in range(1, n + 1):
        yield identity(index, width)


def fleet_identities(n: int, width: int = IDENTITY_WIDTH) -> List[str]:
    """All identities of an N-replica fleet in increasing order."""
    return list(iter_identities(n, width))
