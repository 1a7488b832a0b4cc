from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np


def pair_index(i: int, j: int, n_types: int) -> int:
    """Flat index of the ordered type pair (i, j); (i, j) and (j, i) differ."""
    return int(i) + int(j) * int(n_types)


def triple_index(i: int, j: int, k: int, n_types: int) -> int:
    n = int(n_types)
    return int(i) + int(j) * n + int(k) * n * n


def _check_n_types(n_types: int) -> int:
    n = int(n_types)
    if n < 1:
        raise ValueError("n_types must be >= 1")
    return n


def _check_type(t: int, n_types: int, key: str) -> int:
    ti = int(t)
    if ti < 0 or ti >= n_types:
        raise IndexError(f"{key}={ti} out of range for n_types={n_types}")
    return ti


class PairTable:
    """Dense per-ordered-pair table backed by one contiguous buffer.

    Bounds are checked here, at the boundary; ``values`` gives the raw
    buffer for the hot paths.
    """

    def __init__(self, n_types: int, fill: float = 0.0):
        self.n_types = _check_n_types(n_types)
        self.values = np.full((self.n_types * self.n_types,), float(fill), dtype=float)

    @classmethod
    def from_values(cls, values: Sequence[float] | np.ndarray) -> "PairTable":
        arr = np.asarray(values, dtype=float)
        if arr.ndim != 1:
            raise ValueError("pair table values must be 1D")
        n = int(round(float(np.sqrt(arr.size))))
        if n < 1 or n * n != arr.size:
            raise ValueError(f"pair table length {arr.size} is not a perfect square")
        out = cls(n)
        out.values[:] = arr
        return out

    def index(self, i: int, j: int) -> int:
        ti = _check_type(i, self.n_types, "i")
        tj = _check_type(j, self.n_types, "j")
        return pair_index(ti, tj, self.n_types)

    def __getitem__(self, key: tuple[int, int]) -> float:
        i, j = key
        return float(self.values[self.index(i, j)])

    def __setitem__(self, key: tuple[int, int], value: float) -> None:
        i, j = key
        self.values[self.index(i, j)] = float(value)

    def __len__(self) -> int:
        return int(self.values.size)

    def set_symmetric(self, i: int, j: int, value: float) -> None:
        self[i, j] = value
        self[j, i] = value

    def mirror(self, src: tuple[int, int]) -> None:
        """Copy the (i, j) entry into (j, i)."""
        i, j = src
        self[j, i] = self[i, j]

    def is_symmetric(self, i: int, j: int) -> bool:
        return self[i, j] == self[j, i]

    def asymmetric_pairs(self, pairs: Iterable[tuple[int, int]] | None = None) -> list[tuple[int, int]]:
        """Pairs (i < j) whose mirrored entries differ.

        With ``pairs`` given only those are checked; otherwise every
        off-diagonal pair is.
        """
        if pairs is None:
            pairs = [(i, j) for i in range(self.n_types) for j in range(i + 1, self.n_types)]
        out: list[tuple[int, int]] = []
        for i, j in pairs:
            a, b = (int(i), int(j)) if int(i) <= int(j) else (int(j), int(i))
            if not self.is_symmetric(a, b) and (a, b) not in out:
                out.append((a, b))
        return out

    def copy(self) -> "PairTable":
        return PairTable.from_values(self.values.copy())


class TripleTable:
    """Dense per-ordered-triple table (bend parameters), ``n_types**3`` long."""

    def __init__(self, n_types: int, fill: float = 0.0):
        self.n_types = _check_n_types(n_types)
        n = self.n_types
        self.values = np.full((n * n * n,), float(fill), dtype=float)

    def index(self, i: int, j: int, k: int) -> int:
        ti = _check_type(i, self.n_types, "i")
        tj = _check_type(j, self.n_types, "j")
        tk = _check_type(k, self.n_types, "k")
        return triple_index(ti, tj, tk, self.n_types)

    def __getitem__(self, key: tuple[int, int, int]) -> float:
        i, j, k = key
        return float(self.values[self.index(i, j, k)])

    def __setitem__(self, key: tuple[int, int, int], value: float) -> None:
        i, j, k = key
        self.values[self.index(i, j, k)] = float(value)

    def __len__(self) -> int:
        return int(self.values.size)


def energy_bounds(
    n_types: int,
    umin_default: float = 0.0,
    umax_default: float = 100.0,
) -> tuple[PairTable, PairTable]:
    """(Umin, Umax) tables with every pair at the baseline values."""
    return PairTable(n_types, fill=umin_default), PairTable(n_types, fill=umax_default)
