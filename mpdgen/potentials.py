from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from .constants import N_TWO_BODY_FCONST, N_TWO_BODY_UCONST, NUMERICAL_ZERO
from .pair_table import PairTable

ArrayLike = Union[Sequence[float], np.ndarray, PairTable]


class ForceFieldError(ValueError):
    pass


def _as_bounds(x: ArrayLike, key: str) -> np.ndarray:
    arr = x.values if isinstance(x, PairTable) else x
    out = np.array(arr, dtype=float, copy=True)
    if out.ndim != 1:
        raise ForceFieldError(f"{key} must be 1D")
    if out.size == 0:
        raise ForceFieldError(f"{key} must be non-empty")
    if not np.all(np.isfinite(out)):
        raise ForceFieldError(f"{key} contains non-finite values")
    return out


def _check_law_inputs(
    umax: ArrayLike,
    umin: ArrayLike,
    cutoff: float,
    rmin: float,
) -> tuple[np.ndarray, np.ndarray, float, float]:
    hi = _as_bounds(umax, "Umax")
    lo = _as_bounds(umin, "Umin")
    if hi.shape != lo.shape:
        raise ForceFieldError(f"Umax/Umin length mismatch: {hi.size} != {lo.size}")
    n = int(round(float(np.sqrt(hi.size))))
    if n * n != hi.size:
        raise ForceFieldError(f"energy bound length {hi.size} is not n_types**2")
    rc = float(cutoff)
    r0 = float(rmin)
    if not (np.isfinite(rc) and np.isfinite(r0)):
        raise ForceFieldError("cutoff and rmin must be finite")
    if r0 <= 0.0 or rc <= 0.0:
        raise ForceFieldError(f"cutoff ({rc}) and rmin ({r0}) must be positive")
    if rc <= r0:
        raise ForceFieldError(f"cutoff ({rc}) must be greater than rmin ({r0})")
    return hi, lo, rc, r0


def laradji_revalee_fc(umax: ArrayLike, umin: ArrayLike, cutoff: float, rmin: float) -> np.ndarray:
    """Force constants of the Laradji-Revalee soft lipid potential.

    Per ordered pair ``k`` the block ``[k*6, (k+1)*6)`` holds::

        rmin, 2(Umax-Umin)/rmin^2, 0, rc, 6 Umin/(rc-rmin)^2, 6 Umin/(rc-rmin)^3

    so that F(r) = c1 (c0 - r) for r <= rmin and
    F(r) = d (c4 - c5 d), d = c3 - r, for rmin < r <= rc.
    """
    hi, lo, rc, r0 = _check_law_inputs(umax, umin, cutoff, rmin)
    width = rc - r0
    out = np.empty((hi.size, N_TWO_BODY_FCONST), dtype=float)
    out[:, 0] = r0
    out[:, 1] = (2.0 * (hi - lo)) / (r0 * r0)
    out[:, 2] = 0.0  # inner bound of the core branch
    out[:, 3] = rc
    out[:, 4] = (6.0 * lo) / (width * width)
    out[:, 5] = (6.0 * lo) / (width * width * width)
    return out.reshape(-1)


def laradji_revalee_pc(umax: ArrayLike, umin: ArrayLike, cutoff: float, rmin: float) -> np.ndarray:
    """Potential constants of the Laradji-Revalee soft lipid potential.

    Per ordered pair ``k`` the block ``[k*6, (k+1)*6)`` holds::

        rc, rmin, (Umax-Umin)/rmin^2, Umin, -2 Umin/(rc-rmin)^3, 3 Umin/(rc-rmin)^2

    so that U(r) = c2 (c1 - r)^2 + c3 for r <= rmin and
    U(r) = d^2 (c4 d + c5), d = c0 - r, for rmin < r <= rc.
    """
    hi, lo, rc, r0 = _check_law_inputs(umax, umin, cutoff, rmin)
    width = rc - r0
    out = np.empty((hi.size, N_TWO_BODY_UCONST), dtype=float)
    out[:, 0] = rc
    out[:, 1] = r0
    out[:, 2] = (hi - lo) / (r0 * r0)
    out[:, 3] = lo
    out[:, 4] = (-2.0 * lo) / (width * width * width)
    out[:, 5] = (3.0 * lo) / (width * width)
    return out.reshape(-1)


@dataclass(frozen=True)
class TwoBodyTables:
    """Immutable coefficient tables for every ordered type pair."""

    n_types: int
    fconst: np.ndarray
    uconst: np.ndarray

    def force_block(self, i: int, j: int) -> np.ndarray:
        k = self._pair(i, j)
        return self.fconst[k * N_TWO_BODY_FCONST:(k + 1) * N_TWO_BODY_FCONST]

    def potential_block(self, i: int, j: int) -> np.ndarray:
        k = self._pair(i, j)
        return self.uconst[k * N_TWO_BODY_UCONST:(k + 1) * N_TWO_BODY_UCONST]

    def _pair(self, i: int, j: int) -> int:
        n = int(self.n_types)
        if not (0 <= int(i) < n and 0 <= int(j) < n):
            raise IndexError(f"type pair ({i}, {j}) out of range for n_types={n}")
        return int(i) + int(j) * n


def build_two_body_tables(
    umin: ArrayLike,
    umax: ArrayLike,
    *,
    cutoff: float,
    rmin: float,
) -> TwoBodyTables:
    """Build read-only force and potential tables in pair-major order.

    Mirrored entries for symmetric interactions are the caller's job; the
    builder treats (i, j) and (j, i) as unrelated slots.
    """
    fc = laradji_revalee_fc(umax, umin, cutoff, rmin)
    pc = laradji_revalee_pc(umax, umin, cutoff, rmin)
    n = int(round(float(np.sqrt(fc.size // N_TWO_BODY_FCONST))))
    fc.setflags(write=False)
    pc.setflags(write=False)
    return TwoBodyTables(n_types=n, fconst=fc, uconst=pc)


@dataclass(frozen=True)
class LaradjiRevaleePotential:
    """Evaluate the tabulated law for vectors of pair distances.

    ``pair`` follows the force-kernel contract ``(coef, U)`` with
    ``coef = F(r) / r`` so the force on i from j is ``coef * (r_i - r_j)``.
    """

    tables: TwoBodyTables

    def _blocks(
        self,
        n: int,
        type_i: np.ndarray | None,
        type_j: np.ndarray | None,
    ) -> tuple[np.ndarray, np.ndarray]:
        nt = int(self.tables.n_types)
        ti = np.zeros((n,), dtype=np.int32) if type_i is None else np.asarray(type_i, dtype=np.int32)
        tj = np.zeros((n,), dtype=np.int32) if type_j is None else np.asarray(type_j, dtype=np.int32)
        if ti.shape != tj.shape or ti.shape != (n,):
            raise ValueError("type_i/type_j must have shape (n_pairs,)")
        if np.any((ti < 0) | (ti >= nt) | (tj < 0) | (tj >= nt)):
            raise ValueError(f"particle types out of range for n_types={nt}")
        k = ti + tj * nt
        fc = self.tables.fconst.reshape(-1, N_TWO_BODY_FCONST)[k]
        uc = self.tables.uconst.reshape(-1, N_TWO_BODY_UCONST)[k]
        return fc, uc

    def pair(
        self,
        r2: np.ndarray,
        cutoff2: float | None = None,
        type_i: np.ndarray | None = None,
        type_j: np.ndarray | None = None,
    ):
        r2 = np.asarray(r2, dtype=float)
        fc, uc = self._blocks(int(r2.shape[0]), type_i, type_j)
        r = np.sqrt(r2 + NUMERICAL_ZERO)
        core = (r2 >= 0.0) & (r <= fc[:, 0])
        well = (r > fc[:, 0]) & (r <= fc[:, 3])
        if cutoff2 is not None:
            core &= r2 < float(cutoff2)
            well &= r2 < float(cutoff2)

        d_f = fc[:, 3] - r
        force = np.where(core, fc[:, 1] * (fc[:, 0] - r), 0.0)
        force = np.where(well, d_f * (fc[:, 4] - fc[:, 5] * d_f), force)

        d_u = uc[:, 0] - r
        core_u = uc[:, 2] * (uc[:, 1] - r) ** 2 + uc[:, 3]
        well_u = d_u * d_u * (uc[:, 4] * d_u + uc[:, 5])
        U = np.where(core, core_u, 0.0)
        U = np.where(well, well_u, U)

        # no direction at zero separation
        coef = np.where((core | well) & (r2 > 0.0), force / (r + NUMERICAL_ZERO), 0.0)
        return coef, U

    def force_energy(self, r: float, type_i: int, type_j: int) -> tuple[float, float]:
        """Scalar radial force F(r) and energy U(r) for one pair."""
        rr = float(r)
        coef, U = self.pair(
            np.array([rr * rr], dtype=float),
            None,
            type_i=np.array([int(type_i)], dtype=np.int32),
            type_j=np.array([int(type_j)], dtype=np.int32),
        )
        return float(coef[0]) * rr, float(U[0])
