from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from .constants import N_TWO_BODY_FCONST, N_TWO_BODY_UCONST
from .potentials import TwoBodyTables
from .relax import BoxRelaxation

MOLECULE_KINDS = ("CHAIN",)


@dataclass(frozen=True)
class ChainMolecule:
    """``n_chains`` contiguous chains of ``length`` particles starting at ``start``.

    ``constants`` are the bond/bend parameters shared by every chain:
    (bond length, bond stiffness, bend cosine, bend stiffness).
    """

    constants: tuple[float, ...]
    start: int
    length: int
    n_chains: int
    kind: str = "CHAIN"

    def chain_ids(self, chain: int) -> np.ndarray:
        if chain < 0 or chain >= self.n_chains:
            raise IndexError(f"chain {chain} out of range for n_chains={self.n_chains}")
        first = self.start + chain * self.length
        return np.arange(first, first + self.length, dtype=np.int64)

    def bonds(self) -> np.ndarray:
        """(n_bonds, 2) particle index pairs of every chain."""
        out = []
        for c in range(self.n_chains):
            ids = self.chain_ids(c)
            out.append(np.stack([ids[:-1], ids[1:]], axis=1))
        if not out:
            return np.zeros((0, 2), dtype=np.int64)
        return np.concatenate(out, axis=0)


@dataclass
class SimulationSystem:
    """Container handed to the simulation engine through the .mpd file."""

    gamma: float = 1.0
    n_types: int = 1
    seed: int = 1
    periodic: tuple[bool, bool, bool] = (True, True, True)
    cutoff: float = 2.0
    size: np.ndarray = field(default_factory=lambda: np.zeros((3,), dtype=float))
    initial_time: float = 0.0
    final_time: float = 0.0
    delta_t: float = 0.02
    store_interval: float = 100.0
    measure_interval: float = 10.0
    initial_temp: float = 3.0
    final_temp: float = 3.0
    two_body_fconst: list[float] = field(default_factory=list)
    two_body_uconst: list[float] = field(default_factory=list)
    positions: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=float))
    velocities: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=float))
    types: np.ndarray = field(default_factory=lambda: np.zeros((0,), dtype=np.int32))
    molecules: list[ChainMolecule] = field(default_factory=list)
    box_relaxations: list[BoxRelaxation] = field(default_factory=list)

    @property
    def n_particles(self) -> int:
        return int(self.types.shape[0])

    def set_size(self, size: Sequence[float] | np.ndarray) -> None:
        s = np.asarray(size, dtype=float).reshape(-1)
        if s.size == 1:
            s = np.full((3,), float(s[0]), dtype=float)
        if s.shape != (3,) or np.any(s <= 0.0):
            raise ValueError("system size must be 3 positive lengths")
        self.size = s.copy()

    def add_two_body_fconst(self, value: float) -> None:
        self.two_body_fconst.append(float(value))

    def add_two_body_uconst(self, value: float) -> None:
        self.two_body_uconst.append(float(value))

    def add_two_body_tables(self, tables: TwoBodyTables) -> None:
        if int(tables.n_types) != int(self.n_types):
            raise ValueError(
                f"two-body tables built for n_types={tables.n_types}, system has {self.n_types}"
            )
        for v in tables.fconst:
            self.add_two_body_fconst(v)
        for v in tables.uconst:
            self.add_two_body_uconst(v)

    def add_particles(
        self,
        types: Sequence[int] | np.ndarray,
        r: np.ndarray,
        v: np.ndarray | None = None,
    ) -> np.ndarray:
        """Append particles; returns their indices."""
        t = np.asarray(types, dtype=np.int32).reshape(-1)
        rr = np.asarray(r, dtype=float).reshape(-1, 3)
        vv = np.zeros_like(rr) if v is None else np.asarray(v, dtype=float).reshape(-1, 3)
        if t.shape[0] != rr.shape[0] or vv.shape != rr.shape:
            raise ValueError("types, positions and velocities must describe the same particles")
        if t.size and (int(t.min()) < 0 or int(t.max()) >= int(self.n_types)):
            raise ValueError(f"particle types out of range for n_types={self.n_types}")
        first = self.n_particles
        self.types = np.concatenate([self.types, t])
        self.positions = np.concatenate([self.positions, rr], axis=0)
        self.velocities = np.concatenate([self.velocities, vv], axis=0)
        return np.arange(first, first + t.shape[0], dtype=np.int64)

    def add_molecule(self, mol: ChainMolecule) -> None:
        if mol.kind not in MOLECULE_KINDS:
            raise ValueError(f"unsupported molecule kind: {mol.kind}")
        end = mol.start + mol.length * mol.n_chains
        if mol.start < 0 or mol.length < 2 or mol.n_chains < 0 or end > self.n_particles:
            raise ValueError(
                f"chain molecule [{mol.start}, {end}) does not fit {self.n_particles} particles"
            )
        self.molecules.append(mol)

    def add_box_relaxation(self, rel: BoxRelaxation) -> None:
        self.box_relaxations.append(rel)

    def validate(self) -> None:
        n2 = int(self.n_types) * int(self.n_types)
        if len(self.two_body_fconst) != n2 * N_TWO_BODY_FCONST:
            raise ValueError(
                f"two-body force constants: expected {n2 * N_TWO_BODY_FCONST}, "
                f"got {len(self.two_body_fconst)}"
            )
        if len(self.two_body_uconst) != n2 * N_TWO_BODY_UCONST:
            raise ValueError(
                f"two-body potential constants: expected {n2 * N_TWO_BODY_UCONST}, "
                f"got {len(self.two_body_uconst)}"
            )
        if self.size.shape != (3,) or np.any(self.size <= 0.0):
            raise ValueError("system size must be set before writing")
        if self.final_time < self.initial_time:
            raise ValueError("final_time must be >= initial_time")
        if self.delta_t <= 0.0:
            raise ValueError("delta_t must be positive")
