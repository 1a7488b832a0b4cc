from __future__ import annotations

import warnings
from dataclasses import dataclass

import numpy as np

from .config import ConfigError, InteractionConfig, PairOverride, SetupConfig
from .constants import ANCHOR, HEAD, MONOMER, TAIL, TYPE_NAMES
from .liposome import liposome, liposome_radius
from .pair_table import PairTable, TripleTable, energy_bounds
from .potentials import build_two_body_tables
from .system import SimulationSystem


@dataclass(frozen=True)
class BuildResult:
    system: SimulationSystem
    radius: float
    asymmetric_pairs: tuple[tuple[int, int], ...] = ()


def reference_pair_overrides(umin_anchor_head: float) -> list[PairOverride]:
    """Exceptions to the baseline (Umin=0, Umax=100) for the lipid/polymer system."""
    return [
        PairOverride(TAIL, TAIL, umin=-6.0, umax=200.0),
        PairOverride(MONOMER, MONOMER, umin=0.0, umax=100.0),
        PairOverride(HEAD, MONOMER, umin=0.0, umax=100.0, symmetric=True),
        PairOverride(TAIL, MONOMER, umin=0.0, umax=100.0),
        PairOverride(MONOMER, TAIL, umin=0.0, umax=100.0),
        PairOverride(HEAD, ANCHOR, umin=float(umin_anchor_head), umax=100.0, symmetric=True),
    ]


def _type_name(t: int) -> str:
    return TYPE_NAMES.get(int(t), str(int(t)))


def reference_energy_bounds(
    n_types: int,
    interactions: InteractionConfig,
    umin_anchor_head: float,
) -> tuple[PairTable, PairTable, list[tuple[int, int]]]:
    """Umin/Umax tables plus the pairs the caller treats as symmetric."""
    if n_types <= max(HEAD, TAIL, ANCHOR, MONOMER):
        raise ConfigError(
            f"n_types={n_types} cannot hold the lipid types (need > {max(HEAD, TAIL, ANCHOR, MONOMER)})"
        )
    umin, umax = energy_bounds(n_types, interactions.umin_default, interactions.umax_default)
    symmetric: list[tuple[int, int]] = [(TAIL, MONOMER)]
    for ov in reference_pair_overrides(umin_anchor_head) + list(interactions.overrides):
        umin[ov.i, ov.j] = ov.umin
        umax[ov.i, ov.j] = ov.umax
        if ov.symmetric:
            umin.mirror((ov.i, ov.j))
            umax.mirror((ov.i, ov.j))
            symmetric.append((ov.i, ov.j))
    return umin, umax, symmetric


def bonded_constants(n_types: int, lipids) -> tuple[PairTable, PairTable, TripleTable, TripleTable]:
    """(lbond, kbond, abend, kbend) with every pair/triple at the lipid values."""
    lbond = PairTable(n_types, fill=lipids.bond_length)
    kbond = PairTable(n_types, fill=lipids.kbond)
    abend = TripleTable(n_types, fill=lipids.abend)
    kbend = TripleTable(n_types, fill=lipids.kbend)
    return lbond, kbond, abend, kbend


def build_liposome_system(
    cfg: SetupConfig,
    *,
    seed: int,
    umin_anchor_head: float,
    n_lipids: int,
    areal_density: float,
    overcast: float,
) -> BuildResult:
    s = cfg.system
    if not (float(overcast) > 0.0):
        raise ValueError("overcast must be positive")
    if float(overcast) < 1.0:
        warnings.warn(
            f"overcast={overcast} < 1: the box is smaller than the vesicle and will wrap it",
            RuntimeWarning,
        )

    system = SimulationSystem(
        gamma=s.gamma,
        n_types=s.n_types,
        seed=int(seed),
        periodic=(True, True, True),
        cutoff=s.cutoff,
        initial_time=s.initial_time,
        final_time=s.final_time,
        delta_t=s.delta_t,
        store_interval=s.store_interval,
        measure_interval=s.measure_interval,
        initial_temp=s.initial_temp,
        final_temp=s.final_temp,
    )

    umin, umax, symmetric = reference_energy_bounds(s.n_types, cfg.interactions, umin_anchor_head)
    asym = sorted(set(umin.asymmetric_pairs(symmetric)) | set(umax.asymmetric_pairs(symmetric)))
    for i, j in asym:
        warnings.warn(
            f"energy bounds for {_type_name(i)}-{_type_name(j)} differ from "
            f"{_type_name(j)}-{_type_name(i)}",
            RuntimeWarning,
        )
    tables = build_two_body_tables(umin, umax, cutoff=s.cutoff, rmin=s.rmin)
    system.add_two_body_tables(tables)

    lp = cfg.lipids
    lbond, kbond, abend, kbend = bonded_constants(s.n_types, lp)
    constants = (
        lbond[HEAD, TAIL],
        kbond[HEAD, TAIL],
        abend[HEAD, TAIL, TAIL],
        kbend[HEAD, TAIL, TAIL],
    )

    radius = liposome_radius(n_lipids, areal_density)
    edge = 2.0 * (radius + lp.lipid_length * lp.bond_length) * float(overcast)
    system.set_size(edge)
    pos = np.asarray(system.size, dtype=float) / 2.0
    radius = liposome(
        system,
        n_lipids,
        lp.lipid_length,
        pos,
        lp.bond_length,
        areal_density,
        constants,
    )

    for rel in cfg.box_relaxation:
        system.add_box_relaxation(rel)
    return BuildResult(system=system, radius=float(radius), asymmetric_pairs=tuple(asym))
