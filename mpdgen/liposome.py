from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from .constants import HEAD, TAIL
from .state import init_velocities, pbc_wrap
from .system import ChainMolecule, SimulationSystem

_GOLDEN_RATIO = (1.0 + 5.0 ** 0.5) / 2.0


def liposome_radius(n_lipids: int, areal_density: float) -> float:
    """Mid-plane radius of a bilayer vesicle holding ``n_lipids`` lipids.

    Both leaflets share the lipids, so the membrane area is counted twice:
    ``2 * 4 pi R^2 = n_lipids / areal_density``.
    """
    if int(n_lipids) < 1:
        raise ValueError("n_lipids must be >= 1")
    if not (float(areal_density) > 0.0):
        raise ValueError("areal_density must be positive")
    return float(math.sqrt(float(n_lipids) / float(areal_density) / (8.0 * math.pi)))


def sphere_points(n: int) -> np.ndarray:
    """``n`` nearly uniform unit vectors on a golden spiral."""
    if n <= 0:
        return np.zeros((0, 3), dtype=float)
    i = np.arange(0, n, dtype=float)
    theta = 2.0 * np.pi * i / _GOLDEN_RATIO
    phi = np.arccos(1.0 - 2.0 * (i + 0.5) / n)
    return np.stack(
        [np.cos(theta) * np.sin(phi), np.sin(theta) * np.sin(phi), np.cos(phi)],
        axis=1,
    )


def leaflet_counts(n_lipids: int, r_outer: float, r_inner: float) -> tuple[int, int]:
    """Split lipids between leaflets in proportion to head-sphere area."""
    a_out = r_outer * r_outer
    a_in = r_inner * r_inner
    n_out = int(round(n_lipids * a_out / (a_out + a_in)))
    n_out = min(max(n_out, 0), int(n_lipids))
    return n_out, int(n_lipids) - n_out


def _leaflet(
    center: np.ndarray,
    n: int,
    head_radius: float,
    lipid_length: int,
    bond_length: float,
    inward: bool,
) -> np.ndarray:
    u = sphere_points(n)
    step = -bond_length if inward else bond_length
    radii = head_radius + step * np.arange(lipid_length, dtype=float)
    # (n, lipid_length, 3): head first, tails following the chain
    r = center[None, None, :] + u[:, None, :] * radii[None, :, None]
    return r.reshape(-1, 3)


def liposome(
    system: SimulationSystem,
    n_lipids: int,
    lipid_length: int,
    pos: Sequence[float] | np.ndarray,
    bond_length: float,
    areal_density: float,
    constants: Sequence[float],
    *,
    head_type: int = HEAD,
    tail_type: int = TAIL,
) -> float:
    """Place a bilayer vesicle centered at ``pos`` and register its chains.

    Each lipid is one ``HEAD`` bead followed by ``lipid_length - 1`` ``TAIL``
    beads spaced ``bond_length`` apart along the radial direction, heads
    facing outward on the outer leaflet and inward on the inner one.
    Returns the mid-plane radius.
    """
    n_lipids = int(n_lipids)
    lipid_length = int(lipid_length)
    bond_length = float(bond_length)
    if lipid_length < 2:
        raise ValueError("lipid_length must be >= 2")
    if bond_length <= 0.0:
        raise ValueError("bond_length must be positive")
    if len(constants) not in (2, 4):
        raise ValueError("chain constants must be (lbond, kbond) or (lbond, kbond, abend, kbend)")
    center = np.asarray(pos, dtype=float).reshape(3)

    radius = liposome_radius(n_lipids, areal_density)
    span = (lipid_length - 1) * bond_length
    r_out = radius + 0.5 * bond_length + span
    r_in = radius - 0.5 * bond_length - span
    if r_in <= 0.0:
        raise ValueError(
            f"{n_lipids} lipids at areal density {areal_density} give radius {radius:.4f}, "
            "too small for an inner leaflet"
        )
    n_out, n_in = leaflet_counts(n_lipids, r_out, r_in)

    r = np.concatenate(
        [
            _leaflet(center, n_out, r_out, lipid_length, bond_length, inward=True),
            _leaflet(center, n_in, r_in, lipid_length, bond_length, inward=False),
        ],
        axis=0,
    )
    if np.all(system.size > 0.0):
        r = pbc_wrap(r, system.size)
    chain_types = np.full((lipid_length,), int(tail_type), dtype=np.int32)
    chain_types[0] = int(head_type)
    types = np.tile(chain_types, n_lipids)
    v = init_velocities(int(types.shape[0]), float(system.initial_temp), seed=int(system.seed))

    ids = system.add_particles(types, r, v)
    system.add_molecule(
        ChainMolecule(
            constants=tuple(float(c) for c in constants),
            start=int(ids[0]),
            length=lipid_length,
            n_chains=n_lipids,
        )
    )
    return radius
