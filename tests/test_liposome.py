from __future__ import annotations

import math

import numpy as np
import pytest

from mpdgen.constants import HEAD, TAIL
from mpdgen.liposome import leaflet_counts, liposome, liposome_radius, sphere_points
from mpdgen.system import ChainMolecule, SimulationSystem

CONSTANTS = (0.7, 100.0, 1.0, 100.0)


def _vesicle(n_lipids: int = 1000, areal_density: float = 1.0):
    s = SimulationSystem(n_types=6, seed=3, initial_temp=3.0)
    s.set_size(30.0)
    center = np.array([15.0, 15.0, 15.0])
    radius = liposome(s, n_lipids, 3, center, 0.7, areal_density, CONSTANTS)
    return s, center, radius


def test_radius_formula():
    assert liposome_radius(1000, 1.0) == pytest.approx(math.sqrt(1000.0 / (8.0 * math.pi)))
    with pytest.raises(ValueError):
        liposome_radius(0, 1.0)
    with pytest.raises(ValueError):
        liposome_radius(10, 0.0)


def test_sphere_points_are_unit_and_balanced():
    u = sphere_points(500)
    assert u.shape == (500, 3)
    assert np.allclose(np.linalg.norm(u, axis=1), 1.0)
    assert np.allclose(u.mean(axis=0), 0.0, atol=0.05)
    assert sphere_points(0).shape == (0, 3)


def test_leaflet_counts_split_by_area():
    n_out, n_in = leaflet_counts(100, 2.0, 1.0)
    assert n_out + n_in == 100
    assert n_out == 80


def test_vesicle_particles_and_types():
    s, _center, radius = _vesicle()
    assert radius == pytest.approx(liposome_radius(1000, 1.0))
    assert s.n_particles == 3000
    assert np.all(s.types[0::3] == HEAD)
    assert np.all(s.types[1::3] == TAIL)
    assert np.all(s.types[2::3] == TAIL)
    assert s.velocities.shape == (3000, 3)
    assert np.allclose(s.velocities.mean(axis=0), 0.0, atol=1e-12)
    assert s.molecules == [ChainMolecule(constants=CONSTANTS, start=0, length=3, n_chains=1000)]


def test_vesicle_bonds_and_leaflets():
    s, center, radius = _vesicle()
    bonds = s.molecules[0].bonds()
    assert bonds.shape == (2000, 2)
    d = np.linalg.norm(s.positions[bonds[:, 0]] - s.positions[bonds[:, 1]], axis=1)
    assert np.allclose(d, 0.7)

    dist = np.linalg.norm(s.positions - center[None, :], axis=1).reshape(1000, 3)
    heads, last = dist[:, 0], dist[:, 2]
    outer = heads > last
    r_out = radius + 0.35 + 1.4
    r_in = radius - 0.35 - 1.4
    assert np.allclose(heads[outer], r_out)
    assert np.allclose(heads[~outer], r_in)
    assert int(outer.sum()) == leaflet_counts(1000, r_out, r_in)[0]
    # tails of both leaflets meet at the mid-plane
    assert np.allclose(last, np.where(outer, radius + 0.35, radius - 0.35))


def test_vesicle_seed_is_deterministic():
    a, _c, _r = _vesicle()
    b, _c, _r = _vesicle()
    assert np.array_equal(a.positions, b.positions)
    assert np.array_equal(a.velocities, b.velocities)


def test_too_few_lipids_for_inner_leaflet():
    s = SimulationSystem(n_types=6)
    s.set_size(10.0)
    with pytest.raises(ValueError):
        liposome(s, 10, 3, [5.0, 5.0, 5.0], 0.7, 5.88, CONSTANTS)
    assert s.n_particles == 0


def test_rejects_bad_chain_constants():
    s = SimulationSystem(n_types=6)
    s.set_size(30.0)
    with pytest.raises(ValueError):
        liposome(s, 1000, 3, [15.0, 15.0, 15.0], 0.7, 1.0, (0.7, 100.0, 1.0))
