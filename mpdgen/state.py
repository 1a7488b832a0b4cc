from __future__ import annotations
from typing import Union
import numpy as np

def init_velocities(n_particles: int, temperature: float, mass: float = 1.0, seed: int = 1) -> np.ndarray:
    """Gaussian velocities at ``temperature`` (k_B = 1) with zero net momentum."""
    rng = np.random.default_rng(seed+1234)
    if mass <= 0.0:
        raise ValueError("mass must be positive")
    if temperature < 0.0:
        raise ValueError("temperature must be non-negative")
    std = np.sqrt(temperature/mass)
    v = rng.normal(0.0,std,size=(n_particles,3))
    if n_particles > 1:
        v -= v.mean(axis=0, keepdims=True)
    return v

def pbc_wrap(r: np.ndarray, size: np.ndarray) -> np.ndarray:
    s = np.asarray(size, dtype=float)
    return r - s * np.floor(r/s)

def kinetic_energy(v: np.ndarray, mass: Union[float, np.ndarray] = 1.0) -> float:
    """``0.5 * sum(m |v|^2)``; ``mass`` is one value for every bead or one per bead."""
    n = int(v.shape[0])
    m = np.asarray(mass, dtype=float)
    if m.ndim == 0:
        m = np.full((n,), float(m))
    if m.shape != (n,):
        raise ValueError("mass must be a scalar or have shape (n_particles,)")
    if np.any(m <= 0.0):
        raise ValueError("bead masses must be positive")
    return 0.5 * float(np.einsum("i,ij,ij->", m, v, v))

def temperature_from_ke(ke: float, n_particles: int, *, drift_removed: bool = True) -> float:
    """Kinetic temperature in k_B = 1 units.

    Velocities from ``init_velocities`` carry no net momentum, which
    removes three degrees of freedom.
    """
    dof = 3 * int(n_particles) - (3 if drift_removed else 0)
    return 2.0 * float(ke) / max(dof, 1)
