"""Named constants for mpdgen.

These replace the ambient globals of the membrane setup tools. The force
field builder never reads them implicitly; callers pass them in.

Categories
----------
Particle types
    Small non-negative integers used as type-pair indices. Types 0 and 1 are
    left for solvent-like species and are not placed by the liposome builder.

CUTOFF, RMIN
    Outer cutoff and well-minimum radius of the Laradji-Revalee two-body law,
    in bead-diameter units.

N_TWO_BODY_FCONST, N_TWO_BODY_UCONST
    Number of force / potential coefficients per ordered type pair. Changing
    either one changes the persisted table layout.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Particle types
# ---------------------------------------------------------------------------
SOLVENT: int = 0
HEAD: int = 2
TAIL: int = 3
ANCHOR: int = 4
MONOMER: int = 5

N_TYPES: int = 6

TYPE_NAMES: dict[int, str] = {
    SOLVENT: "SOLVENT",
    HEAD: "HEAD",
    TAIL: "TAIL",
    ANCHOR: "ANCHOR",
    MONOMER: "MONOMER",
}

# ---------------------------------------------------------------------------
# Two-body law radii
# ---------------------------------------------------------------------------
CUTOFF: float = 2.0
RMIN: float = 1.0

# ---------------------------------------------------------------------------
# Coefficient layout
# ---------------------------------------------------------------------------
N_TWO_BODY_FCONST: int = 6
N_TWO_BODY_UCONST: int = 6

# ---------------------------------------------------------------------------
# Reference energy bounds (well depth / core barrier)
# ---------------------------------------------------------------------------
UMIN_DEFAULT: float = 0.0
UMAX_DEFAULT: float = 100.0

# ---------------------------------------------------------------------------
# Force-kernel guard (prevent division-by-zero)
# ---------------------------------------------------------------------------
NUMERICAL_ZERO: float = 1e-30
