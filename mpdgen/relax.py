from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence, Union

import numpy as np

N_WORDS = 4
_AXES = (0, 1, 2)


class BoxRelaxationError(ValueError):
    pass


def format_number(x: float | int) -> str:
    """Shortest text that reads back to the same value; integral floats drop '.0'."""
    if isinstance(x, (int, np.integer)) and not isinstance(x, bool):
        return str(int(x))
    txt = repr(float(x) + 0.0)  # -0.0 prints as 0
    if txt.endswith(".0"):
        txt = txt[:-2]
    return txt


@dataclass(frozen=True)
class RelaxDisabled:
    pass


@dataclass(frozen=True)
class RelaxActive:
    delta_l: float
    end_l: float
    dim: int
    relax_step: int


RelaxMode = Union[RelaxDisabled, RelaxActive]


def _check_axis(dim: int) -> int:
    d = int(dim)
    if d not in _AXES:
        raise BoxRelaxationError(f"box relaxation dimension, {d}, out of bounds!")
    return d


@dataclass(frozen=True)
class BoxRelaxation:
    """Rate-limited relaxation of one box dimension toward a target length.

    The size is moved by ``delta_l`` every ``relax_step`` steps until the
    remaining gap is at most ``delta_l``, then snapped onto ``end_l``.
    Timestep ``dt``, ``delta_l`` and ``relax_step`` together fix the rate:
    going from 100 to 50 with ``delta_l=0.01`` and ``relax_step=10`` takes
    ``10 * (100 - 50) / 0.01 = 50000`` steps. Once the target is reached
    every later query leaves the size unchanged.

    The scheduler never touches particles; the caller rescales coordinates
    with ``scale_factor`` (see ``apply_box_relaxation``).
    """

    mode: RelaxMode = field(default_factory=RelaxDisabled)

    @classmethod
    def disabled(cls) -> "BoxRelaxation":
        return cls(mode=RelaxDisabled())

    @classmethod
    def create(cls, delta_l: float, end_l: float, dim: int, relax_step: int) -> "BoxRelaxation":
        dl = float(delta_l)
        el = float(end_l)
        d = _check_axis(dim)
        rs = int(relax_step)
        if not (np.isfinite(dl) and np.isfinite(el)):
            raise BoxRelaxationError("box relaxation delta_l and end_l must be finite")
        if dl < 0.0:
            raise BoxRelaxationError(f"box relaxation delta_l must be >= 0, got {dl}")
        if dl == 0.0:
            return cls.disabled()
        if rs < 1:
            raise BoxRelaxationError(f"box relaxation relax_step must be >= 1, got {rs}")
        if el <= 0.0:
            raise BoxRelaxationError(f"box relaxation end_l must be positive, got {el}")
        return cls(mode=RelaxActive(delta_l=dl, end_l=el, dim=d, relax_step=rs))

    def active(self) -> bool:
        return isinstance(self.mode, RelaxActive)

    def ready(self, step: int) -> bool:
        m = self.mode
        if not isinstance(m, RelaxActive):
            return False
        return int(step) % m.relax_step == 0

    def new_size(self, old_size: Sequence[float] | np.ndarray) -> np.ndarray:
        size = np.array(old_size, dtype=float, copy=True)
        if size.shape != (3,):
            raise ValueError("box size must have shape (3,)")
        m = self.mode
        if not isinstance(m, RelaxActive):
            return size
        diff = size[m.dim] - m.end_l
        if abs(diff) > m.delta_l:
            direction = diff / abs(diff)
            size[m.dim] -= m.delta_l * direction
        else:
            # last (shorter) step lands exactly on the target
            size[m.dim] = m.end_l
        return size

    def scale_factor(self, old_size: Sequence[float] | np.ndarray) -> np.ndarray:
        old = np.asarray(old_size, dtype=float)
        nxt = self.new_size(old)
        scale = np.ones((3,), dtype=float)
        m = self.mode
        if isinstance(m, RelaxActive):
            scale[m.dim] = 1.0 + (nxt[m.dim] - old[m.dim]) / old[m.dim]
        return scale

    def words(self) -> tuple[float, float, int, int]:
        m = self.mode
        if isinstance(m, RelaxActive):
            return (m.delta_l, m.end_l, m.dim, m.relax_step)
        return (0.0, 0.0, 0, 0)

    @property
    def n_words(self) -> int:
        return N_WORDS

    def format_words(self) -> str:
        """Persisted layout: ``delta_l end_l dim relax_step`` and a newline."""
        dl, el, d, rs = self.words()
        return f"{format_number(dl)} {format_number(el)} {int(d)} {int(rs)}\n"

    @classmethod
    def from_words(cls, words: Sequence[str]) -> "BoxRelaxation":
        toks = list(words)
        if len(toks) != N_WORDS:
            raise BoxRelaxationError(
                f"box relaxation expects {N_WORDS} words (delta_l end_l dim relax_step), got {len(toks)}"
            )
        try:
            dl = float(toks[0])
            el = float(toks[1])
        except (ValueError, TypeError) as exc:
            raise BoxRelaxationError(f"invalid box relaxation length token in {toks}") from exc
        try:
            d = int(toks[2])
        except (ValueError, TypeError) as exc:
            raise BoxRelaxationError(f"invalid box relaxation dimension token: {toks[2]!r}") from exc
        _check_axis(d)
        try:
            rs = int(toks[3])
        except (ValueError, TypeError) as exc:
            raise BoxRelaxationError(f"invalid box relaxation relax_step token: {toks[3]!r}") from exc
        if dl == 0.0:
            return cls.disabled()
        return cls.create(dl, el, d, rs)

    @classmethod
    def parse(cls, line: str) -> "BoxRelaxation":
        return cls.from_words(str(line).split())


def apply_box_relaxation(
    *,
    step: int,
    relaxations: Iterable[BoxRelaxation],
    r: np.ndarray,
    size: Sequence[float] | np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Apply every due relaxation once at a step boundary.

    Coordinates in ``r`` are rescaled in place along each relaxed axis.
    Call this between force evaluation and the next integration sub-step;
    it rescales the whole coordinate space.

    Returns: (new_size, per-axis scale)
    """
    cur = np.array(size, dtype=float, copy=True)
    total = np.ones((3,), dtype=float)
    for rel in relaxations:
        if not rel.ready(step):
            continue
        scale = rel.scale_factor(cur)
        cur = rel.new_size(cur)
        if r.size:
            r *= scale[None, :]
        total *= scale
    return cur, total
