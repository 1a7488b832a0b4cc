from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, List, Optional
import yaml

from .constants import CUTOFF, N_TYPES, RMIN, TYPE_NAMES, UMAX_DEFAULT, UMIN_DEFAULT
from .relax import BoxRelaxation, BoxRelaxationError

_TYPE_IDS = {name: t for t, name in TYPE_NAMES.items()}
_SECTIONS = {"system", "interactions", "lipids", "box_relaxation"}


class ConfigError(ValueError):
    pass


@dataclass
class SystemConfig:
    gamma: float = 1.0
    n_types: int = N_TYPES
    cutoff: float = CUTOFF
    rmin: float = RMIN
    initial_time: float = 0.0
    final_time: float = 50000.0
    delta_t: float = 0.02
    store_interval: float = 100.0
    measure_interval: float = 10.0
    initial_temp: float = 3.0
    final_temp: float = 3.0

@dataclass
class PairOverride:
    i: int
    j: int
    umin: float
    umax: float
    symmetric: bool = False  # also write the mirrored (j, i) slot

@dataclass
class InteractionConfig:
    umin_default: float = UMIN_DEFAULT
    umax_default: float = UMAX_DEFAULT
    overrides: List[PairOverride] = field(default_factory=list)

@dataclass
class LipidConfig:
    lipid_length: int = 3
    bond_length: float = 0.7
    kbond: float = 100.0
    abend: float = 1.0
    kbend: float = 100.0

@dataclass
class SetupConfig:
    system: SystemConfig = field(default_factory=SystemConfig)
    interactions: InteractionConfig = field(default_factory=InteractionConfig)
    lipids: LipidConfig = field(default_factory=LipidConfig)
    box_relaxation: List[BoxRelaxation] = field(default_factory=list)


def parse_type(x: Any, key: str) -> int:
    if isinstance(x, bool):
        raise ConfigError(f"{key} must be a type index or name")
    if isinstance(x, int):
        return int(x)
    txt = str(x).strip()
    if txt.upper() in _TYPE_IDS:
        return _TYPE_IDS[txt.upper()]
    try:
        return int(txt)
    except ValueError as exc:
        raise ConfigError(f"{key}: unknown particle type {x!r}") from exc


def _parse_pair_key(key: str) -> tuple[int, int]:
    txt = str(key).strip()
    for sep in ("-", ",", ":"):
        if sep in txt:
            parts = [p.strip() for p in txt.split(sep)]
            if len(parts) != 2:
                break
            return parse_type(parts[0], key), parse_type(parts[1], key)
    raise ConfigError(f"invalid pair key '{key}'; expected 'i-j' (type index or name)")


def _expect_dict(d: Any, key: str) -> dict:
    if d is None:
        return {}
    if not isinstance(d, dict):
        raise ConfigError(f"{key} must be a mapping")
    return d


def _parse_system(d: dict) -> SystemConfig:
    s = _expect_dict(d.get("system"), "system")
    extra = sorted(set(s.keys()) - set(SystemConfig.__dataclass_fields__))
    if extra:
        raise ConfigError(f"system contains unsupported keys: {extra}")
    base = SystemConfig()
    out = SystemConfig(
        gamma=float(s.get("gamma", base.gamma)),
        n_types=_whole_number(s.get("n_types", base.n_types), "system.n_types"),
        cutoff=float(s.get("cutoff", base.cutoff)),
        rmin=float(s.get("rmin", base.rmin)),
        initial_time=float(s.get("initial_time", base.initial_time)),
        final_time=float(s.get("final_time", base.final_time)),
        delta_t=float(s.get("delta_t", base.delta_t)),
        store_interval=float(s.get("store_interval", base.store_interval)),
        measure_interval=float(s.get("measure_interval", base.measure_interval)),
        initial_temp=float(s.get("initial_temp", base.initial_temp)),
        final_temp=float(s.get("final_temp", base.final_temp)),
    )
    if out.n_types < 1:
        raise ConfigError("system.n_types must be >= 1")
    if out.delta_t <= 0.0:
        raise ConfigError("system.delta_t must be positive")
    if out.final_time < out.initial_time:
        raise ConfigError("system.final_time must be >= system.initial_time")
    # cutoff/rmin ordering is checked by the force field builder
    return out


def _parse_interactions(d: dict, n_types: int) -> InteractionConfig:
    it = _expect_dict(d.get("interactions"), "interactions")
    extra = sorted(set(it.keys()) - {"umin", "umax", "pairs"})
    if extra:
        raise ConfigError(f"interactions contains unsupported keys: {extra}")
    overrides: list[PairOverride] = []
    pairs = _expect_dict(it.get("pairs"), "interactions.pairs")
    for k, v in pairs.items():
        i, j = _parse_pair_key(str(k))
        if not (0 <= i < n_types and 0 <= j < n_types):
            raise ConfigError(f"interactions.pairs[{k!r}] out of range for n_types={n_types}")
        v = _expect_dict(v, f"interactions.pairs[{k!r}]")
        unknown = sorted(set(v.keys()) - {"umin", "umax", "symmetric"})
        if unknown:
            raise ConfigError(f"interactions.pairs[{k!r}] has unsupported params: {unknown}")
        if "umin" not in v or "umax" not in v:
            raise ConfigError(f"interactions.pairs[{k!r}] requires umin and umax")
        overrides.append(
            PairOverride(
                i=i,
                j=j,
                umin=float(v["umin"]),
                umax=float(v["umax"]),
                symmetric=bool(v.get("symmetric", False)),
            )
        )
    return InteractionConfig(
        umin_default=float(it.get("umin", UMIN_DEFAULT)),
        umax_default=float(it.get("umax", UMAX_DEFAULT)),
        overrides=overrides,
    )


def _parse_lipids(d: dict) -> LipidConfig:
    lp = _expect_dict(d.get("lipids"), "lipids")
    extra = sorted(set(lp.keys()) - set(LipidConfig.__dataclass_fields__))
    if extra:
        raise ConfigError(f"lipids contains unsupported keys: {extra}")
    base = LipidConfig()
    out = LipidConfig(
        lipid_length=_whole_number(lp.get("lipid_length", base.lipid_length), "lipids.lipid_length"),
        bond_length=float(lp.get("bond_length", base.bond_length)),
        kbond=float(lp.get("kbond", base.kbond)),
        abend=float(lp.get("abend", base.abend)),
        kbend=float(lp.get("kbend", base.kbend)),
    )
    if out.lipid_length < 2:
        raise ConfigError("lipids.lipid_length must be >= 2")
    if out.bond_length <= 0.0:
        raise ConfigError("lipids.bond_length must be positive")
    return out


def _whole_number(x: Any, key: str) -> int:
    if isinstance(x, bool):
        raise ConfigError(f"{key} must be an integer, got {x!r}")
    if isinstance(x, int):
        return int(x)
    if isinstance(x, float) and x.is_integer():
        return int(x)
    raise ConfigError(f"{key} must be an integer, got {x!r}")


def _parse_box_relaxation(d: dict) -> list[BoxRelaxation]:
    raw = d.get("box_relaxation")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError("box_relaxation must be a list")
    out: list[BoxRelaxation] = []
    for i, item in enumerate(raw):
        key = f"box_relaxation[{i}]"
        try:
            if isinstance(item, str):
                out.append(BoxRelaxation.parse(item))
            elif isinstance(item, dict):
                missing = [k for k in ("delta_l", "end_l", "dim", "relax_step") if k not in item]
                if missing:
                    raise ConfigError(f"{key} missing required keys: {missing}")
                unknown = sorted(set(item.keys()) - {"delta_l", "end_l", "dim", "relax_step"})
                if unknown:
                    raise ConfigError(f"{key} contains unsupported keys: {unknown}")
                out.append(
                    BoxRelaxation.create(
                        delta_l=float(item["delta_l"]),
                        end_l=float(item["end_l"]),
                        dim=_whole_number(item["dim"], f"{key}.dim"),
                        relax_step=_whole_number(item["relax_step"], f"{key}.relax_step"),
                    )
                )
            else:
                raise ConfigError(f"{key} must be a mapping or 'delta_l end_l dim relax_step'")
        except BoxRelaxationError as exc:
            raise ConfigError(f"{key}: {exc}") from exc
        except ConfigError:
            raise
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{key}: {exc}") from exc
    return out


def parse_setup_dict(d: Optional[dict]) -> SetupConfig:
    d = _expect_dict(d, "setup config root")
    extra = sorted(set(d.keys()) - _SECTIONS)
    if extra:
        raise ConfigError(f"setup config contains unsupported sections: {extra}")
    try:
        system = _parse_system(d)
        return SetupConfig(
            system=system,
            interactions=_parse_interactions(d, system.n_types),
            lipids=_parse_lipids(d),
            box_relaxation=_parse_box_relaxation(d),
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigError(str(exc)) from exc


def load_setup_config(path: str) -> SetupConfig:
    with open(path,"r",encoding="utf-8") as f:
        d = yaml.safe_load(f)
    return parse_setup_dict(d)
