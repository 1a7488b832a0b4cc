from __future__ import annotations

import os
from typing import Any

import numpy as np

from ..constants import N_TWO_BODY_FCONST, N_TWO_BODY_UCONST
from ..relax import BoxRelaxation, BoxRelaxationError, format_number
from ..system import MOLECULE_KINDS, ChainMolecule, SimulationSystem
from .manifest import mpd_manifest_payload, write_manifest

SCHEMA_NAME = "mpdgen.configuration.mpd"
SCHEMA_VERSION = 1

_SCALARS: tuple[tuple[str, str, type], ...] = (
    ("gamma", "gamma", float),
    ("nTypes", "n_types", int),
    ("seed", "seed", int),
    ("cutoff", "cutoff", float),
    ("initialTime", "initial_time", float),
    ("finalTime", "final_time", float),
    ("deltaT", "delta_t", float),
    ("storeInterval", "store_interval", float),
    ("measureInterval", "measure_interval", float),
    ("initialTemp", "initial_temp", float),
    ("finalTemp", "final_temp", float),
)


class MpdFormatError(ValueError):
    pass


def _err(msg: str) -> MpdFormatError:
    return MpdFormatError(msg)


def _row(values) -> str:
    return " ".join(format_number(x) for x in values)


def format_mpd(system: SimulationSystem) -> str:
    system.validate()
    out: list[str] = []
    for key, attr, _kind in _SCALARS[:3]:
        out.append(f"#{key}\n{format_number(getattr(system, attr))}\n")
    out.append("#periodic\n" + " ".join("1" if p else "0" for p in system.periodic) + "\n")
    for key, attr, _kind in _SCALARS[3:]:
        out.append(f"#{key}\n{format_number(getattr(system, attr))}\n")
    out.append(f"#size\n{_row(system.size)}\n")

    fc = np.asarray(system.two_body_fconst, dtype=float).reshape(-1, N_TWO_BODY_FCONST)
    out.append(f"#twoBodyFconst\n{fc.size}\n")
    out.extend(f"{_row(block)}\n" for block in fc)
    uc = np.asarray(system.two_body_uconst, dtype=float).reshape(-1, N_TWO_BODY_UCONST)
    out.append(f"#twoBodyUconst\n{uc.size}\n")
    out.extend(f"{_row(block)}\n" for block in uc)

    if system.box_relaxations:
        out.append(f"#boxRelaxation\n{len(system.box_relaxations)}\n")
        out.extend(rel.format_words() for rel in system.box_relaxations)

    out.append(f"#positions\n{system.n_particles}\n")
    out.extend(
        f"{int(t)} {_row(r)}\n" for t, r in zip(system.types.tolist(), system.positions)
    )
    out.append(f"#velocities\n{system.n_particles}\n")
    out.extend(f"{_row(v)}\n" for v in system.velocities)

    out.append(f"#molecule\n{len(system.molecules)}\n")
    for mol in system.molecules:
        out.append(
            f"{mol.kind} {len(mol.constants)} {_row(mol.constants)} "
            f"{mol.start} {mol.length} {mol.n_chains}\n"
        )
    return "".join(out)


def write_mpd(
    system: SimulationSystem,
    path: str,
    *,
    write_output_manifest: bool = True,
    generator: dict[str, Any] | None = None,
) -> str:
    text = format_mpd(system)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    if write_output_manifest:
        payload = mpd_manifest_payload(
            path=path,
            format_name=SCHEMA_NAME,
            schema_version=SCHEMA_VERSION,
            n_types=system.n_types,
            n_particles=system.n_particles,
            n_molecules=len(system.molecules),
            n_box_relaxations=len(system.box_relaxations),
            size=(float(system.size[0]), float(system.size[1]), float(system.size[2])),
            generator=generator,
        )
        write_manifest(f"{path}.manifest.json", payload)
    return path


def _split_sections(text: str) -> list[tuple[str, list[list[str]]]]:
    sections: list[tuple[str, list[list[str]]]] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        txt = raw.strip()
        if not txt:
            continue
        if txt.startswith("#"):
            key = txt[1:].strip()
            if not key:
                raise _err(f"empty section keyword at line {lineno}")
            sections.append((key, []))
            continue
        if not sections:
            raise _err(f"data before first section keyword at line {lineno}: {txt}")
        sections[-1][1].append(txt.split())
    return sections


def _scalar(key: str, rows: list[list[str]], kind: type):
    if len(rows) != 1 or len(rows[0]) != 1:
        raise _err(f"#{key} expects a single value")
    try:
        return kind(rows[0][0])
    except (ValueError, TypeError) as exc:
        raise _err(f"invalid value for #{key}: {rows[0][0]!r}") from exc


def _count(key: str, rows: list[list[str]]) -> tuple[int, list[list[str]]]:
    if not rows or len(rows[0]) != 1:
        raise _err(f"#{key} must start with a count line")
    try:
        n = int(rows[0][0])
    except (ValueError, TypeError) as exc:
        raise _err(f"invalid count for #{key}: {rows[0][0]!r}") from exc
    if n < 0:
        raise _err(f"negative count for #{key}")
    return n, rows[1:]


def _floats(key: str, toks: list[str]) -> list[float]:
    try:
        return [float(t) for t in toks]
    except (ValueError, TypeError) as exc:
        raise _err(f"invalid numeric token in #{key}: {toks}") from exc


def _rows_of(key: str, rows: list[list[str]], n: int, width: int) -> list[list[str]]:
    if len(rows) != n:
        raise _err(f"#{key}: expected {n} rows, got {len(rows)}")
    for i, row in enumerate(rows):
        if len(row) != width:
            raise _err(f"#{key} row {i}: expected {width} words, got {len(row)}")
    return rows


def _table(key: str, rows: list[list[str]]) -> list[float]:
    n, body = _count(key, rows)
    vals = _floats(key, [t for row in body for t in row])
    if len(vals) != n:
        raise _err(f"#{key}: expected {n} values, got {len(vals)}")
    return vals


def _molecule(rows: list[list[str]]) -> list[ChainMolecule]:
    n, body = _count("molecule", rows)
    if len(body) != n:
        raise _err(f"#molecule: expected {n} rows, got {len(body)}")
    out: list[ChainMolecule] = []
    for i, row in enumerate(body):
        if len(row) < 2 or row[0] not in MOLECULE_KINDS:
            raise _err(f"#molecule row {i}: unsupported molecule: {' '.join(row)}")
        try:
            n_const = int(row[1])
            consts = tuple(float(x) for x in row[2:2 + n_const])
            start, length, n_chains = (int(x) for x in row[2 + n_const:])
        except (ValueError, TypeError) as exc:
            raise _err(f"#molecule row {i}: malformed chain: {' '.join(row)}") from exc
        out.append(
            ChainMolecule(constants=consts, start=start, length=length, n_chains=n_chains, kind=row[0])
        )
    return out


def parse_mpd(text: str) -> SimulationSystem:
    system = SimulationSystem()
    scalars = {key: (attr, kind) for key, attr, kind in _SCALARS}
    positions: list[list[str]] | None = None
    velocities: list[list[str]] | None = None
    molecules: list[ChainMolecule] = []
    for key, rows in _split_sections(text):
        if key in scalars:
            attr, kind = scalars[key]
            setattr(system, attr, _scalar(key, rows, kind))
        elif key == "periodic":
            flags = _rows_of(key, rows, 1, 3)[0]
            if any(t not in ("0", "1") for t in flags):
                raise _err(f"#periodic flags must be 0/1, got {flags}")
            system.periodic = tuple(t == "1" for t in flags)
        elif key == "size":
            system.set_size(_floats(key, _rows_of(key, rows, 1, 3)[0]))
        elif key == "twoBodyFconst":
            system.two_body_fconst = _table(key, rows)
        elif key == "twoBodyUconst":
            system.two_body_uconst = _table(key, rows)
        elif key == "boxRelaxation":
            n, body = _count(key, rows)
            if len(body) != n:
                raise _err(f"#boxRelaxation: expected {n} rows, got {len(body)}")
            try:
                system.box_relaxations = [BoxRelaxation.from_words(row) for row in body]
            except BoxRelaxationError as exc:
                raise _err(f"#boxRelaxation: {exc}") from exc
        elif key == "positions":
            n, body = _count(key, rows)
            positions = _rows_of(key, body, n, 4)
        elif key == "velocities":
            n, body = _count(key, rows)
            velocities = _rows_of(key, body, n, 3)
        elif key == "molecule":
            molecules = _molecule(rows)
        else:
            raise _err(f"unknown section keyword: #{key}")

    if positions:
        try:
            types = [int(row[0]) for row in positions]
        except (ValueError, TypeError) as exc:
            raise _err("invalid particle type in #positions") from exc
        r = np.asarray([_floats("positions", row[1:]) for row in positions], dtype=float)
        if velocities is None:
            v = None
        else:
            if len(velocities) != len(positions):
                raise _err("#velocities count does not match #positions")
            v = np.asarray([_floats("velocities", row) for row in velocities], dtype=float)
        try:
            system.add_particles(types, r, v)
        except ValueError as exc:
            raise _err(str(exc)) from exc
    for mol in molecules:
        try:
            system.add_molecule(mol)
        except ValueError as exc:
            raise _err(str(exc)) from exc
    try:
        system.validate()
    except ValueError as exc:
        raise _err(str(exc)) from exc
    return system


def read_mpd(path: str) -> SimulationSystem:
    if not os.path.isfile(path):
        raise MpdFormatError(f"configuration file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return parse_mpd(f.read())
