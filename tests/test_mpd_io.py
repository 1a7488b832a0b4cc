from __future__ import annotations

import json

import numpy as np
import pytest

from mpdgen.io import MpdFormatError, format_mpd, parse_mpd, read_mpd, write_mpd
from mpdgen.pair_table import energy_bounds
from mpdgen.potentials import build_two_body_tables
from mpdgen.relax import BoxRelaxation
from mpdgen.system import ChainMolecule, SimulationSystem


def _small_system() -> SimulationSystem:
    s = SimulationSystem(n_types=2, seed=11, cutoff=2.0, final_time=100.0)
    s.set_size([10.0, 12.0, 14.0])
    umin, umax = energy_bounds(2)
    umin[1, 1] = -6.0
    umax[1, 1] = 200.0
    s.add_two_body_tables(build_two_body_tables(umin, umax, cutoff=2.0, rmin=1.0))
    r = np.array([[1.0, 1.0, 1.0], [1.7, 1.0, 1.0], [2.4, 1.0, 1.0],
                  [5.0, 5.0, 5.0], [5.7, 5.0, 5.0], [6.4, 5.0, 5.0]])
    v = np.linspace(-1.0, 1.0, 18).reshape(6, 3)
    s.add_particles([0, 1, 1, 0, 1, 1], r, v)
    s.add_molecule(ChainMolecule(constants=(0.7, 100.0, 1.0, 100.0), start=0, length=3, n_chains=2))
    s.add_box_relaxation(BoxRelaxation.create(0.01, 50.0, 2, 10))
    s.add_box_relaxation(BoxRelaxation.disabled())
    return s


def test_write_read_roundtrip(tmp_path):
    s = _small_system()
    path = tmp_path / "small.mpd"
    write_mpd(s, str(path))
    back = read_mpd(str(path))

    assert back.n_types == 2
    assert back.seed == 11
    assert back.periodic == (True, True, True)
    assert np.array_equal(back.size, s.size)
    assert back.final_time == 100.0
    assert back.two_body_fconst == s.two_body_fconst
    assert back.two_body_uconst == s.two_body_uconst
    assert np.array_equal(back.types, s.types)
    assert np.array_equal(back.positions, s.positions)
    assert np.array_equal(back.velocities, s.velocities)
    assert back.molecules == s.molecules
    assert back.box_relaxations == s.box_relaxations


def test_box_relaxation_section_layout():
    text = format_mpd(_small_system())
    assert "#boxRelaxation\n2\n0.01 50 2 10\n0 0 0 0\n" in text


def test_constants_written_one_block_per_line():
    text = format_mpd(_small_system())
    lines = text.splitlines()
    i = lines.index("#twoBodyFconst")
    assert lines[i + 1] == "24"
    assert lines[i + 2 + 3] == "1 412 0 2 -36 -36"


def test_manifest_sidecar(tmp_path):
    s = _small_system()
    path = tmp_path / "out" / "small.mpd"
    write_mpd(s, str(path), generator={"seed": 11})
    manifest = json.loads((tmp_path / "out" / "small.mpd.manifest.json").read_text(encoding="utf-8"))
    assert manifest["kind"] == "configuration"
    assert manifest["schema"]["version"] == 1
    assert manifest["n_particles"] == 6
    assert manifest["n_box_relaxations"] == 2
    assert manifest["generator"] == {"seed": 11}


def test_no_manifest(tmp_path):
    path = tmp_path / "small.mpd"
    write_mpd(_small_system(), str(path), write_output_manifest=False)
    assert not (tmp_path / "small.mpd.manifest.json").exists()


def test_writer_rejects_incomplete_system():
    s = SimulationSystem(n_types=2)
    s.set_size(10.0)
    with pytest.raises(ValueError):
        format_mpd(s)


def test_reader_rejects_bad_box_relaxation_axis():
    text = format_mpd(_small_system()).replace("0.01 50 2 10\n", "0.01 50 3 10\n")
    with pytest.raises(MpdFormatError):
        parse_mpd(text)


def test_reader_rejects_box_relaxation_word_count():
    text = format_mpd(_small_system()).replace("0.01 50 2 10\n", "0.01 50 2\n")
    with pytest.raises(MpdFormatError):
        parse_mpd(text)


@pytest.mark.parametrize(
    "old,new",
    [
        ("#gamma\n1\n", "#gamma\nfast\n"),
        ("#nTypes\n2\n", "#nTypes\n2\n#bogus\n1\n"),
        ("#periodic\n1 1 1\n", "#periodic\n1 1\n"),
        ("#twoBodyFconst\n24\n", "#twoBodyFconst\n25\n"),
    ],
)
def test_reader_rejects_malformed_sections(old, new):
    text = format_mpd(_small_system())
    assert old in text
    with pytest.raises(MpdFormatError):
        parse_mpd(text.replace(old, new))


def test_reader_missing_file(tmp_path):
    with pytest.raises(MpdFormatError):
        read_mpd(str(tmp_path / "missing.mpd"))
