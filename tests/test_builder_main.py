from __future__ import annotations

import json
import math
import warnings

import numpy as np
import pytest

from mpdgen.builder import bonded_constants, build_liposome_system, reference_energy_bounds
from mpdgen.config import ConfigError, InteractionConfig, LipidConfig, SetupConfig, parse_setup_dict
from mpdgen.constants import ANCHOR, HEAD, MONOMER, TAIL
from mpdgen.io import read_mpd
from mpdgen.main import main
from mpdgen.pair_table import pair_index
from mpdgen.relax import BoxRelaxation


def _block(values, i, j, n=6):
    k = pair_index(i, j, n)
    return list(values[k * 6:(k + 1) * 6])


def test_reference_energy_bounds():
    umin, umax, symmetric = reference_energy_bounds(6, InteractionConfig(), -3.5)
    assert umin[TAIL, TAIL] == -6.0 and umax[TAIL, TAIL] == 200.0
    assert umin[HEAD, ANCHOR] == -3.5 and umin[ANCHOR, HEAD] == -3.5
    assert umin[HEAD, MONOMER] == umin[MONOMER, HEAD] == 0.0
    assert umin.asymmetric_pairs(symmetric) == []
    assert umax.asymmetric_pairs(symmetric) == []
    with pytest.raises(ConfigError):
        reference_energy_bounds(5, InteractionConfig(), -3.5)


def test_bonded_constants():
    lbond, kbond, abend, kbend = bonded_constants(6, LipidConfig())
    assert len(lbond) == 36 and len(abend) == 216
    assert lbond[HEAD, TAIL] == pytest.approx(0.7)
    assert kbond[TAIL, TAIL] == 100.0
    assert abend[HEAD, TAIL, TAIL] == 1.0
    assert kbend[TAIL, TAIL, TAIL] == 100.0


def test_build_system_geometry_and_tables():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        res = build_liposome_system(
            SetupConfig(), seed=7, umin_anchor_head=-3.5, n_lipids=1000, areal_density=1.0, overcast=1.5
        )
    s = res.system
    assert res.asymmetric_pairs == ()
    assert res.radius == pytest.approx(math.sqrt(1000.0 / (8.0 * math.pi)))
    edge = 2.0 * (res.radius + 3 * 0.7) * 1.5
    assert np.allclose(s.size, [edge, edge, edge])
    assert s.n_particles == 3000
    assert np.all((s.positions >= 0.0) & (s.positions < edge))
    assert len(s.two_body_fconst) == 216
    assert _block(s.two_body_fconst, TAIL, TAIL) == [1.0, 412.0, 0.0, 2.0, -36.0, -36.0]
    assert _block(s.two_body_uconst, TAIL, TAIL) == [2.0, 1.0, 206.0, -6.0, 12.0, -18.0]
    assert _block(s.two_body_fconst, HEAD, TAIL) == [1.0, 200.0, 0.0, 2.0, 0.0, 0.0]


def test_build_warns_on_asymmetric_override():
    cfg = parse_setup_dict({"interactions": {"pairs": {"ANCHOR-HEAD": {"umin": -1.0, "umax": 100.0}}}})
    with pytest.warns(RuntimeWarning, match="HEAD-ANCHOR"):
        res = build_liposome_system(
            cfg, seed=1, umin_anchor_head=-3.5, n_lipids=1000, areal_density=1.0, overcast=1.5
        )
    assert res.asymmetric_pairs == ((HEAD, ANCHOR),)
    assert _block(res.system.two_body_uconst, HEAD, ANCHOR)[3] == -3.5
    assert _block(res.system.two_body_uconst, ANCHOR, HEAD)[3] == -1.0


def test_build_warns_on_small_overcast():
    with pytest.warns(RuntimeWarning, match="overcast"):
        build_liposome_system(
            SetupConfig(), seed=1, umin_anchor_head=0.0, n_lipids=1000, areal_density=1.0, overcast=0.9
        )
    with pytest.raises(ValueError):
        build_liposome_system(
            SetupConfig(), seed=1, umin_anchor_head=0.0, n_lipids=1000, areal_density=1.0, overcast=0.0
        )


def test_build_carries_box_relaxations():
    cfg = SetupConfig(box_relaxation=[BoxRelaxation.create(0.01, 50.0, 2, 10)])
    res = build_liposome_system(
        cfg, seed=1, umin_anchor_head=0.0, n_lipids=1000, areal_density=1.0, overcast=1.5
    )
    assert res.system.box_relaxations == cfg.box_relaxation


def test_main_writes_configuration(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(["ves", "7", "-3.5", "1000", "1.0", "1.5"])
    out = capsys.readouterr().out
    assert "[mpdgen] wrote ves.mpd" in out

    s = read_mpd(str(tmp_path / "ves.mpd"))
    assert s.seed == 7
    assert s.n_types == 6
    assert s.n_particles == 3000
    assert _block(s.two_body_fconst, TAIL, TAIL) == [1.0, 412.0, 0.0, 2.0, -36.0, -36.0]
    assert _block(s.two_body_uconst, HEAD, ANCHOR)[3] == -3.5
    assert _block(s.two_body_uconst, ANCHOR, HEAD)[3] == -3.5
    assert s.box_relaxations == []

    manifest = json.loads((tmp_path / "ves.mpd.manifest.json").read_text(encoding="utf-8"))
    assert manifest["generator"]["n_lipids"] == 1000
    assert manifest["generator"]["umin_anchor_head"] == -3.5


def test_main_default_density_and_overcast(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    main(["ves", "1", "0", "1000", "--no-output-manifest"])
    s = read_mpd(str(tmp_path / "ves.mpd"))
    radius = math.sqrt(1000.0 / 5.88 / (8.0 * math.pi))
    assert s.size[0] == pytest.approx(2.0 * (radius + 2.1) * 1.5)
    assert not (tmp_path / "ves.mpd.manifest.json").exists()


def test_main_with_config(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "setup.yaml").write_text(
        "box_relaxation:\n  - '0.01 50 2 10'\n", encoding="utf-8"
    )
    main(["ves", "7", "-3.5", "1000", "1.0", "1.5", "--config", "setup.yaml"])
    assert "box relaxation dim=2" in capsys.readouterr().out
    text = (tmp_path / "ves.mpd").read_text(encoding="utf-8")
    assert "#boxRelaxation\n1\n0.01 50 2 10\n" in text


@pytest.mark.parametrize("argv", [[], ["ves"], ["ves", "7", "-3.5"]])
def test_main_short_argv_prints_usage(argv, tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    assert excinfo.value.code == 0
    assert "Usage: mpdgen-liposome name seed Umin_Anchor_Head nLipids" in capsys.readouterr().out
    assert list(tmp_path.iterdir()) == []


def test_main_reports_bad_force_field(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "setup.yaml").write_text("system:\n  cutoff: 1.0\n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        main(["ves", "7", "-3.5", "1000", "1.0", "1.5", "--config", "setup.yaml"])
    assert "setup failed" in str(excinfo.value.code)
    assert not (tmp_path / "ves.mpd").exists()


def test_main_reports_bad_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "setup.yaml").write_text("lipids:\n  colour: red\n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        main(["ves", "7", "-3.5", "1000", "1.0", "1.5", "--config", "setup.yaml"])
    assert "unsupported keys" in str(excinfo.value.code)
