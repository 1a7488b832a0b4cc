from __future__ import annotations

import argparse

USAGE = "Usage: {prog} name seed Umin_Anchor_Head nLipids arealDensity overcast"

DEFAULT_AREAL_DENSITY = 5.88
DEFAULT_OVERCAST = 1.5


def build_parser(prog: str = "mpdgen-liposome") -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=prog,
        description="Write a liposome configuration with Laradji-Revalee two-body constants",
    )
    # all optional here so that a short argument list prints usage and exits 0
    p.add_argument("name", nargs="?", help="Output name (writes <name>.mpd)")
    p.add_argument("seed", nargs="?", type=int, help="Random seed")
    p.add_argument("umin_anchor_head", nargs="?", type=float, help="Umin for the HEAD-ANCHOR pair")
    p.add_argument("n_lipids", nargs="?", type=int, help="Number of lipids in the vesicle")
    p.add_argument(
        "areal_density",
        nargs="?",
        type=float,
        default=DEFAULT_AREAL_DENSITY,
        help="Lipids per unit area of one leaflet",
    )
    p.add_argument(
        "overcast",
        nargs="?",
        type=float,
        default=DEFAULT_OVERCAST,
        help="Box edge over vesicle diameter",
    )
    p.add_argument("--config", default="", help="YAML setup overrides")
    p.add_argument(
        "--no-output-manifest",
        action="store_true",
        help="Disable the configuration manifest sidecar",
    )
    return p
