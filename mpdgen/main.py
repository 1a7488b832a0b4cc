from __future__ import annotations

from typing import Sequence

from . import __version__
from .builder import build_liposome_system
from .cli_parser import USAGE, build_parser
from .config import SetupConfig, load_setup_config
from .io import write_mpd
from .state import kinetic_energy, temperature_from_ke


def main(argv: Sequence[str] | None = None) -> None:
    p = build_parser()
    args = p.parse_args(argv)
    required = (args.name, args.seed, args.umin_anchor_head, args.n_lipids)
    if any(x is None for x in required):
        print(USAGE.format(prog=p.prog))
        raise SystemExit(0)

    try:
        cfg = load_setup_config(args.config) if args.config else SetupConfig()
        res = build_liposome_system(
            cfg,
            seed=int(args.seed),
            umin_anchor_head=float(args.umin_anchor_head),
            n_lipids=int(args.n_lipids),
            areal_density=float(args.areal_density),
            overcast=float(args.overcast),
        )
    except ValueError as exc:
        raise SystemExit(f"[mpdgen] setup failed: {exc}") from exc

    system = res.system
    t_init = temperature_from_ke(kinetic_energy(system.velocities), system.n_particles)
    print(
        f"[mpdgen] liposome radius={res.radius:.6f} particles={system.n_particles} "
        f"size={system.size[0]:.6f} T0={t_init:.4f}",
        flush=True,
    )
    for rel in system.box_relaxations:
        if rel.active():
            dl, el, d, rs = rel.words()
            print(f"[mpdgen] box relaxation dim={d} -> {el} by {dl} every {rs} steps", flush=True)

    out = f"{args.name}.mpd"
    write_mpd(
        system,
        out,
        write_output_manifest=not args.no_output_manifest,
        generator={
            "name": "mpdgen-liposome",
            "version": __version__,
            "seed": int(args.seed),
            "umin_anchor_head": float(args.umin_anchor_head),
            "n_lipids": int(args.n_lipids),
            "areal_density": float(args.areal_density),
            "overcast": float(args.overcast),
        },
    )
    print(f"[mpdgen] wrote {out}", flush=True)


if __name__ == "__main__":
    main()
