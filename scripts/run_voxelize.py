import argparse
from pathlib import Path

import trimesh

from cvoxel import voxelize_mesh
from cvoxel.utils import configure_logging


PRIMITIVES = {
    "box": lambda: trimesh.creation.box(extents=(1.0, 1.0, 1.0)),
    "sphere": lambda: trimesh.creation.icosphere(subdivisions=3, radius=0.5),
    "capsule": lambda: trimesh.creation.capsule(height=0.7, radius=0.3),
    "torus": lambda: trimesh.creation.torus(major_radius=0.35, minor_radius=0.15),
}


def main():
    parser = argparse.ArgumentParser(
        description="Voxelize a primitive and export its exposed voxel faces"
    )

    parser.add_argument("--shape", choices=sorted(PRIMITIVES), default="sphere")
    parser.add_argument("--dx", type=float, default=0.05)
    parser.add_argument("--fill-interior", action="store_true")
    parser.add_argument("--out-dir", type=Path, default=Path("outputs"))
    parser.add_argument("--log-level", default="INFO")

    args = parser.parse_args()
    configure_logging(args.log_level)

    grid = voxelize_mesh(PRIMITIVES[args.shape](), args.dx, fill_interior=args.fill_interior)
    if grid is None:
        raise SystemExit(f"Could not voxelize {args.shape} at dx={args.dx}")

    surface = grid.surface_mesh()
    out_path = args.out_dir.resolve() / f"voxels_{args.shape}.obj"
    surface.export(out_path)

    print(f"Done: shape={grid.shape}, occupied={grid.occupied_count}, faces={surface.face_count}")
    print(f"Surface saved to: {out_path}")


if __name__ == "__main__":
    main()
