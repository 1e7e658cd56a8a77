import argparse
import logging
from pathlib import Path

import numpy as np
import trimesh

from cvoxel import find_intersections, voxelize_mesh
from cvoxel.utils import configure_logging, reset_export_dir

logger = logging.getLogger("run_intersection")

HIGHLIGHT = (1.0, 0.0, 0.0, 1.0)


def build_shapes():
    return {
        "capsule": trimesh.creation.capsule(height=0.7, radius=0.3),
        "sphere": trimesh.creation.icosphere(subdivisions=3, radius=0.3),
        "torus": trimesh.creation.torus(major_radius=0.35, minor_radius=0.15),
    }


def main():
    ap = argparse.ArgumentParser(description="Voxelize a row of primitives and report intersections")
    ap.add_argument("--dx", type=float, default=0.05)
    ap.add_argument("--spacing", type=float, default=0.9, help="distance between neighbouring objects")
    ap.add_argument("--yaw", type=float, default=0.0, help="yaw (radians) applied to every other object")
    ap.add_argument("--fill-interior", action="store_true")
    ap.add_argument("--export", action="store_true", help="export surface meshes as OBJ")
    ap.add_argument("--out-dir", type=Path, default=Path("outputs/surfaces"))
    ap.add_argument("--log-level", default="INFO")
    args = ap.parse_args()

    configure_logging(args.log_level)

    shapes = build_shapes()
    names, grids = [], []
    for name, mesh in shapes.items():
        grid = voxelize_mesh(mesh, args.dx, fill_interior=args.fill_interior)
        if grid is None:
            logger.warning("Skipping %s: could not be voxelized", name)
            continue
        names.append(name)
        grids.append(grid)

    n = len(grids)
    for i, grid in enumerate(grids):
        grid.transform.set_translation((i + 0.5 - n * 0.5) * args.spacing, 0.0, 0.0)
        if i % 2 == 1:
            grid.transform.set_euler(0.0, 0.0, args.yaw)
        logger.info("%s: %r", names[i], grid)

    highlights = [dict() for _ in grids]
    for pair in find_intersections(grids):
        a, b = names[pair.first], names[pair.second]
        print(f"{a} x {b}: bounds overlap at {np.round(pair.aabb.middle(), 4)} size {np.round(pair.aabb.size(), 4)}")
        if pair.voxels is None:
            print("  no occupied voxels touch")
            continue
        ia, ib = pair.voxels
        pa = grids[pair.first].voxel_center_world(ia)
        pb = grids[pair.second].voxel_center_world(ib)
        print(f"  voxel {ia} of {a} at {np.round(pa, 4)} touches voxel {ib} of {b} at {np.round(pb, 4)}")
        highlights[pair.first][ia] = HIGHLIGHT
        highlights[pair.second][ib] = HIGHLIGHT

    if args.export:
        reset_export_dir(args.out_dir)
        for name, grid, colors in zip(names, grids, highlights):
            surface = grid.surface_mesh(voxel_colors=colors)
            mesh = surface.to_trimesh()
            mesh.apply_transform(grid.transform.matrix())
            path = args.out_dir / f"{name}.obj"
            mesh.export(path)
            print(f"Surface of {name} ({surface.face_count} faces) saved to: {path}")

    print("done")


if __name__ == "__main__":
    main()
