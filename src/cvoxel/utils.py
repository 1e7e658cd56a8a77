from pathlib import Path
import logging

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# formats SurfaceMesh.export writes through trimesh
EXPORT_SUFFIXES = (".obj", ".ply", ".stl", ".glb")


def configure_logging(level: str | int = "INFO") -> None:
    """Root logging setup for the scripts; the library itself never adds handlers."""
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)


def reset_export_dir(dir_path: Path, *, must_contain: str = "surfaces") -> int:
    """
    Prepare a surface export directory: create it, or delete the mesh files a
    previous export left in it. Other files and subdirectories are kept.

    Refuses paths that do not contain the `must_contain` component.
    Returns the number of removed files.
    """
    dir_path = Path(dir_path).resolve()

    if must_contain not in dir_path.parts:
        raise RuntimeError(
            f"Refuse to reset {dir_path}, "
            f"missing safety token '{must_contain}'"
        )

    if not dir_path.exists():
        dir_path.mkdir(parents=True)
        return 0

    removed = 0
    for p in dir_path.iterdir():
        if p.is_file() and p.suffix.lower() in EXPORT_SUFFIXES:
            p.unlink()
            removed += 1
    return removed
