"""
Project path helpers.

All tools resolve their default locations relative to the project root,
which is the nearest directory (walking up from the working directory)
that contains a pyproject.toml.
"""

from pathlib import Path


PROJECT_MARKER = "pyproject.toml"


def get_project_root(start: Path | None = None) -> Path:
    """
    Get the project root directory.

    Falls back to the starting directory when no marker is found, so the
    tools still work from a bare checkout of generated declarations.
    """
    start = (start or Path.cwd()).resolve()
    for candidate in [start, *start.parents]:
        if (candidate / PROJECT_MARKER).exists():
            return candidate
    return start


def get_declarations_dir(root: Path) -> Path:
    """Get the default directory holding per-unit declaration dumps."""
    return root / "declarations"


def get_output_dir(root: Path) -> Path:
    """Get the default documentation output directory."""
    return root / "target" / "doc"


def get_implementors_dir(output_dir: Path) -> Path:
    """Get the directory shards are written under."""
    return output_dir / "implementors"


def get_schema_dir() -> Path:
    """Get the directory of bundled JSON schemas."""
    return Path(__file__).resolve().parent.parent / "schema"


def get_schema_path(name: str) -> Path:
    """Get the path of a bundled schema, e.g. 'declarations'."""
    return get_schema_dir() / f"{name}.schema.json"


def resolve_path(path: Path, root: Path) -> Path:
    """Resolve a user-supplied path against the project root if relative."""
    if path.is_absolute():
        return path
    return (root / path).resolve()
