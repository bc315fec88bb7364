from pathlib import Path
from dorislift.config import config

__all__ = [
    "workspace_path",
    "converted_root",
    "resolve_converted_run",
]


def workspace_path(*parts) -> Path:

    if not parts:
        return Path(config["base_dirs"]["workspace"])

    invalid_parts = [p for p in parts if p is None or str(p).strip() == ""]
    if invalid_parts:
        raise ValueError(
            "workspace_path parts cannot be empty or None. "
            f"Received invalid segment(s): {invalid_parts}"
        )

    return Path(config["base_dirs"]["workspace"]).joinpath(*parts)


def converted_root() -> Path:
    """Return ``<workspace>/<converted>`` where conversion runs are stored."""
    return workspace_path(config.get("workspace_sub_dirs", {}).get("converted", "converted"))


# ---------------------------------------------------------------------------
# Helper to select a specific or latest converted sub-run directory
# ---------------------------------------------------------------------------


def resolve_converted_run(base_converted_dir: Path | str, sub_timestamp: str | None = None) -> Path:

    base_converted_dir = Path(base_converted_dir)

    if sub_timestamp:
        candidate = base_converted_dir / sub_timestamp
        if candidate.is_dir():
            return candidate
        raise FileNotFoundError(
            f"Converted run '{sub_timestamp}' not found under {base_converted_dir}"
        )

    if not base_converted_dir.exists():
        raise FileNotFoundError(f"Converted folder does not exist: {base_converted_dir}")

    subdirs = [d for d in base_converted_dir.iterdir() if d.is_dir()]
    if not subdirs:
        raise FileNotFoundError(f"No converted runs present under {base_converted_dir}")

    # Run names end with YYYYMMDD_HHMMSS; compare on that suffix so the
    # dialect prefix does not decide the ordering.
    return max(subdirs, key=lambda p: (p.name[-15:], p.stat().st_mtime))
