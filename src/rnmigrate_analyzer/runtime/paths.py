import os
from pathlib import Path
from typing import Optional

from ..models.errors import SourceRootUnreadable


def resolve_source_root(raw: str, cwd: Optional[Path] = None) -> Path:
    if not raw or not raw.strip():
        raise SourceRootUnreadable("Source folder is empty")
    p = Path(raw.strip().strip('"').strip("'")).expanduser()
    if not p.is_absolute():
        p = (cwd or Path.cwd()) / p
    p = p.resolve()
    if not p.is_dir():
        raise SourceRootUnreadable(f"Source folder does not exist: {raw}")
    if not os.access(p, os.R_OK | os.X_OK):
        raise SourceRootUnreadable(f"Source folder is not readable: {raw}")
    return p


def compute_default_output_dir(input_dir: str, output_folder_name: str = "output_files") -> str:
    return str(Path(input_dir).resolve().parent / output_folder_name)


def relative_display_path(path, base: Optional[Path] = None) -> str:
    base = base or Path.cwd()
    try:
        return Path(path).resolve().relative_to(base.resolve()).as_posix()
    except ValueError:
        return Path(path).as_posix()
