import os
import fnmatch
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Set

from ...models.errors import SourceRootUnreadable


@dataclass
class ScanConfig:
    include_globs: List[str]
    exclude_globs: List[str]
    extensions: Set[str]
    follow_symlinks: bool = False


def _match_any(path: str, patterns: List[str]) -> bool:
    for pat in patterns:
        if fnmatch.fnmatch(path, pat) or fnmatch.fnmatch(os.path.basename(path), pat):
            return True
    return False


def _raise_unreadable(err: OSError) -> None:
    raise SourceRootUnreadable(f"Cannot list {err.filename}: {err.strerror}") from err


def iter_files(root: str, cfg: ScanConfig) -> Iterator[str]:
    root_path = Path(root)
    walker = os.walk(root_path, followlinks=cfg.follow_symlinks, onerror=_raise_unreadable)
    for dirpath, dirnames, filenames in walker:
        rel_dir = os.path.relpath(dirpath, root_path)
        rel_dir = "" if rel_dir == "." else rel_dir

        # prune excluded directories
        for d in list(dirnames):
            rel = os.path.join(rel_dir, d).replace("\\", "/")
            if _match_any(rel + "/", cfg.exclude_globs):
                dirnames.remove(d)

        for f in filenames:
            rel = os.path.join(rel_dir, f).replace("\\", "/")
            ext = os.path.splitext(f)[1].lower().lstrip(".")
            if ext not in cfg.extensions:
                continue
            if cfg.include_globs and not _match_any(rel, cfg.include_globs):
                continue
            if _match_any(rel, cfg.exclude_globs):
                continue
            yield os.path.join(dirpath, f)


def scan_sources(
    repo_root: Path,
    extensions: Iterable[str],
    include_globs: Iterable[str] = (),
    exclude_globs: Iterable[str] = (),
) -> List[Path]:
    """
    Absolute paths of every source file under repo_root with one of the given
    extensions, sorted so runs are reproducible.
    """
    if not repo_root.is_dir():
        raise SourceRootUnreadable(f"Source folder does not exist or is not a directory: {repo_root}")
    cfg = ScanConfig(
        include_globs=list(include_globs),
        exclude_globs=list(exclude_globs),
        extensions={e.lstrip(".").lower() for e in extensions},
    )
    return sorted(Path(p).resolve() for p in iter_files(str(repo_root), cfg))
