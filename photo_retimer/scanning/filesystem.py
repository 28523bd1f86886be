import os
import logging
from pathlib import Path
from typing import Iterator, Optional, Set


def iter_files(root: Path, skip_dirs: Optional[Set[Path]] = None) -> Iterator[Path]:
    """
    Depth-first walker using os.scandir for speed.

    Entries are sorted so that two walks over an unchanged folder yield the
    same order. Symlinks are not followed.
    """
    skip_dirs = skip_dirs or set()
    stack = [Path(root)]
    while stack:
        current = stack.pop()
        if skip_dirs and any(sd == current or sd in current.parents for sd in skip_dirs):
            continue

        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as e:
            logging.warning(f"Cannot read directory {current}: {e}")
            continue

        entries.sort(key=lambda e: e.name.lower())

        dirs = []
        files = []
        for e in entries:
            if e.is_dir(follow_symlinks=False):
                dirs.append(Path(e.path))
            elif e.is_file(follow_symlinks=False):
                files.append(Path(e.path))

        # Push dirs reversed so A is processed before Z
        for d in reversed(dirs):
            stack.append(d)

        for f in files:
            yield f
