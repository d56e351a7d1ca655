"""Tree walker: enumerate and read the files eligible for sync.

Walk rules:

1. **Regular files only** -- sockets, FIFOs and device nodes are skipped.
2. **Ignore fragments** -- an entry is skipped when its canonical absolute
   path contains any ignored fragment as a plain substring.  Directories
   whose path contains a fragment are pruned, which never changes the
   result because everything below them contains the same fragment.
3. **Symlinks** -- directory links are never descended into.  A file link
   is kept (under the link's own path) only when it resolves to a regular
   file inside the root.
4. **Hidden entries** -- dot-files are treated like any other file.
5. **Keys** -- paths are relative to the canonical root and always use
   ``/`` separators.

Reading and fingerprinting run on a thread pool; results are collected
with ``executor.map`` so workers share no mutable state.
"""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from code_sync.errors import ScanError

from .clock import Clock, SystemClock
from .fingerprint import fingerprint
from .models import FileRecord, ScanResult

logger = logging.getLogger(__name__)

DEFAULT_IGNORED: tuple[str, ...] = (
    ".env",
    "output",
    "dist",
    "target",
    "build",
)


def canonical_root(root: str | Path) -> Path:
    """Resolve *root* to a canonical absolute directory path.

    Raises:
        ValueError: If *root* does not exist or is not a directory.
    """
    path = Path(root).expanduser()
    if not path.exists():
        raise ValueError(f"Sync root not found: {root}")
    resolved = path.resolve()
    if not resolved.is_dir():
        raise ValueError(f"Sync root is not a directory: {root}")
    return resolved


def is_ignored(path: str, ignored: Iterable[str]) -> bool:
    """Return ``True`` if *path* contains any non-empty ignored fragment."""
    return any(fragment and fragment in path for fragment in ignored)


def walk_tree(
    root: str | Path,
    ignored: Iterable[str] = DEFAULT_IGNORED,
    unlisted: list[tuple[str, str]] | None = None,
) -> Iterator[tuple[str, Path]]:
    """Yield ``(relative_path, absolute_path)`` for every eligible file.

    Directories that cannot be listed are logged and skipped.  When
    *unlisted* is given, each one is appended to it as a
    ``(relative_dir, message)`` pair; the root itself is reported as ``"."``.

    Args:
        root: Directory to walk.
        ignored: Path fragments that exclude an entry.
        unlisted: Optional list collecting directories that failed to list.

    Raises:
        ValueError: If *root* is not an existing directory.
    """
    base = canonical_root(root)
    fragments = tuple(ignored)

    def _on_error(exc: OSError) -> None:
        logger.warning("Cannot read directory %s: %s", exc.filename, exc)
        if unlisted is not None:
            unlisted.append((_relative_dir(exc.filename, base), str(exc)))

    for dirpath, dirnames, filenames in os.walk(
        base, onerror=_on_error, followlinks=False
    ):
        # Prune in place so os.walk skips ignored subtrees
        dirnames[:] = sorted(
            d
            for d in dirnames
            if not is_ignored(os.path.join(dirpath, d), fragments)
        )

        for name in sorted(filenames):
            abs_path = Path(dirpath) / name
            if is_ignored(str(abs_path), fragments):
                continue
            if not _is_eligible_file(abs_path, base):
                continue
            yield abs_path.relative_to(base).as_posix(), abs_path


def scan_tree(
    root: str | Path,
    ignored: Iterable[str] = DEFAULT_IGNORED,
    *,
    max_workers: int = 4,
    clock: Clock | None = None,
) -> ScanResult:
    """Walk *root*, read every eligible file and fingerprint it.

    Files that cannot be read are reported in ``ScanResult.errors``.
    Subdirectories that cannot be listed are reported there too and in
    ``ScanResult.unlisted_dirs``.  Files that vanish between listing and
    reading are dropped silently; the next scan will not see them either.

    Args:
        root: Directory to scan.
        ignored: Path fragments that exclude an entry.
        max_workers: Size of the read/fingerprint thread pool.
        clock: Source of ``observed_at`` timestamps.

    Returns:
        A ``ScanResult`` for the canonical root.

    Raises:
        ScanError: If *root* is missing, not a directory, or cannot be
            listed.  No partial result is returned in that case.
    """
    try:
        base = canonical_root(root)
    except ValueError as exc:
        raise ScanError(str(exc)) from exc
    clock = clock or SystemClock()
    unlisted: list[tuple[str, str]] = []
    candidates = list(walk_tree(base, ignored, unlisted))
    for rel_dir, message in unlisted:
        if rel_dir == ".":
            raise ScanError(f"Cannot list sync root {base}: {message}")

    def _read(item: tuple[str, Path]) -> tuple[str, FileRecord | None, str | None]:
        rel_path, abs_path = item
        try:
            content = abs_path.read_bytes()
        except FileNotFoundError:
            logger.debug("File vanished during scan: %s", rel_path)
            return rel_path, None, None
        except OSError as exc:
            logger.warning("Cannot read %s: %s", abs_path, exc)
            return rel_path, None, str(exc)
        record = FileRecord(
            relative_path=rel_path,
            content=content,
            fingerprint=fingerprint(content),
            observed_at=clock.now(),
        )
        return rel_path, record, None

    records: list[FileRecord] = []
    errors: list[tuple[str, str]] = list(unlisted)
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        for rel_path, record, error in executor.map(_read, candidates):
            if record is not None:
                records.append(record)
            elif error is not None:
                errors.append((rel_path, error))

    logger.info("Scanned %d files under %s", len(records), base)
    return ScanResult(
        root=str(base),
        records=records,
        errors=errors,
        unlisted_dirs=sorted(rel_dir for rel_dir, _ in unlisted),
    )


def _relative_dir(filename: str | bytes | None, base: Path) -> str:
    """Map an ``os.walk`` error path to a POSIX path relative to *base*.

    Unknown or foreign paths map to ``"."`` so the whole root counts as
    unlisted.
    """
    if not filename:
        return "."
    try:
        return Path(os.fsdecode(filename)).relative_to(base).as_posix()
    except ValueError:
        return "."


def _is_eligible_file(path: Path, base: Path) -> bool:
    """Apply the regular-file and symlink rules to one directory entry."""
    try:
        st = path.lstat()
    except OSError as exc:
        logger.warning("Cannot stat %s: %s", path, exc)
        return False

    if stat.S_ISREG(st.st_mode):
        return True

    if not stat.S_ISLNK(st.st_mode):
        return False

    try:
        target = path.resolve(strict=True)
    except (OSError, RuntimeError):
        logger.debug("Skipping dangling symlink %s", path)
        return False
    if not target.is_relative_to(base):
        logger.debug("Skipping symlink %s: target outside root", path)
        return False
    if not target.is_file():
        return False
    return True
