#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""ProjectContext: the project root every search, edit and command is bound to.

A context is immutable. Changing directory produces a new context with a
bumped cache epoch so cached file listings from the old root are never reused.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from patchwise.tools.errors import PathEscapeError


@dataclass(frozen=True)
class ProjectContext:
    """Project root plus the epoch used to key the search file cache."""

    root: Path
    cache_epoch: int = 0
    home: Path = field(default_factory=Path.home, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(self.root).resolve())

    @classmethod
    def from_cwd(cls) -> "ProjectContext":
        return cls(root=Path.cwd())

    def resolve_path(self, path: Union[str, Path]) -> Path:
        """Resolve a (possibly relative) path and require it to stay under root.

        Args:
            path: Path from a proposal or user input; relative paths are
                taken relative to the project root.

        Returns:
            Absolute resolved path.

        Raises:
            PathEscapeError: If the path is empty or resolves outside root.
        """
        raw = _clean_path_input(path)
        candidate = Path(raw)
        if not candidate.is_absolute():
            candidate = self.root / candidate

        # strict=False: edits may create files that do not exist yet
        abs_path = candidate.resolve(strict=False)
        if not _is_within_root(abs_path, self.root):
            raise PathEscapeError(raw)
        return abs_path

    def is_inside(self, path: Union[str, Path]) -> bool:
        try:
            self.resolve_path(path)
        except PathEscapeError:
            return False
        return True

    def relative(self, path: Union[str, Path]) -> str:
        """Return a root-relative POSIX path for display."""
        abs_path = Path(path)
        if not abs_path.is_absolute():
            abs_path = self.root / abs_path
        try:
            return abs_path.resolve(strict=False).relative_to(self.root).as_posix()
        except ValueError:
            return str(abs_path)

    def directory_candidates(self, target: str) -> List[Path]:
        """Candidate directories for a ``cd`` target, in lookup order."""
        raw = target.strip().strip("'\"") or str(self.home)
        candidates = []

        direct = Path(raw)
        candidates.append(direct if direct.is_absolute() else self.root / direct)

        expanded = Path(os.path.expanduser(raw))
        if expanded.is_absolute():
            candidates.append(expanded)

        candidates.append(self.home / raw.lstrip("~/"))
        return candidates

    def resolve_directory(self, target: str) -> Optional[Path]:
        for candidate in self.directory_candidates(target):
            if candidate.is_dir():
                return candidate.resolve()
        return None

    def change_directory(self, target: str) -> "ProjectContext":
        """Return a new context rooted at ``target``.

        Raises:
            NotADirectoryError: If no candidate resolves to a real directory.
        """
        new_root = self.resolve_directory(target)
        if new_root is None:
            raise NotADirectoryError(f"Directory not found: {target}")
        return ProjectContext(root=new_root, cache_epoch=self.cache_epoch + 1, home=self.home)


def _clean_path_input(path: Union[str, Path]) -> str:
    raw = str(path).strip()
    if (raw.startswith('"') and raw.endswith('"')) or (
        raw.startswith("'") and raw.endswith("'")
    ):
        raw = raw[1:-1].strip()

    if len(raw) > 1:
        raw = raw.rstrip("/\\")

    if not raw:
        raise PathEscapeError(raw, "Empty path")
    return raw


def _is_within_root(candidate: Path, root: Path) -> bool:
    """Check if candidate path is within root (case-insensitive on Windows)."""
    try:
        candidate.relative_to(root)
        return True
    except ValueError:
        cand = os.path.normcase(str(candidate))
        base = os.path.normcase(str(root))
        if cand == base:
            return True
        return cand.startswith(base + os.sep)
