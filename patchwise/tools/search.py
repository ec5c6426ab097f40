#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Relevance search over the project tree.

Every text line of every eligible project file is scored against the
keyword and the intent's target/description. When nothing scores above the
confidence floor a single new-file candidate is returned instead of a weak
match in an unrelated file.
"""

import concurrent.futures
import os
import re
import threading
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from patchwise import config
from patchwise.debug_logger import get_logger
from patchwise.models import SearchMatch
from patchwise.tools.errors import PathEscapeError
from patchwise.workspace import ProjectContext


STOPWORDS = {
    "the", "and", "for", "with", "that", "this", "from", "into", "add", "new",
    "use", "are", "was", "will", "should", "file", "code", "make", "can", "all",
    "not", "but", "when", "then", "there", "their", "have", "has", "its", "our",
    "your", "you", "please", "function", "change", "update",
}

CODE_EXTENSIONS = (".ts", ".js", ".tsx", ".jsx", ".py", ".java", ".cpp", ".c")

# Bonuses for lines that already match; they rank, never create, matches
DEFINITION_WORDS = ("function", "class", "def ")
IMPORT_WORDS = ("import", "export", "require")

_TEST_PATH_RE = re.compile(
    r"(^|/)(tests?|__tests__|testing|fixtures?|__fixtures__|mocks?|__mocks__|specs?)(/|$)"
    r"|(^|/)(test_[^/]*|conftest\.py)$"
    r"|[._-](test|spec|mock|fixture)s?\.[a-z0-9]+$",
    re.IGNORECASE,
)

_FILE_CACHE: Dict[Tuple[str, int], List[Path]] = {}
_CACHE_LOCK = threading.Lock()


@dataclass(frozen=True)
class SearchQuery:
    action: str = ""
    target: str = ""
    description: str = ""


def invalidate_file_cache() -> None:
    with _CACHE_LOCK:
        _FILE_CACHE.clear()


def tokenize(text: str) -> List[str]:
    """Lowercase words of three or more characters, stop words removed, order kept."""
    seen = []
    for word in re.findall(r"[a-z0-9_]+", (text or "").lower()):
        if len(word) >= 3 and word not in STOPWORDS and word not in seen:
            seen.append(word)
    return seen


def is_test_path(rel_path: str) -> bool:
    return bool(_TEST_PATH_RE.search(rel_path.replace("\\", "/")))


def detect_file_type(path: Path) -> str:
    """Categorize a file as config/javascript/python/java/cpp/documentation/data/unknown."""
    name = path.name.lower()
    ext = path.suffix.lower()

    if (
        "config" in name
        or name.startswith(".env")
        or name in {n.lower() for n in config.CONFIG_FILE_NAMES}
    ):
        return "config"
    if ext in {".ts", ".js", ".tsx", ".jsx"}:
        return "javascript"
    if ext == ".py":
        return "python"
    if ext == ".java":
        return "java"
    if ext in {".cpp", ".c", ".h"}:
        return "cpp"
    if ext in {".md", ".txt"}:
        return "documentation"
    if ext in {".json", ".yaml", ".yml", ".toml"}:
        return "data"
    return "unknown"


def _is_searchable(path: Path) -> bool:
    name = path.name
    return (
        name in config.SPECIAL_FILES
        or path.suffix.lower() in config.SEARCH_EXTENSIONS
        or name.lower() in config.SEARCH_EXTENSIONS
    )


def list_project_files(context: ProjectContext) -> List[Path]:
    """Return eligible files under the project root, cached per (root, epoch)."""
    key = (str(context.root), context.cache_epoch)
    with _CACHE_LOCK:
        cached = _FILE_CACHE.get(key)
    if cached is not None:
        return cached

    files: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(context.root):
        dirnames[:] = sorted(d for d in dirnames if d not in config.EXCLUDE_DIRS)
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if _is_searchable(path):
                files.append(path)

    with _CACHE_LOCK:
        _FILE_CACHE[key] = files
    return files


def _read_lines(path: Path) -> Optional[List[str]]:
    """Read a text file as lines; None for binary, oversized or unreadable files."""
    try:
        if path.stat().st_size > config.MAX_FILE_BYTES:
            return None
        data = path.read_bytes()
    except OSError:
        return None
    if b"\x00" in data[:8192]:
        return None
    return data.decode("utf-8", errors="ignore").splitlines()


class RelevanceSearchEngine:
    """Ranks project lines by relevance to an edit request."""

    def __init__(self, max_workers: Optional[int] = None, confidence_floor: Optional[int] = None):
        self.max_workers = max_workers or config.SEARCH_WORKERS
        self.confidence_floor = (
            config.SEARCH_CONFIDENCE_FLOOR if confidence_floor is None else confidence_floor
        )

    def search(self, keyword: str, query: SearchQuery, context: ProjectContext) -> List[SearchMatch]:
        """Search the project for lines relevant to ``keyword`` and ``query``.

        Args:
            keyword: Primary search term, usually the intent target.
            query: Action, target and description of the edit intent.
            context: Project whose files are searched.

        Returns:
            Matches sorted by descending score (stable), or a single new-file
            candidate when nothing clears the confidence floor, or an empty
            list when no candidate path can be derived.
        """
        files = list_project_files(context)
        tokens = tokenize(f"{query.target} {query.description}")

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            contents = list(executor.map(_read_lines, files))

        matches: List[SearchMatch] = []
        for path, lines in zip(files, contents):
            if lines is None:
                continue
            rel_path = context.relative(path)
            file_type = detect_file_type(path)
            path_score = self._path_score(rel_path, file_type, query, tokens)

            for idx, line in enumerate(lines, 1):
                if not line.strip():
                    continue
                score = path_score + self._line_score(line, keyword, tokens)
                if score > 0:
                    matches.append(SearchMatch(
                        file=rel_path,
                        line=line.strip(),
                        line_number=idx,
                        file_type=file_type,
                        relevance_score=score,
                    ))

        # sort() is stable, so ties keep discovery order
        matches.sort(key=lambda m: m.relevance_score, reverse=True)

        best = matches[0].relevance_score if matches else None
        get_logger().log("search", "SEARCH_COMPLETE", {
            "keyword": keyword,
            "files": len(files),
            "matches": len(matches),
            "best_score": best,
        }, "DEBUG")

        if best is None or best < self.confidence_floor:
            candidate = self.new_file_candidate(query.target or keyword, context, files)
            return [candidate] if candidate else []
        return matches

    @staticmethod
    def _line_score(line: str, keyword: str, tokens: List[str]) -> int:
        score = 0
        lower_line = line.lower()
        if keyword:
            if keyword.lower() in lower_line:
                score += 10
            if keyword in line:
                score += 20
        score += 3 * sum(1 for token in tokens if token in lower_line)
        if score:
            if any(word in lower_line for word in DEFINITION_WORDS):
                score += 15
            if any(word in lower_line for word in IMPORT_WORDS):
                score += 10
        return score

    @staticmethod
    def _path_score(rel_path: str, file_type: str, query: SearchQuery, tokens: List[str]) -> int:
        lower_path = rel_path.lower()
        basename = lower_path.rsplit("/", 1)[-1]

        score = 2 * sum(1 for token in tokens if token in lower_path)
        score += sum(1 for token in tokens if token in basename)
        if query.target and query.target.strip().lower() in lower_path:
            score += 30
        if query.action == "config_change" and file_type == "config":
            score += 30
        if is_test_path(rel_path):
            score -= 40
        return score

    def new_file_candidate(
        self, target: str, context: ProjectContext, files: Optional[List[Path]] = None
    ) -> Optional[SearchMatch]:
        """Synthesize a match pointing at a file that should be created."""
        target = (target or "").strip().strip("'\"`")
        if not target:
            return None

        if "/" in target or "\\" in target or (Path(target).suffix and " " not in target):
            candidate = target
        else:
            slug = "_".join(tokenize(target)) or re.sub(r"[^a-z0-9]+", "_", target.lower()).strip("_")
            if not slug:
                return None
            candidate = slug + self._dominant_extension(files or [])

        try:
            abs_path = context.resolve_path(candidate)
        except PathEscapeError:
            return None

        return SearchMatch(
            file=context.relative(abs_path),
            line="",
            line_number=0,
            file_type=detect_file_type(abs_path),
            relevance_score=0,
            is_new_file=not abs_path.exists(),
        )

    @staticmethod
    def _dominant_extension(files: List[Path]) -> str:
        counts = Counter(p.suffix.lower() for p in files if p.suffix.lower() in CODE_EXTENSIONS)
        if not counts:
            return ".txt"
        return counts.most_common(1)[0][0]
