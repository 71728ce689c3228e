"""File discovery — walk a project, respect .gitignore, return SourceFile records."""

import logging
from pathlib import Path

import pathspec

from .models import DEFAULT_EXCLUDE_DIRS, SourceFile

log = logging.getLogger(__name__)

_EXT_TO_LANG: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "jsx",
    ".mjs": "javascript",
    ".cjs": "javascript",
}

# Resolution order for extension-less local imports
SOURCE_EXTENSIONS: tuple[str, ...] = (".ts", ".js", ".tsx", ".jsx", ".mjs", ".cjs")

_ANALYZABLE_TYPES = {"typescript", "javascript", "jsx", "tsx"}


def _load_gitignore_spec(root: Path) -> pathspec.PathSpec | None:
    gitignore = root / ".gitignore"
    if gitignore.exists():
        patterns = gitignore.read_text(encoding="utf-8", errors="replace").splitlines()
        return pathspec.PathSpec.from_lines("gitwildmatch", patterns)
    return None


def _is_excluded(parts: tuple[str, ...] | list[str], exclude_dirs: set[str]) -> bool:
    return any(part in exclude_dirs or part.endswith(".egg-info") for part in parts)


def is_analyzable(file: SourceFile, exclude_dirs: list[str] | None = None) -> bool:
    """
    Decide whether a file enumerated by anyone is eligible for analysis.

    The file must not live under an excluded directory, and must either carry
    a known language type or end in a recognized source extension.
    """
    excluded = set(DEFAULT_EXCLUDE_DIRS if exclude_dirs is None else exclude_dirs)
    rel = (file.relative_path or file.path).replace("\\", "/")
    if _is_excluded(rel.split("/"), excluded):
        return False
    return file.type in _ANALYZABLE_TYPES or rel.endswith(SOURCE_EXTENSIONS)


def discover_files(root: str | Path, exclude_dirs: list[str] | None = None) -> list[SourceFile]:
    """
    Return a SourceFile for every JavaScript/TypeScript file under root.

    Respects .gitignore and exclude_dirs.
    Relative paths use forward slashes.
    """
    root_path = Path(root).resolve()
    gitignore_spec = _load_gitignore_spec(root_path)
    excluded = set(DEFAULT_EXCLUDE_DIRS if exclude_dirs is None else exclude_dirs)

    results: list[SourceFile] = []

    for path in sorted(root_path.rglob("*")):
        if not path.is_file():
            continue

        rel = path.relative_to(root_path)
        rel_str = rel.as_posix()

        if _is_excluded(rel.parts, excluded):
            continue

        if gitignore_spec and gitignore_spec.match_file(rel_str):
            continue

        lang = _EXT_TO_LANG.get(path.suffix.lower())
        if lang is None:
            continue

        results.append(SourceFile(path=str(path), relative_path=rel_str, type=lang))

    log.info("Discovered %d files under %s", len(results), root_path)
    return results
