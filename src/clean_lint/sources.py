from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from clean_lint.models import LANGUAGE_JAVASCRIPT, LANGUAGE_PYTHON, ScanSettings, SourceUnit
from clean_lint.parsing import tokenize_source


logger = logging.getLogger(__name__)

EXTENSION_LANGUAGES = {
    ".js": LANGUAGE_JAVASCRIPT,
    ".mjs": LANGUAGE_JAVASCRIPT,
    ".cjs": LANGUAGE_JAVASCRIPT,
    ".py": LANGUAGE_PYTHON,
}


def language_for_path(path: str | Path) -> str | None:
    return EXTENSION_LANGUAGES.get(Path(path).suffix.lower())


def build_unit(path: str, text: str, language: str) -> SourceUnit:
    """Tokenize ``text`` and wrap it as an immutable source unit.

    Raises ``SourceSyntaxError`` when the text cannot be tokenized.
    """
    return SourceUnit(path=path, language=language, text=text, tokens=tokenize_source(text, language))


def load_source(path: str | Path, language: str | None = None, *, display_path: str | None = None) -> SourceUnit:
    file_path = Path(path)
    resolved_language = language or language_for_path(file_path)
    if resolved_language is None:
        raise ValueError(f"Cannot determine language for {file_path}")

    text = file_path.read_text(encoding="utf-8-sig")
    return build_unit(display_path or file_path.as_posix(), text, resolved_language)


def discover_files(paths: list[str | Path], settings: ScanSettings) -> list[Path]:
    include_exts = {item.lower() for item in settings.include_exts}
    discovered: list[Path] = []
    seen: set[Path] = set()

    for raw_path in paths:
        path = Path(raw_path)
        if path.is_file():
            candidates: Iterator[Path] = iter([path])
        elif path.is_dir():
            candidates = _walk(path, set(settings.exclude_dirs))
        else:
            logger.warning("Path does not exist: %s", path)
            continue

        for file_path in candidates:
            if file_path in seen:
                continue
            if path.is_dir() and file_path.suffix.lower() not in include_exts:
                continue
            if len(discovered) >= settings.max_files:
                logger.warning("File limit of %d reached; remaining files skipped", settings.max_files)
                return discovered

            try:
                size = file_path.stat().st_size
            except OSError as exc:
                logger.warning("Cannot stat %s: %s", file_path, exc)
                continue
            if size > settings.max_file_size_bytes:
                logger.info("Skipping %s: %d bytes exceeds limit", file_path, size)
                continue

            seen.add(file_path)
            discovered.append(file_path)

    logger.debug("Discovered %d source files", len(discovered))
    return discovered


def _walk(root: Path, exclude_dirs: set[str]) -> Iterator[Path]:
    # Sorted so reports do not depend on directory listing order.
    for item in sorted(root.iterdir(), key=lambda entry: entry.name):
        if item.is_dir():
            if item.name in exclude_dirs:
                continue
            yield from _walk(item, exclude_dirs)
        elif item.is_file():
            yield item
