"""File handler module: input path expansion and encoding-aware reads.

Sync functions do plain file I/O; async wrappers dispatch them via
run_sync() so the event loop is never blocked on disk.
"""

import logging
from pathlib import Path

from charset_normalizer import from_bytes

from .core.async_utils import run_sync

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"

# =============================================================================
# Path Expansion
# =============================================================================


def is_markdown_file(path: Path) -> bool:
    return path.suffix == MARKDOWN_SUFFIX


def expand_paths(paths: list[str]) -> list[Path]:
    """Expand CLI path arguments into the Markdown files to sync.

    * A directory contributes its direct ``*.md`` children (sorted, not
      recursive).
    * A file is kept only if it has a ``.md`` suffix.
    * A missing path is logged and skipped.

    Args:
        paths: File or directory path strings, in CLI order.

    Returns:
        Resolved Markdown file paths, in input order.
    """
    result: list[Path] = []
    for path_str in paths:
        path = Path(path_str).resolve()

        if not path.exists():
            logger.error("File not found: %s", path_str)
            continue

        if path.is_dir():
            result.extend(
                sorted(
                    child
                    for child in path.iterdir()
                    if child.is_file() and is_markdown_file(child)
                )
            )
        elif is_markdown_file(path):
            result.append(path)
        else:
            logger.debug("Ignoring non-Markdown file: %s", path_str)

    return result


# =============================================================================
# File Read
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    try:
        # Valid UTF-8 needs no guessing
        return (raw.decode("utf-8"), "utf-8")
    except UnicodeDecodeError:
        pass

    result = from_bytes(raw).best()
    if result is None:
        logger.warning("Could not detect encoding of %s, assuming UTF-8", path)
        return (raw.decode("utf-8", errors="replace"), "utf-8")

    logger.debug("Detected %s encoding for %s", result.encoding, path)
    return (str(result), result.encoding)


async def read_file_async(path: Path) -> tuple[str, str]:
    """Async wrapper around ``read_file_with_encoding``."""
    return await run_sync(read_file_with_encoding, path)
