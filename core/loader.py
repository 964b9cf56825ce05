# =============================================================================
# core/loader.py  -  Loading & Parsing JSON Files
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Turns a file path into a LoadedDocument.  Every tool call loads its own
#   copy of the document and drops it when the call returns; nothing is
#   cached between calls.
#
# ERRORS:
#   - LoadError  : file missing, not a regular file, unreadable, too large
#   - ParseError : content is not well-formed JSON (decoder message kept)
#
# DUPLICATE KEYS:
#   json.loads() silently keeps the LAST value for a repeated key.  When
#   track_duplicates is set we parse with an object_pairs_hook that records
#   the repeated keys on the object itself (DuplicateKeyDict), so
#   json_validate can report them with a real path while it walks.
# =============================================================================

import json
import logging
from pathlib import Path

from core.errors import LoadError, ParseError
from core.models import LoadedDocument

logger = logging.getLogger(__name__)


class DuplicateKeyDict(dict):
    """A parsed object whose source text repeated at least one key.

    Behaves as the plain dict json.loads() would build (last value wins);
    `duplicate_keys` lists each repeated key once, in order of first repeat.
    """

    def __init__(self, pairs, duplicate_keys: list[str]):
        super().__init__(pairs)
        self.duplicate_keys = duplicate_keys


def _pairs_hook(pairs):
    obj = {}
    repeated = []
    for key, value in pairs:
        if key in obj and key not in repeated:
            repeated.append(key)
        obj[key] = value
    return DuplicateKeyDict(obj, repeated) if repeated else obj


def parse_document(text: str, source: str, track_duplicates: bool = False):
    """Parse JSON text.

    Args:
        text: The raw JSON content.
        source: Where the text came from, used in error messages.
        track_duplicates: Build a DuplicateKeyDict for every object that
            repeats a key.

    Returns:
        The parsed value.

    Raises:
        ParseError: The text is not valid JSON.
    """
    try:
        if track_duplicates:
            data = json.loads(text, object_pairs_hook=_pairs_hook)
        else:
            data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in file {source}: {e}") from e
    except RecursionError as e:
        raise ParseError(f"Invalid JSON in file {source}: nesting too deep") from e

    return data


def read_text(file_path: str, max_bytes: int) -> tuple[Path, str, int]:
    """Read a file as UTF-8 text after checking that it exists and fits.

    Returns:
        (absolute path, text, size in bytes)

    Raises:
        LoadError: The file cannot be read or exceeds max_bytes.
    """
    path = Path(file_path).expanduser().resolve()
    if not path.exists():
        raise LoadError(f"File not found: {path}")
    if not path.is_file():
        raise LoadError(f"Not a file: {path}")

    size = path.stat().st_size
    if size > max_bytes:
        raise LoadError(
            f"File too large: {size} bytes exceeds the {max_bytes} byte limit"
        )

    try:
        text = path.read_text(encoding="utf-8")
    except PermissionError:
        raise LoadError(f"Permission denied: {path}") from None
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"Cannot read {path}: {e}") from e

    return path, text, size


def load_document(
    file_path: str,
    max_bytes: int,
    track_duplicates: bool = False,
) -> LoadedDocument:
    """Read and parse a JSON file.

    Args:
        file_path: Absolute or relative path to the file.
        max_bytes: Size limit; larger files are refused before reading.
        track_duplicates: Forwarded to parse_document().

    Returns:
        A LoadedDocument for this request.
    """
    path, text, size = read_text(file_path, max_bytes)
    data = parse_document(text, str(path), track_duplicates)
    logger.debug("Loaded %s (%d bytes)", path, size)
    return LoadedDocument(
        path=str(path),
        text=text,
        data=data,
        size_bytes=size,
    )
