# =============================================================================
# core/models.py  -  Data Models (the "nouns" of the system)
# =============================================================================
#
# The JSON document itself is NOT modelled here: it stays as the plain
# Python values json.loads() produces (None, bool, int/float, str, list,
# dict).  These dataclasses describe the records the tools build ABOUT a
# document: search hits, statistics, validation reports.
#
# DESIGN PRINCIPLE - "No Phantom Fields":
#   Every field here ends up in a tool response.  If the agent doesn't
#   need it, it doesn't belong in the model.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Optional


# -----------------------------------------------------------------------------
# SearchHit - one match produced by the pattern searcher
# -----------------------------------------------------------------------------
@dataclass
class SearchHit:
    """A key or value that matched a search pattern."""

    kind: str                          # "key" or "value"
    path: str                          # "users[0].email"
    key: str                           # The object key at that location
    value: Any                         # The (unbounded) value under that key


# -----------------------------------------------------------------------------
# SearchResult - the searcher's output
# -----------------------------------------------------------------------------
# limit_reached means traversal stopped at max_results.  The number of
# matches that were NOT produced is unknown, so no total is ever claimed.
# -----------------------------------------------------------------------------
@dataclass
class SearchResult:
    """Ordered hits plus whether the result cap cut the traversal short."""

    hits: list[SearchHit] = field(default_factory=list)
    limit_reached: bool = False


# -----------------------------------------------------------------------------
# LoadedDocument - a parsed file, alive for one request only
# -----------------------------------------------------------------------------
@dataclass
class LoadedDocument:
    """A JSON file read from disk and parsed."""

    path: str                          # Absolute path
    text: str                          # Raw file content
    data: Any                          # Parsed JSON value
    size_bytes: int                    # Size on disk


# -----------------------------------------------------------------------------
# DocumentStats - what json_stats reports
# -----------------------------------------------------------------------------
@dataclass
class DocumentStats:
    """Size and top-level shape of a document."""

    file_size_bytes: int
    serialized_length: int             # Length of the compact JSON text
    root_type: str                     # "object", "array", "string", ...
    length: Optional[int] = None       # Arrays only
    element_types: list[str] = field(default_factory=list)
    key_count: Optional[int] = None    # Objects only
    top_keys: list[str] = field(default_factory=list)
    key_types: dict[str, str] = field(default_factory=dict)
    sample: Any = None                 # One-level structural sample, on request


# -----------------------------------------------------------------------------
# ValidationReport - what json_validate reports
# -----------------------------------------------------------------------------
@dataclass
class ValidationReport:
    """Outcome of validating a file: parse status plus structural issues."""

    file_path: str
    valid: bool
    error: Optional[str] = None        # Load/parse failure message
    file_size_bytes: int = 0
    max_depth: int = 0
    issues: list[str] = field(default_factory=list)
