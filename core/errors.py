# =============================================================================
# core/errors.py  -  Error Kinds Raised by the Core
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Defines the exceptions core/ raises when an operation cannot produce a
#   result.  The tools/ layer catches JsonToolError at the tool boundary and
#   turns it into an "Error: ..." text response, so none of these ever
#   reach the MCP transport.
#
# WHAT IS NOT AN ERROR:
#   A path that does not resolve.  resolve() returns the MISSING
#   sentinel (core/paths.py) and the caller reports "not found" with an
#   optional default value.
# =============================================================================


class JsonToolError(Exception):
    """Base class for every error reported back to the agent."""


class LoadError(JsonToolError):
    """The file is missing, unreadable, not a file, or over the size limit."""


class ParseError(JsonToolError):
    """The file content is not well-formed JSON."""


class ExpressionError(JsonToolError):
    """A user-supplied pattern or expression failed to compile or evaluate."""


class TypeMismatch(JsonToolError):
    """The resolved target does not have the shape the operation needs."""


class InvalidArgument(JsonToolError):
    """A parameter value is outside what the operation accepts."""
