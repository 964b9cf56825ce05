# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool wrappers.
#
# ARCHITECTURAL ROLE:
#   tools/ is the "translation layer" between MCP clients and the core
#   JSON logic.  It:
#     1. Loads the file and resolves the path a tool call asks for
#     2. Calls core/ functions (filter, search, sample, transform...)
#     3. Bounds the result and formats it as text (tools/formatting.py)
#     4. Turns core errors into "Error: ..." responses
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT walk JSON trees themselves (that's in core/)
#   - They do NOT keep anything between calls: every call loads its own
#     copy of the document
#
# TOOL CONTRACT QUALITY:
#   The docstring of each tool is what the agent reads to decide WHEN to
#   call it and HOW to write its arguments (paths, expressions, patterns).
# =============================================================================
