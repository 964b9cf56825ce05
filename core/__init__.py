# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains ALL JSON logic: loading, path resolution, sampling,
# bounding, search, selection and validation.
#
# CRITICAL ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP or any protocol code.  Every
#   module here is pure Python over the values json.loads() returns, so it
#   can be imported and tested without a server.
#
# THE VALUE MODEL:
#   A document is None | bool | int | float | str | list | dict.  Every
#   traversal handles each of those cases explicitly, and no function
#   modifies the value it is given.
# =============================================================================
