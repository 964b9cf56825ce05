# =============================================================================
# main.py  -  Entry Point for the JSON Tools MCP Server
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py          (or the installed `json-tools-mcp` script)
#
# WHAT HAPPENS:
#   1. Loads environment variables from a .env file, if there is one
#      (JSON_TOOLS_MAX_OUTPUT, JSON_TOOLS_LOG_LEVEL, ...; see core/settings.py)
#   2. Imports the FastMCP server, which builds its Settings from them
#   3. Serves the json_* tools over stdio until the client disconnects
#
# CONNECTING AN AGENT:
#   Point any MCP client at this command with stdio transport, e.g.
#       {"command": "uv", "args": ["run", "python", "/path/to/main.py"]}
#   The client discovers the tools (json_read, json_stats, json_query,
#   json_extract, json_slice, json_filter, json_search, json_transform,
#   json_validate) automatically.
# =============================================================================

from dotenv import load_dotenv

# Load .env BEFORE importing the server: Settings are read at import time.
load_dotenv()

from tools.mcp_server import mcp  # noqa: E402


def main() -> None:
    """Run the JSON tools server over stdio."""
    mcp.run()


# =============================================================================
# Script entry point
# =============================================================================
if __name__ == "__main__":
    main()
