"""Entry point for the design-search MCP server."""

from design_search.server import create_server


def main() -> None:
    """Run the design-search MCP server."""
    server = create_server()
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
