"""CLI entry point: python -m tapengine.mcp"""

from __future__ import annotations

import logging
import sys


def main() -> None:
    # stdout carries the MCP stdio protocol
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from tapengine.config import EngineConfig
    from tapengine.content import define_game
    from tapengine.mcp.server import create_server

    server = create_server(define_game(), EngineConfig.from_env())
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
