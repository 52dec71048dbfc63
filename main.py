import sys
from typing import Optional, Sequence

import uvicorn

from lbdemo.config import USAGE, parse_port
from lbdemo.logging_setup import get_logger
from lbdemo.main import app

logger = get_logger(__name__)


def run(argv: Optional[Sequence[str]] = None) -> None:
    argv = sys.argv if argv is None else argv
    if len(argv) != 2:
        print(USAGE)
        sys.exit(1)

    # Anything that is not a port number falls back to 8080
    port = parse_port(argv[1])
    host = "0.0.0.0"  # Listen on all interfaces for Docker
    logger.info("start!! listening on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
