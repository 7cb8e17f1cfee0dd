from __future__ import annotations

import argparse
import logging
from pathlib import Path

import uvicorn

from .app import create_app
from .settings.store import load_settings


def main() -> None:
    parser = argparse.ArgumentParser(prog="filenotary", description="Run the file notary web application")
    parser.add_argument("--config", type=Path, help="Path to config.json (default: $FILENOTARY_CONFIG or data/config.json)")
    parser.add_argument("--host", help="Override the configured bind host")
    parser.add_argument("--port", type=int, help="Override the configured port")
    args = parser.parse_args()

    base_dir = Path.cwd()
    settings = load_settings(args.config, repo_root=base_dir)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    app = create_app(settings, base_dir=base_dir)
    uvicorn.run(app, host=args.host or settings.host, port=args.port or settings.port)


if __name__ == "__main__":
    main()
