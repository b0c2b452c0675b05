"""Entry point for the GitTrack service.

Run with:
  python -m gittrack_server          # Daemon: Discord client + webhook server
  python -m gittrack_server serve    # Webhook server only
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv


def main() -> None:
    """Main entry point with subcommand support."""
    # Explicit path resolution: GITTRACK_ENV_FILE > cwd search
    env_file = os.getenv("GITTRACK_ENV_FILE")
    if env_file and Path(env_file).exists():
        load_dotenv(env_file)
    else:
        load_dotenv()

    if len(sys.argv) > 1 and sys.argv[1] == "serve":
        from gittrack_core.config import GitTrackConfig

        from .rest_server import run_server

        config = GitTrackConfig.from_env()
        run_server(config.server.host, config.server.port)
    else:
        from .daemon import run_daemon

        run_daemon()


if __name__ == "__main__":
    main()
