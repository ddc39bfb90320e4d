# start_app.py
"""Run database migrations and launch the API server."""

from __future__ import annotations

import argparse
import os
import subprocess
import sys

import uvicorn
from dotenv import load_dotenv

import config


def main(argv: list[str] | None = None) -> None:
    """Load settings, optionally apply migrations, then start the API."""

    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--skip-db-migrations",
        action="store_true",
        help="Start without running Alembic migrations",
    )
    parser.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    args = parser.parse_args(argv)

    load_dotenv()  # load environment variables from a .env file

    env_flag = os.getenv("SKIP_DB_MIGRATIONS")
    skip = args.skip_db_migrations or (
        env_flag and env_flag.lower() not in {"0", "false"}
    )

    if not skip:
        try:
            subprocess.run(
                [
                    sys.executable,
                    "-m",
                    "alembic",
                    "-c",
                    "api/alembic.ini",
                    "upgrade",
                    "head",
                ],
                check=True,
                capture_output=True,
                text=True,
            )
        except subprocess.CalledProcessError as exc:
            if exc.stdout:
                sys.stdout.write(exc.stdout)
            if exc.stderr:
                sys.stderr.write(exc.stderr)
            print(
                f"database migration failed (exit code {exc.returncode})",
                file=sys.stderr,
            )
            raise SystemExit(exc.returncode)

    settings = config.get_settings()  # ensure settings are initialized with any override

    uvicorn.run(
        "api.app.main:app",
        host=args.host,
        port=args.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
