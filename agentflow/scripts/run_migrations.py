#!/usr/bin/env python3
"""Apply or inspect agentflow database migrations."""

import argparse
from pathlib import Path

from alembic import command
from alembic.config import Config

ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"


def _config() -> Config:
    return Config(str(ALEMBIC_INI))


def upgrade(revision: str = "head") -> None:
    command.upgrade(_config(), revision)
    print(f"Migrations applied up to {revision}")


def downgrade(revision: str = "-1") -> None:
    command.downgrade(_config(), revision)
    print(f"Downgraded to {revision}")


def current() -> None:
    command.current(_config(), verbose=True)


def history() -> None:
    command.history(_config(), verbose=True)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run database migrations")
    parser.add_argument(
        "command",
        choices=["upgrade", "downgrade", "current", "history"],
        default="upgrade",
        nargs="?",
        help="Migration command to run",
    )
    parser.add_argument("--revision", default=None, help="Target revision")
    args = parser.parse_args()

    if args.command == "upgrade":
        upgrade(args.revision or "head")
    elif args.command == "downgrade":
        downgrade(args.revision or "-1")
    elif args.command == "current":
        current()
    else:
        history()


if __name__ == "__main__":
    main()
