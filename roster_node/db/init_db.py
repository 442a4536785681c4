from __future__ import annotations

import logging
import os
from pathlib import Path

from sqlalchemy import inspect as sa_inspect, text
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

from roster_node.db.tables import PlayerRow, PlayerSnapshotRow  # noqa: F401  (registers metadata)

logger = logging.getLogger(__name__)


def tables_to_reset() -> list[str]:
    return [
        "player_snapshots",
        "players",
        "alembic_version",
    ]


# ---------------------------------------------------------------------------
# Alembic migrations directory resolution
# ---------------------------------------------------------------------------

def _find_alembic_dir() -> Path | None:
    """Locate the Alembic migrations directory.

    Checks (in order):
      1. ``ALEMBIC_DIR`` env var (explicit override)
      2. Repo-root layout: ``<repo>/roster_node/db/init_db.py`` → ``<repo>/alembic/``

    Returns ``None`` when no valid migrations directory is found (e.g. an
    installed wheel without ``alembic/``). Callers fall back to
    ``SQLModel.metadata.create_all()`` in that case.
    """
    def _is_valid(p: Path) -> bool:
        return p.is_dir() and (p / "env.py").exists() and (p / "versions").is_dir()

    env_dir = os.getenv("ALEMBIC_DIR")
    if env_dir and _is_valid(Path(env_dir)):
        return Path(env_dir)

    repo_dir = Path(__file__).resolve().parent.parent.parent / "alembic"
    if _is_valid(repo_dir):
        return repo_dir

    return None


def _run_alembic_upgrade(engine: Engine, alembic_dir: Path) -> None:
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config()
    alembic_cfg.set_main_option("script_location", str(alembic_dir))
    alembic_cfg.set_main_option(
        "sqlalchemy.url", engine.url.render_as_string(hide_password=False),
    )
    command.upgrade(alembic_cfg, "head")


def migrate(engine: Engine) -> None:
    """Bring the schema to head. Safe to run on every boot; never drops data."""
    alembic_dir = _find_alembic_dir()
    if alembic_dir is None:
        logger.info("No Alembic migrations directory found, using SQLModel create_all")
        SQLModel.metadata.create_all(engine)
        return

    logger.info("Running Alembic migrations from %s", alembic_dir)
    _run_alembic_upgrade(engine, alembic_dir)
    logger.info("Database migration complete")


def auto_migrate(engine: Engine) -> None:
    """Migrate only when the schema is missing or behind.

    Skips the Alembic run entirely when `players` already exists and no
    migrations directory ships with the install.
    """
    inspector = sa_inspect(engine)
    if inspector.has_table("players") and _find_alembic_dir() is None:
        return
    migrate(engine)


def reset_db(engine: Engine) -> None:
    """Drop all tables and recreate from scratch. Destroys all data."""
    logger.warning("Dropping all roster tables")
    with engine.begin() as conn:
        for table in tables_to_reset():
            conn.execute(text(f"DROP TABLE IF EXISTS {table} CASCADE"))

    migrate(engine)
    logger.info("Database reset complete")


if __name__ == "__main__":
    import sys

    from roster_node.config.runtime import RuntimeSettings
    from roster_node.db.session import build_engine

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        force=True,
    )

    engine = build_engine(RuntimeSettings.from_env())
    try:
        if "--reset" in sys.argv:
            reset_db(engine)
        else:
            migrate(engine)
    finally:
        engine.dispose()

    sys.exit(0)
