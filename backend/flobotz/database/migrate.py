"""Apply alembic migrations: ``python -m flobotz.database.migrate``"""
import sys
import time
from pathlib import Path

from alembic import command
from alembic.config import Config

from flobotz.core.config import settings
from flobotz.core.logging import configure_logging, db_logger

ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"


def run_migrations(revision: str = "head") -> None:
    config = Config(str(ALEMBIC_INI))
    start_time = time.time()
    db_logger.info("Migration started", revision=revision)
    command.upgrade(config, revision)
    db_logger.info("Migration completed", revision=revision, duration=time.time() - start_time)


def main() -> int:
    configure_logging(settings.log_level, settings.log_format)
    try:
        run_migrations()
    except Exception as e:
        db_logger.error("Migration failed", error=str(e), exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
