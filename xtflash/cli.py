"""
Console entry point for Android Flash Tool XT.

Usage:
    xtflash                 # interactive menu
    python -m xtflash

Configuration is read once from xtflash.toml (or the file named by
XTFLASH_CONFIG) and XTFLASH_* environment variables.
"""

import logging
import sys
from typing import Callable, Optional

from .config import Settings, load_settings
from .core.database import init_db
from .core.exceptions import DatabaseConnectionError
from .core.logging import setup_logging
from .services.action_logger import ActionLogger
from .session import MenuSession

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DB_UNAVAILABLE = 1


def main(
    settings: Optional[Settings] = None,
    prompt: Callable[[str], str] = input,
    echo: Callable[[str], None] = print,
) -> int:
    """Run one operator session and return the process exit code"""
    settings = settings or load_settings()
    setup_logging(settings)

    try:
        db = init_db(settings.database)
    except DatabaseConnectionError as e:
        echo(f"❌ {e}")
        logger.error(str(e))
        return EXIT_DB_UNAVAILABLE

    try:
        session = MenuSession(settings, ActionLogger(db), prompt=prompt, echo=echo)
        session.run()
    except (KeyboardInterrupt, EOFError):
        echo("\nExiting.")
    except Exception as e:
        logger.exception("Unrecoverable error")
        echo(f"❌ Unrecoverable error: {e}")
    finally:
        db.close()

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
