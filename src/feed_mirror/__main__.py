"""Entry point for Feed Mirror: python -m feed_mirror [--once]"""

import logging
import sys

import uvicorn

from feed_mirror.api import build_http_client, create_app
from feed_mirror.config import Settings
from feed_mirror.database import SqliteStore
from feed_mirror.errors import MirrorError
from feed_mirror.importer import Importer

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quiet noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def run_once(settings: Settings) -> int:
    """Run a single import. Returns a process exit code."""
    store = SqliteStore(settings.db_path, settings.uploads_dir, settings.uploads_url)
    store.connect()
    try:
        with build_http_client(settings) as client:
            importer = Importer(
                store,
                client,
                source_url=settings.source_url,
                site_timezone=settings.timezone,
            )
            summary = importer.run()
    except MirrorError as e:
        logging.getLogger("feed_mirror").error("Import failed: %s", e)
        return 1
    finally:
        store.close()

    print(summary.as_dict())
    return 0


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    try:
        settings = Settings.from_env()
    except MirrorError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    if "--once" in argv:
        return run_once(settings)

    uvicorn.run(create_app(settings), host=DEFAULT_HOST, port=DEFAULT_PORT)
    return 0


if __name__ == "__main__":
    sys.exit(main())
