"""Launcher for the Halo web server."""

import logging
import signal
import sys
import time
from pathlib import Path

if __package__ is None or __package__ == "":
    sys.path.insert(0, str(Path(__file__).resolve().parent))

from app_config import AppConfigurationError, ConfigValidationError, load_app_config
from web import (
    HaloWebServer,
    PathTraversalError,
    ServerConfigurationError,
    WebServerConfig,
    build_router,
)


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure logging for the application."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("halo")


def main(argv: list[str] | None = None) -> int:
    """Run the web server until interrupted."""
    args = sys.argv[1:] if argv is None else argv
    logger = setup_logging()

    try:
        app_config = load_app_config(args[0] if args else None)
        server_config = WebServerConfig.from_settings(app_config.server)
        router = build_router(app_config, logger=logging.getLogger("halo.web"))
    except ConfigValidationError as error:
        for item in error.errors:
            logger.error("Invalid configuration: %s", item)
        return 1
    except (AppConfigurationError, ServerConfigurationError) as error:
        logger.error("Configuration error: %s", error)
        return 1
    except PathTraversalError as error:
        logger.error("Resource mapping rejected: %s", error)
        return 1

    logger.info(
        "Loaded %s (work dir: %s)",
        app_config.source_file,
        app_config.halo.work_dir,
    )
    server = HaloWebServer(config=server_config, router=router, logger=logger)

    try:
        server.start()
        logger.info("Press Ctrl+C to stop.")

        shutdown = False

        def handle_signal(signum, frame) -> None:
            del frame
            nonlocal shutdown
            logger.info("Signal %s received, stopping.", signal.Signals(signum).name)
            shutdown = True

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)

        while not shutdown:
            time.sleep(0.2)

    except KeyboardInterrupt:
        logger.info("Stopping by user request.")
    finally:
        server.stop()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
