"""
Profile Review Worker
=====================

Background worker that reviews user-submitted profile photos and bios,
rejects or approves photos, suspends accounts for severe violations and
escalates bio violations to human moderators.

Usage::

    profilereview                 # poll the review queue continuously
    profilereview --once          # drain the current queue once and exit
    profilereview --user-id 42    # run a full review for one user and exit
"""

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from profilereview.configuration.app_configuration import CONFIG_PATH, AppConfig
from profilereview.database.database import Database
from profilereview.moderation.moderation_client import ModerationAPIClient
from profilereview.moderation.notification_dispatcher import NotificationDispatcher
from profilereview.moderation.profile_reconciler import ProfileStateReconciler
from profilereview.realtime.transport import RealtimeTransport, create_transport
from profilereview.scheduler.review_scheduler import ReviewScheduler
from profilereview.services.bio_review_service import BioReviewService
from profilereview.services.photo_review_service import PhotoReviewService
from profilereview.services.user_review_service import UserReviewService
from profilereview.storage.blob_store import LocalBlobStore
from profilereview.util.logger import get_logger, handle_exception, set_console_level

logger = get_logger("main")


@dataclass
class Runtime:
    """Everything the worker needs, wired together."""
    database: Database
    client: ModerationAPIClient
    transport: RealtimeTransport
    scheduler: ReviewScheduler


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="profilereview", description="Automated profile content review worker")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--user-id", type=int, help="Run a full review for one user and exit")
    mode.add_argument("--once", action="store_true", help="Process the pending queue once and exit")
    parser.add_argument("--config", type=Path, default=CONFIG_PATH, help="Path to app_config.yml")
    parser.add_argument("--debug", action="store_true", help="Log debug output to the console")
    return parser.parse_args(argv)


def load_environment() -> None:
    """Load ``.env`` from the working directory and warn about missing credentials."""
    load_dotenv(dotenv_path=Path.cwd() / ".env")
    for name in ("SIGHTENGINE_API_USER", "SIGHTENGINE_API_SECRET"):
        if not os.getenv(name):
            logger.warning("'%s' environment variable not set; image moderation requests will fail.", name)


def build_runtime(config: AppConfig) -> Runtime:
    """Create the database coordinator and every service from configuration."""
    database = Database(db_path=config.database_path)
    connections = database.connections

    settings = config.moderation
    client = ModerationAPIClient(settings)
    transport = create_transport(config.redis_url)
    dispatcher = NotificationDispatcher(connections, transport)

    photo_service = PhotoReviewService(
        connections=connections,
        blob_store=LocalBlobStore(config.blob_root),
        client=client,
        reconciler=ProfileStateReconciler(connections),
        dispatcher=dispatcher,
        suspension_reason=config.suspension_reason,
        temp_root=config.temp_dir,
    )
    bio_service = BioReviewService(connections, client, enabled=settings.bio_moderation_enabled)
    review_service = UserReviewService(connections, photo_service, bio_service)

    scheduler = ReviewScheduler(
        connections,
        review_service,
        page_size=config.page_size,
        interval=config.poll_interval_seconds,
    )
    return Runtime(database=database, client=client, transport=transport, scheduler=scheduler)


async def shutdown_runtime(runtime: Runtime) -> None:
    """Stop the scheduler and release every connection."""
    try:
        await runtime.scheduler.shutdown()
    except Exception as exc:
        logger.exception("Error during scheduler shutdown: %s", exc)

    try:
        await runtime.transport.close()
    except Exception as exc:
        logger.exception("Error while closing realtime transport: %s", exc)

    runtime.client.close()
    await runtime.database.shutdown()
    logger.info("Shutdown complete.")


async def async_main(args: argparse.Namespace) -> int:
    """Bootstrap the worker and run the requested mode, returning an exit code."""
    load_environment()
    config = AppConfig(args.config)
    runtime = build_runtime(config)

    if not await runtime.database.initialize():
        logger.critical("Failed to initialize database at %s", config.database_path)
        return 1

    exit_code = 0
    try:
        if args.user_id is not None:
            outcome = await runtime.scheduler.review_user(args.user_id)
            if outcome is None:
                exit_code = 1
        elif args.once:
            summary = await runtime.scheduler.process_batch()
            logger.info("Batch finished: %s", summary)
            exit_code = 1 if summary.failed else 0
        else:
            runtime.scheduler.start()
            await runtime.scheduler.wait()
    except asyncio.CancelledError:
        logger.info("Review worker cancelled; proceeding to shutdown")
    except Exception as exc:
        logger.critical("Review worker runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(runtime)

    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    """Entrypoint that orchestrates the async runtime and returns the process code."""
    sys.excepthook = handle_exception
    args = parse_args(argv)
    if args.debug:
        set_console_level(logging.DEBUG)

    logger.info("Starting profile review worker…")
    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the worker: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
