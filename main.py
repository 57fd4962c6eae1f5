"""
SportsPanel entry point
"""
import argparse
import asyncio
import sys
from loguru import logger

from scheduler.scheduler import create_scheduler


# Logging
logger.remove()
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="INFO"
)
logger.add(
    "logs/sportspanel_{time:YYYY-MM-DD}.log",
    rotation="1 day",
    retention="30 days",
    level="DEBUG"
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="SportsPanel club management")
    parser.add_argument(
        "--mode",
        choices=["serve", "scheduler", "process-batches", "refresh-forms"],
        default="serve",
        help="Run mode"
    )
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


async def run_scheduler():
    """Run the background jobs without the API"""
    scheduler = create_scheduler()
    scheduler.start()

    logger.info("Running in scheduler mode... (Ctrl+C to stop)")

    try:
        while True:
            await asyncio.sleep(60)
            logger.debug(f"Scheduler status: {scheduler.get_status()}")
    except (KeyboardInterrupt, asyncio.CancelledError):
        scheduler.stop()
        logger.info("Scheduler stopped")


async def process_batches() -> dict:
    """Dispatch pending email batches once"""
    from app.club.communications import email_batch_service

    summary = await email_batch_service.process_all_pending()
    logger.info(f"Batch dispatch: {summary}")
    return summary


def refresh_forms() -> int:
    from app.club.registrations import registration_service

    changed = registration_service.refresh_statuses()
    logger.info(f"Registration forms refreshed: {changed} changed")
    return changed


def main(argv=None):
    args = parse_args(argv)

    if args.mode == "serve":
        import uvicorn
        uvicorn.run("app.server:app", host=args.host, port=args.port, log_level="info")

    elif args.mode == "scheduler":
        asyncio.run(run_scheduler())

    elif args.mode == "process-batches":
        summary = asyncio.run(process_batches())
        if summary.get("errors"):
            sys.exit(1)

    elif args.mode == "refresh-forms":
        refresh_forms()


if __name__ == "__main__":
    main()
