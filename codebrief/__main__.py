"""One-shot command line run: `python -m codebrief [--test-webhook]`."""

import argparse
import asyncio
import logging
import sys

from codebrief.main import configure_logging
from codebrief.services.pipeline import run_daily_digest
from codebrief.services.slack import send_test_message

logger = logging.getLogger("codebrief")


def main(argv: list[str] | None = None) -> int:
    """Run the daily digest once and return the process exit code."""
    parser = argparse.ArgumentParser(
        prog="codebrief", description="Collect, rank, and deliver the daily digest."
    )
    parser.add_argument(
        "--test-webhook",
        action="store_true",
        help="post a setup message to the Slack webhook and exit",
    )
    args = parser.parse_args(argv)

    configure_logging()

    if args.test_webhook:
        return 0 if asyncio.run(send_test_message()) else 1

    try:
        result = asyncio.run(run_daily_digest())
    except Exception:
        logger.exception("Digest generation failed")
        return 1
    logger.info("Digest run finished: %s", result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
