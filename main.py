"""Entry point for the listing automation.

Usage:
    python main.py                  # poll forever, running a scan every 2 hours
    python main.py --once           # run a single scan now
    python main.py --build-config   # write data/store_config.yaml from the live store
"""

import argparse
import time
from pathlib import Path

from listing_automation.config_builder import bootstrap_store_config
from listing_automation.constants import POLL_SLEEP_SECONDS, STORE_CONFIG_PATH
from listing_automation.database import init_db
from listing_automation.scanner import run_automation, run_automation_if_due
from listing_automation.shopify_client import ShopifyClient
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def poll_forever():
    logger.info("Starting listing automation loop...")

    while True:
        try:
            run_automation_if_due()
        except Exception as e:
            logger.error(f"Error in main loop: {e}")

        time.sleep(POLL_SLEEP_SECONDS)


def main():
    parser = argparse.ArgumentParser(description="Automated product listing pipeline")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--once", action="store_true", help="Run a single scan and exit")
    group.add_argument(
        "--build-config",
        nargs="?",
        const=str(STORE_CONFIG_PATH),
        metavar="PATH",
        help="Build the store config from the live Shopify catalog",
    )
    args = parser.parse_args()

    if args.build_config:
        config = bootstrap_store_config(ShopifyClient(), Path(args.build_config))
        print(f"Wrote {len(config.collections)} collections to {args.build_config}")
        return

    init_db()

    if args.once:
        run = run_automation()
        print(
            f"Run {run.run_id} {run.status.value}: {run.products_published} published, "
            f"{run.products_quarantined} for review, {run.products_rejected} rejected, "
            f"{run.products_failed} failed"
        )
        return

    poll_forever()


if __name__ == "__main__":
    main()
