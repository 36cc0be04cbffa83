"""
Run the subscription auto-order batch once and print its JSON summary.

Usage:
    python scripts/run_auto_order.py [--date YYYY-MM-DD] [--expire]

--expire deactivates subscriptions that ended before the run date first.
Exit status is 1 when the run itself fails; per-pair errors are only reported.
"""

import argparse
import json
import logging
import os
import sys
from datetime import date

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from appetyte.app import configure_logging  # noqa: E402
from appetyte.core.database import db_manager  # noqa: E402
from appetyte.services.auto_order_service import AutoOrderService  # noqa: E402
from appetyte.services.subscription_service import SubscriptionService  # noqa: E402

logger = logging.getLogger("run_auto_order")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Place today's subscription orders")
    parser.add_argument("--date", type=date.fromisoformat, default=None,
                        help="Run date (YYYY-MM-DD), defaults to today in the service timezone")
    parser.add_argument("--expire", action="store_true",
                        help="Deactivate subscriptions that ended before the run date first")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging()
    try:
        if args.expire:
            SubscriptionService(db_manager).expire_subscriptions(args.date)
        summary = AutoOrderService(db_manager).run(args.date)
    except Exception as e:
        logger.exception("Auto-order run failed")
        print(json.dumps({"error": str(e) or "Unknown error occurred"}))
        return 1
    finally:
        db_manager.close()

    print(json.dumps(summary.to_response(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
