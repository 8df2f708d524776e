"""
Create tables and seed reference data.

Usage:
    python -m projectintel.seed            # tables + plans + master data
    python -m projectintel.seed --plans    # plans only
"""
import argparse
import logging

from dotenv import load_dotenv

load_dotenv()

from projectintel.core.config import settings
from projectintel.core.database import create_all_tables
from projectintel.core.logging import configure_logging
from projectintel.features.master_data.service import seed_master_data
from projectintel.features.plans.service import seed_plans


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed project intelligence reference data")
    parser.add_argument("--plans", action="store_true", help="seed subscription plans only")
    parser.add_argument("--master-data", action="store_true", help="seed states and sectors only")
    args = parser.parse_args(argv)

    configure_logging(settings.ENV)
    logger = logging.getLogger("projectintel.seed")

    create_all_tables()
    run_all = not (args.plans or args.master_data)
    if run_all or args.plans:
        seed_plans()
        logger.info("Plans seeded")
    if run_all or args.master_data:
        seed_master_data()
        logger.info("Master data seeded")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
