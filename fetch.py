#!/usr/bin/env python3
"""Fetch inspections for every known establishment and write them as JSON."""

import argparse
import json
import logging
import sys

import config

logging.basicConfig(level=logging.INFO, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)

VIEWS = ("raw", "all", "latest")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--view",
        choices=VIEWS,
        default="latest",
        help="raw violation rows, every visit aggregated, or only the latest visit",
    )
    parser.add_argument("--output", "-o", help="file to write (default: stdout)")
    return parser.parse_args(argv)


def main(argv=None, client=None):
    from database import EstablishmentStore
    from inspections.aggregate import aggregate_all, aggregate_latest
    from inspections.errors import StoreUnavailable
    from inspections.fetcher import InspectionFetcher, make_client

    args = parse_args(argv)
    store = EstablishmentStore(config.DB_PATH)

    # Step 1: Cache the establishment set before any fetch starts
    logger.info("=== Loading establishments ===")
    try:
        count = store.populate(config.ESTABLISHMENTS_FILE)
    except StoreUnavailable as e:
        logger.error(f"Establishment store unavailable: {e}")
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"Cannot read establishments file {config.ESTABLISHMENTS_FILE}: {e}")
        return 1
    logger.info(f"Establishments: {count} upserted")

    # Step 2: Query the inspections API for each of them
    logger.info("=== Fetching inspections ===")
    client = client or make_client(config.INSPECTIONS_APP_TOKEN, config.REQUEST_TIMEOUT)
    fetcher = InspectionFetcher(
        client=client,
        store=store,
        base_url=config.INSPECTIONS_BASE_URL,
        relative_path=config.INSPECTIONS_RELATIVE_PATH,
        start_date=config.INSPECTIONS_START_DATE,
        max_workers=config.FETCH_WORKERS,
    )
    try:
        report = fetcher.fetch_all_report()
    except StoreUnavailable as e:
        logger.error(f"Establishment store unavailable: {e}")
        return 1
    finally:
        client.close()

    for failure in report.failures:
        logger.warning(f"  {failure.program_identifier} ({failure.city}): {failure.error} {failure.detail}")

    # Step 3: Shape and write
    if args.view == "all":
        records = aggregate_all(report.rows)
    elif args.view == "latest":
        records = aggregate_latest(report.rows)
    else:
        records = report.rows
    payload = json.dumps([r.model_dump(mode="json") for r in records], indent=2)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(payload)
    else:
        sys.stdout.write(payload + "\n")

    logger.info(
        f"=== Complete. {len(records)} records, "
        f"{report.attempted - len(report.failures)}/{report.attempted} establishments ==="
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
