#!/usr/bin/env python
# run_forecast_job.py - Script to run the forecasting job

import sys
import logging
import argparse

from tabulate import tabulate

from inventory_forecasting.batch.forecast_job import run_forecast_job
from inventory_forecasting.db import create_all_tables
from inventory_forecasting.logging_setup import logger as log_manager, get_logger
from inventory_forecasting.utils import convert_to_date


def print_results(batch):
    """Print the skipped banner and the recommendation table."""
    if batch.skipped:
        print("\nSkipped SKUs:")
        print(tabulate(sorted(batch.skipped.items()), headers=['SKU', 'Reason']))

    table_data = []
    for sku, result in sorted(batch.results.items(), key=lambda item: (item[1].urgency.rank, item[0])):
        table_data.append([
            sku,
            f"{result.adjusted_velocity:.2f}",
            result.safety_stock,
            result.reorder_point,
            result.recommended_order_qty,
            result.recommended_fba_qty,
            str(result.urgency),
            result.purchase_by_date or '-',
            result.stockout_date or '-',
            f"{result.confidence:.2f}",
        ])

    print("\nRecommendations:")
    print(tabulate(table_data, headers=[
        'SKU', 'Velocity', 'Safety', 'ROP', 'Order', 'To FBA', 'Urgency',
        'Purchase By', 'Stockout', 'Confidence'
    ]))
    print(f"\nUnits to ship to FBA today: {batch.replenishment.ship_today_total}")


def main():
    """Run the forecasting job."""
    parser = argparse.ArgumentParser(description='Run the inventory forecasting job')
    parser.add_argument('--as-of', help='Forecast date (YYYY-MM-DD), defaults to today')
    parser.add_argument('--sku', '-s', action='append', help='Forecast only this SKU (repeatable)')
    parser.add_argument('--no-store', action='store_true', help='Do not save recommendations')
    parser.add_argument('--init-db', action='store_true', help='Create missing tables first')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')

    args = parser.parse_args()

    log_manager.set_level(logging.DEBUG if args.verbose else logging.INFO)
    logger = get_logger('forecast_job_runner')

    as_of = convert_to_date(args.as_of) if args.as_of else None

    if args.init_db:
        create_all_tables()

    logger.info("Starting forecast job runner...")
    logger.info(f"SKU filter: {', '.join(args.sku) if args.sku else 'All active SKUs'}")

    results = run_forecast_job(
        as_of=as_of,
        skus=args.sku,
        store_results=False if args.no_store else None
    )

    if not results.get('success', False):
        logger.error(f"Forecast job failed: {results.get('error', 'Unknown error')}")
        return 1

    forecast = results['processes']['forecast']
    logger.info("Forecast job completed successfully")
    logger.info(f"Duration: {results.get('duration')}")
    logger.info(f"Forecasted SKUs: {forecast['forecasted_skus']}, skipped: {forecast['skipped_skus']}")

    print_results(forecast['batch'])
    return 0


if __name__ == "__main__":
    sys.exit(main())
