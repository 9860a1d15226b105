#!/usr/bin/env python3
"""run_pipeline.py

Seller report pipeline script:
- loads sellers, products and purchase records from a JSON snapshot
- computes the ranked seller report with bonuses and saves it as JSON
- saves the seller leaderboard and the per-seller top products as CSV

Usage:
    python run_pipeline.py --data_json sales_data.json --output_dir reports

This script is safe to run on a schedule (cron, GitHub Actions, etc.).
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from sales_report import (
    InvalidInputError,
    SalesStrategies,
    analyze_sales_data,
    calculate_bonus_by_profit,
    calculate_simple_profit,
    calculate_simple_revenue,
    report_to_frame,
    top_products_to_frame,
)

PROJ = Path(__file__).resolve().parent

logger = logging.getLogger(__name__)


def load_sales_data(data_json):
    with open(data_json, encoding='utf-8') as fh:
        data = json.load(fh)
    logger.info('Loaded %s: %d seller(s), %d product(s), %d purchase record(s)', data_json,
                len(data.get('sellers') or []), len(data.get('products') or []),
                len(data.get('purchase_records') or []))
    return data


def build_strategies(explicit_profit=False):
    return SalesStrategies(
        calculate_revenue=calculate_simple_revenue,
        calculate_bonus=calculate_bonus_by_profit,
        calculate_profit=calculate_simple_profit if explicit_profit else None,
    )


def save_report(report, output_dir):
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    with open(output_dir / 'seller_report.json', 'w', encoding='utf-8') as fh:
        json.dump(report, fh, ensure_ascii=False, indent=2)
    print('Saved seller_report.json')

    report_to_frame(report).to_csv(output_dir / 'seller_leaderboard.csv', index=False)
    print('Saved seller_leaderboard.csv')

    top_products_to_frame(report).to_csv(output_dir / 'seller_top_products.csv', index=False)
    print('Saved seller_top_products.csv')


def main(data_json, output_dir=PROJ, top_products_key='quantity', top_products_limit=10,
         explicit_profit=False):
    data = load_sales_data(data_json)
    config = {
        'top_products_key': top_products_key,
        'top_products_limit': top_products_limit,
    }
    report = analyze_sales_data(data, build_strategies(explicit_profit), config)
    save_report(report, output_dir)
    return report


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--data_json', default=str(PROJ / 'sales_data.json'))
    parser.add_argument('--output_dir', default=str(PROJ))
    parser.add_argument('--top_products_key', choices=['quantity', 'revenue'], default='quantity')
    parser.add_argument('--top_products_limit', type=int, default=10)
    parser.add_argument('--explicit_profit', action='store_true',
                        help='compute profit with the profit strategy instead of revenue minus cost')
    parser.add_argument('--log_level', default='INFO')
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    try:
        main(args.data_json, args.output_dir, args.top_products_key, args.top_products_limit,
             args.explicit_profit)
    except InvalidInputError as e:
        print('Invalid input:', e, file=sys.stderr)
        sys.exit(2)
