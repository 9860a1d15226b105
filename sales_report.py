"""sales_report.py

Seller sales report (configurable):
- Per-line components:
    * Revenue strategy: sale price x quantity, less the line discount (pluggable).
    * Profit strategy: optional; defaults to revenue minus product cost basis.
- Per-seller components:
    * Sales count, revenue and profit totals across all purchase records.
    * Top products by quantity (or by revenue), truncated to the top 10.
    * Bonus by profit rank: 15% for the leader, 10% for 2nd/3rd, 5% for the
      rest, nothing for the last seller.
- The module exposes:
    * analyze_sales_data(data, options)     -> ranked per-seller report (list of dicts)
    * calculate_simple_revenue(item, prod)  -> default revenue strategy
    * calculate_simple_profit(item, prod)   -> explicit profit strategy
    * calculate_bonus_by_profit(i, n, stat) -> default bonus strategy
    * report_to_frame(report)               -> leaderboard DataFrame
    * recommended_config()                  -> default config dict (for tuning)
"""

from dataclasses import dataclass, field
from functools import partial
import logging
import math
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

# Default configuration (tune these values to match a real bonus plan)
DEFAULT_CONFIG = {
    # Bonus by profit rank
    "bonus_rates": {
        "top": 0.15,                          # rank 0
        "runner_up": 0.10,                    # ranks 1 and 2
        "middle": 0.05,                       # everyone else except the last
        "last": 0.0,                          # rank total-1
    },
    # Top products
    "top_products_key": "quantity",           # 'quantity' or 'revenue'
    "top_products_limit": 10,
    "track_product_revenue": True,            # keep per-SKU revenue in the tally
    # Output
    "decimals": 2,
}

TOP_PRODUCTS_KEYS = ("quantity", "revenue")


class InvalidInputError(ValueError):
    """Raised when the input data, the strategies or the config cannot be used."""


def recommended_config():
    cfg = DEFAULT_CONFIG.copy()
    cfg["bonus_rates"] = dict(DEFAULT_CONFIG["bonus_rates"])
    return cfg


def validate_config(config=None):
    """Merge a partial config over the defaults and check it.
    Returns the merged config dict.
    """
    cfg = recommended_config()
    if config:
        if "bonus_rates" in config and not isinstance(config["bonus_rates"], Mapping):
            raise InvalidInputError(f"bonus_rates must be a mapping, got {config['bonus_rates']!r}")
        cfg.update(config)
        if "bonus_rates" in config:
            cfg["bonus_rates"] = {**DEFAULT_CONFIG["bonus_rates"], **config["bonus_rates"]}

    key = cfg["top_products_key"]
    if key not in TOP_PRODUCTS_KEYS:
        raise InvalidInputError(
            f"top_products_key must be one of {TOP_PRODUCTS_KEYS}, got {key!r}")
    if key == "revenue" and not cfg["track_product_revenue"]:
        raise InvalidInputError("Sorting top products by revenue requires track_product_revenue")
    limit = cfg["top_products_limit"]
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidInputError(f"top_products_limit must be a positive integer, got {limit!r}")
    decimals = cfg["decimals"]
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise InvalidInputError(f"decimals must be a non-negative integer, got {decimals!r}")
    for tier, rate in cfg["bonus_rates"].items():
        if isinstance(rate, bool) or not isinstance(rate, (int, float)):
            raise InvalidInputError(f"bonus rate {tier!r} must be a number, got {rate!r}")
    return cfg


# ------------------------------------------------------------
# Strategies
# ------------------------------------------------------------

def _to_number(value):
    """Coerce a raw input value to float; None when missing or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def normalize_discount(discount) -> float:
    number = _to_number(discount)
    return number if number is not None else 0.0


def calculate_simple_revenue(item, product=None):
    """Revenue for one line item: sale_price * quantity * (1 - discount / 100).
    A missing, zero or invalid sale_price or quantity yields 0.
    """
    sale_price = _to_number(item.get("sale_price"))
    quantity = _to_number(item.get("quantity"))
    if not sale_price or not quantity:
        return 0.0
    discount = normalize_discount(item.get("discount"))
    return sale_price * quantity * (1 - discount / 100)


def calculate_simple_profit(item, product):
    """Profit for one line item: revenue less purchase_price * quantity."""
    return calculate_simple_revenue(item, product) - _line_cost(item, product)


def calculate_bonus_by_profit(index, total, seller, config=None):
    """Bonus from the seller's position in the profit ranking.
    index is zero-based; the rank-0 check runs first, so a lone seller gets the top rate.
    """
    rates = (DEFAULT_CONFIG if config is None else config)["bonus_rates"]
    if index == 0:
        rate = rates["top"]
    elif index in (1, 2):
        rate = rates["runner_up"]
    elif index < total - 1:
        rate = rates["middle"]
    else:
        rate = rates["last"]
    return seller.profit * rate


def _line_cost(item, product):
    purchase_price = _to_number(product.get("purchase_price")) or 0.0
    quantity = _to_number(item.get("quantity")) or 0.0
    return purchase_price * quantity


@dataclass(frozen=True)
class SalesStrategies:
    """Pluggable per-line revenue/profit and per-seller bonus calculations."""
    calculate_revenue: Callable
    calculate_bonus: Callable
    calculate_profit: Optional[Callable] = None

    @classmethod
    def from_options(cls, options):
        if options is None:
            raise InvalidInputError("options are required")
        if isinstance(options, cls):
            strategies = options
        elif isinstance(options, Mapping):
            strategies = cls(
                calculate_revenue=options.get("calculate_revenue"),
                calculate_bonus=options.get("calculate_bonus"),
                calculate_profit=options.get("calculate_profit"),
            )
        else:
            raise InvalidInputError(
                f"options must be SalesStrategies or a mapping, got {type(options).__name__}")

        if not callable(strategies.calculate_revenue) or not callable(strategies.calculate_bonus):
            raise InvalidInputError("options must provide callable calculate_revenue and calculate_bonus")
        if strategies.calculate_profit is not None and not callable(strategies.calculate_profit):
            raise InvalidInputError("calculate_profit must be callable when given")
        return strategies


DEFAULT_STRATEGIES = SalesStrategies(
    calculate_revenue=calculate_simple_revenue,
    calculate_bonus=calculate_bonus_by_profit,
)


# ------------------------------------------------------------
# Per-seller state
# ------------------------------------------------------------

@dataclass
class ProductTally:
    sku: str
    name: Optional[str] = None
    quantity: float = 0
    revenue: float = 0.0


@dataclass
class SellerStat:
    seller_id: str
    name: str
    sales_count: int = 0
    revenue: float = 0.0
    profit: float = 0.0
    top_products: Dict[str, ProductTally] = field(default_factory=dict)
    bonus: float = 0.0


# ------------------------------------------------------------
# Pipeline stages
# ------------------------------------------------------------

def index_sellers_and_products(sellers, products) -> Tuple[Dict, Dict]:
    """Build seller-id -> seller and sku -> product lookups."""
    if not sellers:
        raise InvalidInputError("sellers must be a non-empty collection")
    if not products:
        raise InvalidInputError("products must be a non-empty collection")
    sellers_by_id = {seller["id"]: seller for seller in sellers}
    products_by_sku = {product["sku"]: product for product in products}
    return sellers_by_id, products_by_sku


def accumulate_seller_stats(purchase_records, sellers_by_id, products_by_sku,
                            strategies, config=None) -> Dict[str, SellerStat]:
    """Walk the purchase records and total revenue, profit and product tallies per seller.
    Records for unknown sellers and items for unknown SKUs are skipped.
    """
    cfg = DEFAULT_CONFIG if config is None else config
    track_revenue = cfg["track_product_revenue"]

    stats = {
        seller_id: SellerStat(
            seller_id=seller_id,
            name=f"{seller.get('first_name') or ''} {seller.get('last_name') or ''}".strip(),
        )
        for seller_id, seller in sellers_by_id.items()
    }

    skipped_records = 0
    skipped_items = 0
    for record in purchase_records:
        stat = stats.get(record.get("seller_id"))
        if stat is None:
            logger.debug("Skipping purchase record for unknown seller %r", record.get("seller_id"))
            skipped_records += 1
            continue

        stat.sales_count += 1

        for item in record.get("items") or []:
            sku = item.get("sku")
            product = products_by_sku.get(sku)
            if product is None:
                logger.debug("Skipping line item with unknown sku %r", sku)
                skipped_items += 1
                continue

            line = dict(item, discount=normalize_discount(item.get("discount")))
            revenue = strategies.calculate_revenue(line, product)
            if strategies.calculate_profit is not None:
                profit = strategies.calculate_profit(line, product)
            else:
                profit = revenue - _line_cost(line, product)

            stat.revenue += revenue
            stat.profit += profit

            tally = stat.top_products.get(sku)
            if tally is None:
                tally = stat.top_products[sku] = ProductTally(sku=sku, name=product.get("name"))
            quantity = _to_number(line.get("quantity")) or 0.0
            tally.quantity += int(quantity) if quantity.is_integer() else quantity
            if track_revenue:
                tally.revenue += revenue

    logger.info(
        "Accumulated %d seller(s): %d record(s) skipped, %d item(s) skipped",
        len(stats), skipped_records, skipped_items,
    )
    return stats


def rank_sellers(stats: Mapping[str, SellerStat], calculate_bonus) -> List[SellerStat]:
    """Sort sellers by profit (descending) and assign each a bonus by rank."""
    ranked = sorted(stats.values(), key=lambda s: s.profit, reverse=True)
    total = len(ranked)
    for index, stat in enumerate(ranked):
        stat.bonus = calculate_bonus(index, total, stat)
    return ranked


def _top_products(stat: SellerStat, cfg) -> List[dict]:
    digits = cfg["decimals"]
    key = cfg["top_products_key"]
    tallies = sorted(stat.top_products.values(), key=lambda t: getattr(t, key), reverse=True)
    out = []
    for tally in tallies[:cfg["top_products_limit"]]:
        entry = {"sku": tally.sku, "name": tally.name, "quantity": tally.quantity}
        if cfg["track_product_revenue"]:
            entry["revenue"] = round(tally.revenue, digits)
        out.append(entry)
    return out


def build_report(ranked: List[SellerStat], config=None) -> List[dict]:
    """Flatten ranked seller stats into output records (money rounded, top products truncated)."""
    cfg = DEFAULT_CONFIG if config is None else config
    digits = cfg["decimals"]
    return [
        {
            "seller_id": stat.seller_id,
            "name": stat.name,
            "revenue": round(stat.revenue, digits),
            "profit": round(stat.profit, digits),
            "sales_count": stat.sales_count,
            "top_products": _top_products(stat, cfg),
            "bonus": round(stat.bonus, digits),
        }
        for stat in ranked
    ]


def analyze_sales_data(data, options=DEFAULT_STRATEGIES, config=None) -> List[dict]:
    """Compute the ranked per-seller sales report.
    - data: mapping with 'sellers', 'products' and 'purchase_records'.
    - options: SalesStrategies, or a mapping with calculate_revenue, calculate_bonus
      and optionally calculate_profit.
    - config: partial config merged over DEFAULT_CONFIG.
    Returns a list of seller records ordered by profit, highest first.
    """
    if not data:
        raise InvalidInputError("data is required")
    if not isinstance(data, Mapping):
        raise InvalidInputError(f"data must be a mapping, got {type(data).__name__}")
    strategies = SalesStrategies.from_options(options)
    cfg = validate_config(config)

    purchase_records = data.get("purchase_records")
    sellers_by_id, products_by_sku = index_sellers_and_products(
        data.get("sellers"), data.get("products"))
    if not purchase_records:
        raise InvalidInputError("purchase_records must be a non-empty collection")

    stats = accumulate_seller_stats(purchase_records, sellers_by_id, products_by_sku, strategies, cfg)
    calculate_bonus = strategies.calculate_bonus
    if calculate_bonus is calculate_bonus_by_profit:
        calculate_bonus = partial(calculate_bonus_by_profit, config=cfg)
    ranked = rank_sellers(stats, calculate_bonus)
    return build_report(ranked, cfg)


# ------------------------------------------------------------
# Tabular export
# ------------------------------------------------------------

LEADERBOARD_COLUMNS = ["Rank", "Seller_ID", "Name", "Revenue", "Profit", "Sales_Count", "Bonus"]


def report_to_frame(report) -> pd.DataFrame:
    """Leaderboard DataFrame, one row per seller in report order (Rank is 1-based)."""
    rows = [{
        "Rank": position,
        "Seller_ID": rec["seller_id"],
        "Name": rec["name"],
        "Revenue": rec["revenue"],
        "Profit": rec["profit"],
        "Sales_Count": rec["sales_count"],
        "Bonus": rec["bonus"],
    } for position, rec in enumerate(report, start=1)]
    return pd.DataFrame(rows, columns=LEADERBOARD_COLUMNS)


def top_products_to_frame(report) -> pd.DataFrame:
    """Long-format DataFrame of every seller's top products."""
    rows = []
    for rec in report:
        for position, prod in enumerate(rec["top_products"], start=1):
            row = {
                "Seller_ID": rec["seller_id"],
                "Name": rec["name"],
                "Position": position,
                "SKU": prod["sku"],
                "Product_Name": prod.get("name"),
                "Quantity": prod["quantity"],
            }
            if "revenue" in prod:
                row["Revenue"] = prod["revenue"]
            rows.append(row)
    columns = ["Seller_ID", "Name", "Position", "SKU", "Product_Name", "Quantity"]
    if any("Revenue" in row for row in rows):
        columns.append("Revenue")
    return pd.DataFrame(rows, columns=columns)


if __name__ == '__main__':
    # quick test / demo when run directly
    import json
    sample = {
        'sellers': [{'id': 's1', 'first_name': 'Aisha', 'last_name': 'Bello'}],
        'products': [{'sku': 'X', 'name': 'Widget', 'purchase_price': 10}],
        'purchase_records': [{'seller_id': 's1', 'items': [
            {'sku': 'X', 'sale_price': 20, 'quantity': 2, 'discount': 0}]}],
    }
    print('Config:', json.dumps(DEFAULT_CONFIG, indent=2))
    report = analyze_sales_data(sample)
    print(report_to_frame(report).head())
