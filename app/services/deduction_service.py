"""Confirmed order weight and quality deductions.

Synopsis:
Derives net weight, gross amount, total deduction and net amount for
confirmed purchase and sales orders. Purchase orders record the combined
moisture + BDDI deduction; sales orders record it as moisture + BDOI.

Glossary:
- HLW: Hectolitre weight; shortfalls are charged as a flat deduction amount.
- MOI: Moisture content above the agreed limit.
- BDDI/BDOI: Broken, damaged, discoloured and immature grain share.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Iterable, Mapping

from .unit_conversion import Unit, convert_rate, normalize_unit

logger = logging.getLogger(__name__)

PURCHASE_QUALITY_KEY = "moi_bddi"
SALES_QUALITY_KEY = "moi_bdoi"
ORDER_QUALITY_KEYS = {
    "purchase": PURCHASE_QUALITY_KEY,
    "sales": SALES_QUALITY_KEY,
}

_THOUSANDS_SEPARATOR = re.compile(r"(?<=\d),(?=\d)")
_NUMBER = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")


def parse_numeric(value: Any, default: float | None = 0.0) -> float | None:
    """
    Coerce spreadsheet-style amounts ("₹1,250.50", "Rs. 1,250", "INR 500",
    "1.5e3") to float.

    The string must hold exactly one number once thousands separators are
    removed; anything else, including NaN and infinity, yields `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else default
    numbers = _NUMBER.findall(_THOUSANDS_SEPARATOR.sub("", str(value)))
    if len(numbers) != 1:
        return default
    parsed = float(numbers[0])
    return parsed if math.isfinite(parsed) else default


def quality_deduction_field(quality_key: str) -> str:
    return f"deduction_amount_{quality_key}"


def calculate_net_weight(gross_weight_mt: Any, tare_weight_mt: Any) -> float | None:
    """Net weight is loaded vehicle minus empty vehicle, floored at zero."""
    gross = parse_numeric(gross_weight_mt, None)
    tare = parse_numeric(tare_weight_mt, None)
    if gross is None or tare is None:
        return None
    return max(0.0, gross - tare)


def calculate_gross_amount(net_weight_mt: Any, rate: Any, rate_unit: str = Unit.MT.value) -> float:
    """Net weight (MT) times the rate, with the rate first converted to per-MT."""
    net_weight = parse_numeric(net_weight_mt)
    rate_value = parse_numeric(rate)
    unit = normalize_unit(rate_unit) or Unit.MT
    rate_per_mt = convert_rate(rate_value, unit, Unit.MT)
    return net_weight * rate_per_mt


def sum_other_deductions(entries: Iterable[Mapping[str, Any]] | None) -> float:
    total = 0.0
    for entry in entries or ():
        if isinstance(entry, Mapping):
            total += parse_numeric(entry.get("amount"))
    return total


def calculate_deductions(order: Mapping[str, Any], quality_key: str = PURCHASE_QUALITY_KEY) -> dict[str, float]:
    """
    Total deduction and net amount for an order.

    total_deduction = HLW deduction + quality deduction + other deductions
    net_amount      = gross_amount - total_deduction
    """
    total_deduction = (
        parse_numeric(order.get("deduction_amount_hlw"))
        + parse_numeric(order.get(quality_deduction_field(quality_key)))
        + sum_other_deductions(order.get("other_deductions"))
    )
    gross_amount = parse_numeric(order.get("gross_amount"))
    return {
        "total_deduction": total_deduction,
        "net_amount": gross_amount - total_deduction,
    }


def recalculate_on_update(
    existing: Mapping[str, Any],
    changes: Mapping[str, Any],
    quality_key: str = PURCHASE_QUALITY_KEY,
) -> dict[str, Any]:
    """
    Refresh totals when an update touches any amount field.

    Fields missing from `changes` are taken from `existing`. Updates that do
    not touch an amount field are returned unchanged.
    """
    quality_field = quality_deduction_field(quality_key)
    amount_fields = ("gross_amount", "deduction_amount_hlw", quality_field, "other_deductions")
    updated = dict(changes)
    if not any(name in changes for name in amount_fields):
        return updated

    merged = {name: changes[name] if name in changes else existing.get(name) for name in amount_fields}
    updated.update(calculate_deductions(merged, quality_key))
    return updated


def build_order_summary(order: Mapping[str, Any], order_type: str = "purchase") -> dict[str, Any]:
    """Fill in every derivable amount for an order payload."""
    if order_type not in ORDER_QUALITY_KEYS:
        raise ValueError(f"Unknown order type: {order_type}")
    quality_key = ORDER_QUALITY_KEYS[order_type]

    summary: dict[str, Any] = {"order_type": order_type}

    net_weight = parse_numeric(order.get("net_weight_mt"), None)
    if net_weight is None:
        net_weight = calculate_net_weight(order.get("gross_weight_mt"), order.get("tare_weight_mt"))
    summary["net_weight_mt"] = net_weight

    gross_amount = parse_numeric(order.get("gross_amount"), None)
    if gross_amount is None and net_weight is not None and order.get("rate_per_mt") is not None:
        gross_amount = calculate_gross_amount(net_weight, order.get("rate_per_mt"))
    summary["gross_amount"] = gross_amount or 0.0

    deductions = calculate_deductions({**order, "gross_amount": summary["gross_amount"]}, quality_key)
    summary.update(deductions)
    logger.debug("Order summary computed for %s order: %s", order_type, summary)
    return summary
