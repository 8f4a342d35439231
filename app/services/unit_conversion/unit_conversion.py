import logging
import math
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

from babel.numbers import format_decimal

from .conversion_errors import handle_conversion_error

logger = logging.getLogger(__name__)


class Unit(str, Enum):
    """Mass units traded on the marketplace."""

    MT = 'MT'
    QUINTAL = 'Quintal'
    KG = 'KG'


# How many of each unit make up one metric ton
UNITS_PER_MT = {
    Unit.MT: 1,
    Unit.QUINTAL: 10,
    Unit.KG: 1000,
}

_UNIT_ALIASES = {
    'mt': Unit.MT,
    'ton': Unit.MT,
    'tons': Unit.MT,
    'tonne': Unit.MT,
    'tonnes': Unit.MT,
    'metric ton': Unit.MT,
    'quintal': Unit.QUINTAL,
    'quintals': Unit.QUINTAL,
    'qtl': Unit.QUINTAL,
    'q': Unit.QUINTAL,
    'kg': Unit.KG,
    'kgs': Unit.KG,
    'kilogram': Unit.KG,
    'kilograms': Unit.KG,
}

DEFAULT_DISPLAY_LOCALE = 'en_IN'
_DISPLAY_PATTERN = '#,##,##0.##'


def normalize_unit(tag):
    """Map a unit tag (any case, common aliases) to a Unit, or None if unknown."""
    if isinstance(tag, Unit):
        return tag
    if not isinstance(tag, str):
        return None
    return _UNIT_ALIASES.get(tag.strip().lower())


def _to_mt(quantity, from_unit):
    unit = normalize_unit(from_unit)
    if unit is None:
        # Unknown tags pass through as MT
        return quantity
    if unit is Unit.QUINTAL:
        return quantity * 0.1
    if unit is Unit.KG:
        return quantity * 0.001
    return quantity


def convert_to_all_units(quantity, from_unit):
    """
    Express a quantity in MT, Quintal and KG at once.

    The quantity is first brought to MT and then scaled out, so the
    returned values always satisfy MT * 10 == Quintal and MT * 1000 == KG.
    """
    quantity_in_mt = _to_mt(quantity, from_unit)
    return {
        Unit.MT.value: quantity_in_mt,
        Unit.QUINTAL.value: quantity_in_mt * 10,
        Unit.KG.value: quantity_in_mt * 1000,
    }


def convert_unit(quantity, from_unit, to_unit):
    """Convert a quantity between two units; same-unit calls return the input untouched."""
    if from_unit == to_unit:
        return quantity

    source = normalize_unit(from_unit) or Unit.MT
    target = normalize_unit(to_unit) or Unit.MT
    if source is target:
        return quantity

    all_units = convert_to_all_units(quantity, source)
    return all_units[target.value]


def convert_rate(rate, from_unit, to_unit):
    """
    Convert a price-per-unit between units.

    Rates scale inversely to quantities: a rate per Quintal of 100 is a
    rate per MT of 1000 because one MT holds ten Quintals.
    """
    if from_unit == to_unit:
        return rate

    converted_quantity = convert_unit(1, from_unit, to_unit)
    return rate / converted_quantity


def calculate_total_value(rate_per_unit, quantity, unit=None):
    # Both operands must already be in `unit`
    return rate_per_unit * quantity


def format_quantity_with_unit(quantity, unit, locale=DEFAULT_DISPLAY_LOCALE):
    """Format a quantity for display, e.g. ``12,34,567.89 KG``."""
    label = unit.value if isinstance(unit, Unit) else unit
    # Babel rounds half-to-even; display rounds half away from zero
    rounded = Decimal(str(quantity)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    formatted = format_decimal(rounded, format=_DISPLAY_PATTERN, locale=locale)
    return f"{formatted} {label}"


class ConversionEngine:
    """
    Commodity unit conversion engine.

    Wraps the module-level conversion functions with input validation and
    a structured result so API callers get the same shape on success and
    failure.
    """

    @staticmethod
    def round_value(value, decimals=3):
        """Round value with protection against floating point precision issues"""
        if value is None:
            return None
        decimal_value = Decimal(str(value))
        rounded_decimal = decimal_value.quantize(Decimal('1').scaleb(-decimals), rounding=ROUND_HALF_UP)
        return float(rounded_decimal)

    @staticmethod
    def convert(amount, from_unit, to_unit, strict=False):
        """
        Convert `amount` from one unit to another.

        Returns:
        {
            'success': bool,
            'converted_value': float | None,
            'error_code': str | None,
            'error_data': dict | None,
            'from': str,
            'to': str,
            'fallback_applied': bool,
        }

        Unknown unit tags are treated as MT unless `strict` is set, in which
        case they produce an UNKNOWN_SOURCE_UNIT / UNKNOWN_TARGET_UNIT error.
        """
        if (
            isinstance(amount, bool)
            or not isinstance(amount, (int, float))
            or not math.isfinite(amount)
            or amount < 0
        ):
            return ConversionEngine._failure(
                'INVALID_AMOUNT',
                {'amount': amount, 'message': 'Amount must be a finite, non-negative number'},
                from_unit,
                to_unit,
            )

        source = normalize_unit(from_unit)
        target = normalize_unit(to_unit)

        if strict and source is None:
            return ConversionEngine._failure(
                'UNKNOWN_SOURCE_UNIT',
                {'unit': from_unit, 'message': f'Unit "{from_unit}" is not supported'},
                from_unit,
                to_unit,
            )
        if strict and target is None:
            return ConversionEngine._failure(
                'UNKNOWN_TARGET_UNIT',
                {'unit': to_unit, 'message': f'Unit "{to_unit}" is not supported'},
                from_unit,
                to_unit,
            )

        fallback_applied = source is None or target is None
        if fallback_applied:
            logger.warning("Unknown unit tag in conversion %r -> %r; treating as MT", from_unit, to_unit)

        converted = convert_unit(amount, source or from_unit, target or to_unit)
        return {
            'success': True,
            'converted_value': converted,
            'error_code': None,
            'error_data': None,
            'from': source.value if source else from_unit,
            'to': target.value if target else to_unit,
            'fallback_applied': fallback_applied,
        }

    @staticmethod
    def _failure(error_code, error_data, from_unit, to_unit):
        result = {
            'success': False,
            'converted_value': None,
            'error_code': error_code,
            'error_data': error_data,
            'from': from_unit,
            'to': to_unit,
            'fallback_applied': False,
        }
        result.update(handle_conversion_error(result))
        return result
