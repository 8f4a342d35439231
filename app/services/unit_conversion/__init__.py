"""
Unit Conversion Service Package

Converts commodity quantities and rates between MT, Quintal and KG and owns
conversion error presentation.
"""

from .unit_conversion import (
    ConversionEngine,
    Unit,
    UNITS_PER_MT,
    calculate_total_value,
    convert_rate,
    convert_to_all_units,
    convert_unit,
    format_quantity_with_unit,
    normalize_unit,
)
from . import conversion_errors

__all__ = [
    'ConversionEngine',
    'Unit',
    'UNITS_PER_MT',
    'calculate_total_value',
    'convert_rate',
    'convert_to_all_units',
    'convert_unit',
    'format_quantity_with_unit',
    'normalize_unit',
    'conversion_errors',
]
