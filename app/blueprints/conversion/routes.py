import logging
import math

from flask import current_app, request

from ...services.unit_conversion import (
    ConversionEngine,
    convert_rate,
    convert_to_all_units,
    format_quantity_with_unit,
    normalize_unit,
)
from ...utils.api_responses import APIResponse, api_route
from . import conversion_bp

logger = logging.getLogger(__name__)

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def _required_float(name):
    raw = request.args.get(name)
    if raw is None or raw.strip() == '':
        raise ValueError(f'{name} is required')
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f'{name} must be a number') from None
    if not math.isfinite(value):
        raise ValueError(f'{name} must be a finite number')
    return value


def _unit_label(tag):
    unit = normalize_unit(tag)
    return unit.value if unit else tag


@conversion_bp.route('/convert', methods=['GET'])
@api_route
def convert():
    quantity = _required_float('quantity')
    from_unit = request.args.get('from_unit', 'MT')
    to_unit = request.args.get('to_unit', 'MT')
    strict = (request.args.get('strict') or '').strip().lower() in _TRUE_VALUES

    result = ConversionEngine.convert(quantity, from_unit, to_unit, strict=strict)
    if not result['success']:
        return APIResponse.error(
            result.get('error_message', 'Conversion failed'),
            errors={'conversion': [result['error_code']]},
            status_code=400,
            data=result,
        )
    return APIResponse.success(result)


@conversion_bp.route('/all-units', methods=['GET'])
@api_route
def all_units():
    quantity = _required_float('quantity')
    from_unit = request.args.get('from_unit', 'MT')
    return APIResponse.success({
        'quantity': quantity,
        'from_unit': _unit_label(from_unit),
        'units': convert_to_all_units(quantity, from_unit),
    })


@conversion_bp.route('/rate', methods=['GET'])
@api_route
def rate():
    value = _required_float('rate')
    from_unit = request.args.get('from_unit', 'MT')
    to_unit = request.args.get('to_unit', 'MT')
    converted = convert_rate(value, from_unit, to_unit)
    return APIResponse.success({
        'rate': value,
        'from_unit': _unit_label(from_unit),
        'to_unit': _unit_label(to_unit),
        'converted_rate': ConversionEngine.round_value(converted, 4),
    })


@conversion_bp.route('/format', methods=['GET'])
@api_route
def format_quantity():
    quantity = _required_float('quantity')
    unit = _unit_label(request.args.get('unit', 'MT'))
    locale = current_app.config.get('DISPLAY_LOCALE', 'en_IN')
    return APIResponse.success({'display': format_quantity_with_unit(quantity, unit, locale=locale)})
