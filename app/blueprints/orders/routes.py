import logging

from ...services.deduction_service import ORDER_QUALITY_KEYS, build_order_summary, recalculate_on_update
from ...utils.api_responses import APIResponse, api_route
from . import orders_bp

logger = logging.getLogger(__name__)


def _order_type(payload):
    order_type = str(payload.get('order_type') or 'purchase').strip().lower()
    if order_type not in ORDER_QUALITY_KEYS:
        raise ValueError(f"order_type must be one of {sorted(ORDER_QUALITY_KEYS)}")
    return order_type


@orders_bp.route('/deductions', methods=['POST'])
@api_route
def calculate_order_deductions():
    """Compute net weight, gross amount, total deduction and net amount for an order payload."""
    payload = APIResponse.request_payload()
    order_type = _order_type(payload)

    other_deductions = payload.get('other_deductions')
    if other_deductions is not None and not isinstance(other_deductions, list):
        return APIResponse.validation_error({'other_deductions': ['other_deductions must be a list']})

    summary = build_order_summary(payload, order_type)
    return APIResponse.success(summary)


@orders_bp.route('/deductions/recalculate', methods=['POST'])
@api_route
def recalculate_order_deductions():
    """Apply an order update, refreshing totals when it touches an amount field."""
    payload = APIResponse.request_payload()
    order_type = _order_type(payload)

    existing = payload.get('existing', {})
    changes = payload.get('changes', {})
    errors = {
        name: [f'{name} must be an object']
        for name, value in (('existing', existing), ('changes', changes))
        if not isinstance(value, dict)
    }
    if errors:
        return APIResponse.validation_error(errors)

    updated = recalculate_on_update(existing, changes, ORDER_QUALITY_KEYS[order_type])
    return APIResponse.success(updated)
