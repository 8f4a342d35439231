"""
Conversion error presentation.

Owns the mapping from a failed ConversionEngine result to the message and
error type that API callers surface to end users.
"""

SUPPORTED_UNIT_LABELS = ('MT', 'Quintal', 'KG')


def handle_conversion_error(conversion_result):
    """
    Convert a ConversionEngine error result into a user-facing error payload.

    Successful results map to an empty payload.
    """
    if conversion_result.get('success'):
        return {}

    error_code = conversion_result.get('error_code')
    error_data = conversion_result.get('error_data') or {}

    if error_code in ('UNKNOWN_SOURCE_UNIT', 'UNKNOWN_TARGET_UNIT'):
        return {
            'error_type': 'unknown_unit',
            'error_message': f'Unknown unit: {error_data.get("unit")}',
            'supported_units': list(SUPPORTED_UNIT_LABELS),
        }

    if error_code == 'INVALID_AMOUNT':
        return {
            'error_type': 'validation_error',
            'error_message': error_data.get('message', 'Invalid amount'),
        }

    return {
        'error_type': 'conversion_error',
        'error_message': error_data.get('message', 'Conversion failed'),
    }
