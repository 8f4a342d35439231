from functools import wraps
from typing import Any, Dict, List, Optional

from flask import current_app, jsonify, request


class APIResponse:
    """Standardized JSON response shapes for the marketplace API"""

    @staticmethod
    def success(data: Any = None, message: str = "Success", status_code: int = 200):
        response_data = {
            'success': True,
            'message': message,
            'data': data
        }
        return jsonify(response_data), status_code

    @staticmethod
    def error(message: str, errors: Optional[Dict] = None, status_code: int = 400, **extra: Any):
        response_data = {
            'success': False,
            'message': message,
            'errors': errors or {}
        }
        response_data.update(extra)
        return jsonify(response_data), status_code

    @staticmethod
    def validation_error(errors: Dict[str, List[str]]):
        return APIResponse.error(
            message="Validation failed",
            errors=errors,
            status_code=422
        )

    @staticmethod
    def not_found(resource: str = "Resource"):
        return APIResponse.error(
            message=f"{resource} not found",
            status_code=404
        )

    @staticmethod
    def request_payload() -> Dict[str, Any]:
        """JSON body, form fields, or an empty dict"""
        if request.is_json:
            payload = request.get_json(silent=True)
            return payload if isinstance(payload, dict) else {}
        if request.form:
            return request.form.to_dict()
        return {}


def api_route(func):
    """Map ValueError to 422 and unexpected errors to a logged 500."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ValueError as e:
            return APIResponse.validation_error({'general': [str(e)]})
        except Exception:
            current_app.logger.exception("API error in %s", func.__name__)
            return APIResponse.error("Internal server error", status_code=500)

    return wrapper


__all__ = ['APIResponse', 'api_route']
