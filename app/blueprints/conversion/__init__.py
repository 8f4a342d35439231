from flask import Blueprint

conversion_bp = Blueprint('conversion', __name__, url_prefix='/api/conversion')

from . import routes  # noqa: E402,F401
