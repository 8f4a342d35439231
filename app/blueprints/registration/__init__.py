from flask import Blueprint

registration_bp = Blueprint('registration', __name__, url_prefix='/api/registration')

from . import routes  # noqa: E402,F401
