import logging

logger = logging.getLogger(__name__)


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    from app.blueprints.conversion import conversion_bp
    from app.blueprints.orders import orders_bp
    from app.blueprints.registration import registration_bp

    registered = []
    for blueprint, description in (
        (registration_bp, 'Registration'),
        (conversion_bp, 'Conversion'),
        (orders_bp, 'Orders'),
    ):
        app.register_blueprint(blueprint)
        registered.append(description)

    logger.info("Registered blueprints: %s", ", ".join(registered))
    return registered
