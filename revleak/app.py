# app.py - Flask application factory for RevLeak
import logging
from datetime import datetime

from flask import Flask, jsonify

from . import __version__
from .api_routes import create_api_blueprint
from .config import Settings, load_environment
from .directory import SupabaseAccountDirectory
from .emailer import ResendMailer
from .stripe_gateway import StripeGateway
from .ui.pages import create_pages_blueprint

LOG = logging.getLogger("revleak.api")


def create_app(settings_provider=None, *, gateway_factory=None, directory_factory=None, mailer_factory=None):
    """Build the Flask app.

    ``settings_provider`` is called on every request; by default it reads the
    environment (after loading ``.env``). The factories receive those settings
    and build a fresh Stripe gateway, account directory and mailer.
    """
    if settings_provider is None:
        load_environment()
        settings_provider = Settings.from_env

    gateway_factory = gateway_factory or StripeGateway.from_settings
    directory_factory = directory_factory or SupabaseAccountDirectory.from_settings
    mailer_factory = mailer_factory or ResendMailer.from_settings

    app = Flask(__name__)

    @app.context_processor
    def inject_layout_defaults():
        return {
            'brand_name': 'RevLeak',
            'current_year': datetime.now().year,
        }

    app.register_blueprint(
        create_api_blueprint(
            settings_provider=settings_provider,
            gateway_factory=gateway_factory,
            directory_factory=directory_factory,
            mailer_factory=mailer_factory,
            logger=LOG,
        ),
        url_prefix='/api',
    )
    app.register_blueprint(
        create_pages_blueprint(
            settings_provider=settings_provider,
            gateway_factory=gateway_factory,
            directory_factory=directory_factory,
            logger=LOG,
        )
    )

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint - reports which integrations are configured"""
        integrations = settings_provider().integration_status()
        return jsonify({
            'status': 'healthy' if all(v == 'configured' for v in integrations.values()) else 'degraded',
            'timestamp': datetime.now().isoformat(),
            'version': __version__,
            'integrations': integrations,
        })

    return app

