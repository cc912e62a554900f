"""
Server-rendered pages: landing, connect, OAuth callback, pricing and the
post-checkout confirmation.
"""

from __future__ import annotations

from typing import Callable

from flask import Blueprint, render_template, request

from ..config import Settings
from ..errors import GENERIC_ERROR_MESSAGE, RevLeakError
from ..oauth import exchange_code
from ..pricing import PRICING_PLANS
from .helpers import build_nav


def create_pages_blueprint(*, settings_provider: Callable[[], Settings], gateway_factory, directory_factory,
                           logger, blueprint_name: str = 'revleak_pages'):
    """Return a blueprint with the customer-facing pages."""

    bp = Blueprint(blueprint_name, __name__)

    @bp.route('/')
    def index():
        return render_template('index.html', nav_items=build_nav('home'))

    @bp.route('/connect')
    def connect_page():
        return render_template('connect.html', nav_items=build_nav('connect'))

    @bp.route('/connect/callback')
    def connect_callback():
        error = request.args.get('error')
        code = (request.args.get('code') or '').strip()
        context = {
            'nav_items': build_nav('connect'),
            'error': error,
            'error_description': request.args.get('error_description'),
            'code': code,
            'result': None,
        }
        if error or not code:
            return render_template('connect_callback.html', **context)

        try:
            settings = settings_provider()
            settings.require('stripe_secret_key', 'supabase_url', 'supabase_service_role_key')
            context['result'] = exchange_code(
                code,
                gateway=gateway_factory(settings),
                directory=directory_factory(settings),
            )
        except RevLeakError as exc:
            logger.warning(f'Stripe connect callback failed: {exc.message}')
            context['error'] = exc.kind.value
            context['error_description'] = exc.message or GENERIC_ERROR_MESSAGE
            return render_template('connect_callback.html', **context), exc.status_code
        except Exception:
            logger.exception('Unexpected error during Stripe connect callback')
            context['error'] = 'unexpected_error'
            context['error_description'] = GENERIC_ERROR_MESSAGE
            return render_template('connect_callback.html', **context), 500

        return render_template('connect_callback.html', **context)

    @bp.route('/billing')
    def billing_page():
        return render_template('billing.html', nav_items=build_nav('billing'), plans=PRICING_PLANS)

    @bp.route('/monitoring-enabled')
    def monitoring_enabled():
        return render_template(
            'monitoring_enabled.html',
            nav_items=build_nav(),
            session_id=request.args.get('session_id'),
        )

    return bp
