from __future__ import annotations

import re
from typing import Any, Callable, Dict

from flask import Blueprint, jsonify, redirect, request
from werkzeug.exceptions import HTTPException

from .alerts import send_revenue_alert
from .billing import create_checkout_session
from .config import Settings
from .errors import GENERIC_ERROR_MESSAGE, RevLeakError, ValidationError, error_response
from .oauth import build_authorize_url, exchange_code
from .pricing import plans_payload
from .revenue import get_revenue_stats

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _field(data: Dict[str, Any], name: str) -> str:
    value = data.get(name)
    return value.strip() if isinstance(value, str) else ''


def create_api_blueprint(*, settings_provider: Callable[[], Settings], gateway_factory, directory_factory,
                         mailer_factory, logger, blueprint_name: str = 'revleak_api'):
    """Return a blueprint that exposes the RevLeak JSON API.

    Collaborators are built per request from the factories, each of which
    takes the current ``Settings``.
    """

    bp = Blueprint(blueprint_name, __name__)

    @bp.errorhandler(RevLeakError)
    def handle_revleak_error(exc: RevLeakError):
        body, status = error_response(exc)
        logger.warning(f'{request.method} {request.path} failed ({exc.kind.value}): {body["error"]}')
        return jsonify(body), status

    @bp.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        logger.exception(f'Unhandled error on {request.method} {request.path}')
        return jsonify({'error': GENERIC_ERROR_MESSAGE}), 500

    @bp.route('/stripe/check-revenue', methods=['GET'])
    def check_revenue():
        settings = settings_provider()
        settings.require('stripe_secret_key')
        account_id = (request.args.get('accountId') or '').strip() or None
        stats = get_revenue_stats(gateway_factory(settings), account_id)
        return jsonify(stats.to_dict())

    @bp.route('/stripe/connect', methods=['GET'])
    def connect():
        settings = settings_provider()
        settings.require('stripe_connect_client_id', 'app_url')
        return redirect(build_authorize_url(settings.stripe_connect_client_id, settings.app_url))

    @bp.route('/stripe/exchange', methods=['POST'])
    def exchange():
        settings = settings_provider()
        settings.require('stripe_secret_key', 'supabase_url', 'supabase_service_role_key')
        code = _field(_json_body(), 'code')
        if not code:
            raise ValidationError('Missing authorization code')
        result = exchange_code(
            code,
            gateway=gateway_factory(settings),
            directory=directory_factory(settings),
        )
        return jsonify(result.to_dict())

    @bp.route('/billing/plans', methods=['GET'])
    def list_plans():
        return jsonify({'plans': plans_payload()})

    @bp.route('/billing/create-checkout', methods=['POST'])
    def create_checkout():
        settings = settings_provider()
        settings.require('stripe_secret_key', 'app_url')
        plan = _field(_json_body(), 'plan')
        url = create_checkout_session(plan, settings=settings, gateway=gateway_factory(settings))
        return jsonify({'url': url})

    @bp.route('/alerts/send', methods=['POST'])
    def send_alert():
        settings = settings_provider()
        settings.require(
            'stripe_secret_key', 'resend_api_key', 'alert_from_email', 'supabase_url', 'supabase_service_role_key'
        )
        account_id = _field(_json_body(), 'stripeAccountId')
        if not account_id:
            raise ValidationError('Missing stripeAccountId')
        send_revenue_alert(
            account_id,
            directory=directory_factory(settings),
            gateway=gateway_factory(settings),
            mailer=mailer_factory(settings),
        )
        return jsonify({'success': True, 'message': 'Alert email sent successfully'})

    @bp.route('/user/update-email', methods=['POST'])
    def update_email():
        settings = settings_provider()
        settings.require('supabase_url', 'supabase_service_role_key')
        data = _json_body()
        account_id = _field(data, 'stripeAccountId')
        email = _field(data, 'email')
        if not account_id or not email:
            raise ValidationError('Missing account ID or email')
        if not EMAIL_RE.match(email):
            raise ValidationError('Invalid email address')
        directory_factory(settings).upsert(account_id, email)
        return jsonify({'success': True})

    return bp
