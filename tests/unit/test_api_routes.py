import dataclasses
import json
import logging
from unittest.mock import MagicMock

import pytest
from flask import Flask

from revleak.api_routes import create_api_blueprint
from revleak.config import Settings
from revleak.errors import GENERIC_ERROR_MESSAGE, PersistenceError, UpstreamError


@pytest.fixture()
def api(settings, directory):
    app = Flask(__name__)
    app.config.update(TESTING=True)

    state = {'settings': settings}
    gateway = MagicMock()
    gateway.list_balance_transactions.return_value = [
        {'amount': 1000, 'fee': 30, 'net': 970},
        {'amount': 2000, 'fee': 60, 'net': 1940},
    ]
    mailer = MagicMock()
    mailer.send.return_value = {'id': 'email_123'}

    blueprint = create_api_blueprint(
        settings_provider=lambda: state['settings'],
        gateway_factory=lambda _settings: gateway,
        directory_factory=lambda _settings: directory,
        mailer_factory=lambda _settings: mailer,
        logger=logging.getLogger('revleak-api-test'),
    )
    app.register_blueprint(blueprint, url_prefix='/api')

    with app.test_client() as client:
        yield client, state, gateway, directory, mailer


def _post(client, path, payload):
    return client.post(path, data=json.dumps(payload), content_type='application/json')


def _json(response):
    return json.loads(response.data.decode('utf-8'))


def test_check_revenue_returns_stats(api):
    client, _, gateway, *_ = api

    response = client.get('/api/stripe/check-revenue?accountId=acct_123')

    assert response.status_code == 200
    assert _json(response) == {'gross': 30.0, 'fees': 0.9, 'net': 29.1, 'effectiveFeeRate': 3.0}
    gateway.list_balance_transactions.assert_called_once_with('acct_123')


def test_check_revenue_defaults_to_platform_account(api):
    client, _, gateway, *_ = api

    client.get('/api/stripe/check-revenue')

    gateway.list_balance_transactions.assert_called_once_with(None)


def test_check_revenue_without_secret_key_names_it(api):
    client, state, gateway, *_ = api
    state['settings'] = dataclasses.replace(state['settings'], stripe_secret_key='')

    response = client.get('/api/stripe/check-revenue')

    assert response.status_code == 500
    assert _json(response) == {'error': 'Missing environment variable: STRIPE_SECRET_KEY'}
    gateway.list_balance_transactions.assert_not_called()


def test_check_revenue_upstream_failure_is_500(api):
    client, _, gateway, *_ = api
    gateway.list_balance_transactions.side_effect = UpstreamError('Invalid API Key provided')

    response = client.get('/api/stripe/check-revenue')

    assert response.status_code == 500
    assert _json(response) == {'error': 'Invalid API Key provided'}


def test_connect_redirects_to_stripe(api):
    client, *_ = api

    response = client.get('/api/stripe/connect')

    assert response.status_code == 302
    location = response.headers['Location']
    assert location.startswith('https://connect.stripe.com/oauth/authorize?')
    assert 'client_id=ca_test_123' in location


def test_connect_without_client_id_is_500(api):
    client, state, *_ = api
    state['settings'] = Settings(stripe_secret_key='sk_test_123')

    response = client.get('/api/stripe/connect')

    assert response.status_code == 500
    assert _json(response)['error'] == 'Missing environment variables: STRIPE_CONNECT_CLIENT_ID, APP_URL'


def test_exchange_requires_code(api):
    client, _, gateway, *_ = api

    response = _post(client, '/api/stripe/exchange', {})

    assert response.status_code == 400
    assert _json(response) == {'error': 'Missing authorization code'}
    gateway.exchange_oauth_code.assert_not_called()


def test_exchange_returns_account_and_email(api):
    client, _, gateway, directory, _ = api
    gateway.exchange_oauth_code.return_value = 'acct_new'
    gateway.retrieve_account_email.return_value = 'merchant@shop.test'

    response = _post(client, '/api/stripe/exchange', {'code': 'ac_code'})

    assert response.status_code == 200
    assert _json(response) == {'connectedAccountId': 'acct_new', 'email': 'merchant@shop.test'}
    assert directory.get('acct_new').email == 'merchant@shop.test'


def test_exchange_persistence_failure_is_500(api):
    client, _, gateway, directory, _ = api
    gateway.exchange_oauth_code.return_value = 'acct_new'
    gateway.retrieve_account_email.return_value = 'merchant@shop.test'
    directory.upsert = MagicMock(side_effect=PersistenceError('Account directory unavailable'))

    response = _post(client, '/api/stripe/exchange', {'code': 'ac_code'})

    assert response.status_code == 500
    assert _json(response) == {'error': 'Account directory unavailable'}


def test_list_plans(api):
    client, *_ = api

    response = client.get('/api/billing/plans')

    assert response.status_code == 200
    assert [plan['id'] for plan in _json(response)['plans']] == ['starter', 'growth', 'pro']


def test_create_checkout_rejects_unknown_plan(api):
    client, _, gateway, *_ = api

    response = _post(client, '/api/billing/create-checkout', {'plan': 'unknown'})

    assert response.status_code == 400
    assert _json(response) == {'error': 'Invalid plan selected'}
    gateway.create_subscription_checkout.assert_not_called()


def test_create_checkout_missing_price_is_500(api):
    client, *_ = api

    response = _post(client, '/api/billing/create-checkout', {'plan': 'pro'})

    assert response.status_code == 500
    assert _json(response) == {'error': 'Missing Price ID for plan: pro'}


def test_create_checkout_returns_session_url(api):
    client, _, gateway, *_ = api
    gateway.create_subscription_checkout.return_value = 'https://checkout.stripe.test/cs_123'

    response = _post(client, '/api/billing/create-checkout', {'plan': 'growth'})

    assert response.status_code == 200
    assert _json(response) == {'url': 'https://checkout.stripe.test/cs_123'}


def test_send_alert_requires_account_id(api):
    client, *_ = api

    response = _post(client, '/api/alerts/send', {})

    assert response.status_code == 400


def test_send_alert_for_unknown_account_is_404(api):
    client, _, gateway, _, mailer = api

    response = _post(client, '/api/alerts/send', {'stripeAccountId': 'acct_missing'})

    assert response.status_code == 404
    assert 'acct_missing' in _json(response)['error']
    mailer.send.assert_not_called()


def test_send_alert_success(api):
    client, _, gateway, _, mailer = api

    response = _post(client, '/api/alerts/send', {'stripeAccountId': 'acct_known'})

    assert response.status_code == 200
    assert _json(response) == {'success': True, 'message': 'Alert email sent successfully'}
    assert mailer.send.call_args.kwargs['recipient_email'] == 'owner@merchant.test'


def test_send_alert_without_email_config_is_500(api):
    client, state, *_ = api
    state['settings'] = dataclasses.replace(state['settings'], resend_api_key='')

    response = _post(client, '/api/alerts/send', {'stripeAccountId': 'acct_known'})

    assert response.status_code == 500
    assert _json(response) == {'error': 'Missing environment variable: RESEND_API_KEY'}


def test_update_email_overwrites_directory_entry(api):
    client, _, __, directory, ___ = api

    response = _post(client, '/api/user/update-email', {
        'stripeAccountId': 'acct_known',
        'email': 'finance@merchant.test',
    })

    assert response.status_code == 200
    assert _json(response) == {'success': True}
    assert directory.get('acct_known').email == 'finance@merchant.test'


@pytest.mark.parametrize('payload', [
    {'stripeAccountId': 'acct_known'},
    {'email': 'finance@merchant.test'},
    {'stripeAccountId': 'acct_known', 'email': 'not-an-email'},
])
def test_update_email_rejects_bad_input(api, payload):
    client, *_ = api

    response = _post(client, '/api/user/update-email', payload)

    assert response.status_code == 400


def test_malformed_json_is_treated_as_empty_body(api):
    client, *_ = api

    response = client.post('/api/stripe/exchange', data='{not json', content_type='application/json')

    assert response.status_code == 400


def test_unexpected_errors_return_json_500(api):
    client, _, gateway, *_ = api
    gateway.list_balance_transactions.side_effect = RuntimeError('boom')

    response = client.get('/api/stripe/check-revenue')

    assert response.status_code == 500
    assert _json(response) == {'error': GENERIC_ERROR_MESSAGE}


@pytest.mark.parametrize('path, payload, expected', [
    ('/api/alerts/send', {'stripeAccountId': 'acct_known'},
     'STRIPE_SECRET_KEY, RESEND_API_KEY, ALERT_FROM_EMAIL, SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY'),
    ('/api/stripe/exchange', {'code': 'ac_code'},
     'STRIPE_SECRET_KEY, SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY'),
    ('/api/user/update-email', {'stripeAccountId': 'acct_known', 'email': 'finance@merchant.test'},
     'SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY'),
])
def test_unconfigured_endpoint_names_every_missing_variable(api, path, payload, expected):
    client, state, gateway, _, mailer = api
    state['settings'] = Settings()

    response = _post(client, path, payload)

    assert response.status_code == 500
    assert _json(response) == {'error': f'Missing environment variables: {expected}'}
    gateway.exchange_oauth_code.assert_not_called()
    mailer.send.assert_not_called()


def test_send_alert_names_database_variables_with_stripe_key_only(api):
    client, state, *_ = api
    state['settings'] = Settings(stripe_secret_key='sk_test_123')

    response = _post(client, '/api/alerts/send', {'stripeAccountId': 'acct_1'})

    error = _json(response)['error']
    assert response.status_code == 500
    assert 'RESEND_API_KEY' in error
    assert 'SUPABASE_URL' in error
    assert 'SUPABASE_SERVICE_ROLE_KEY' in error
