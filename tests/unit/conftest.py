from typing import Dict, Optional

import pytest

from revleak.config import Settings
from revleak.directory import AccountRecord


class InMemoryDirectory:
    """Directory double with the same get/upsert contract as the Supabase one."""

    def __init__(self, records: Optional[Dict[str, str]] = None):
        self.records: Dict[str, AccountRecord] = {}
        self.upsert_calls = []
        for account_id, email in (records or {}).items():
            self.records[account_id] = AccountRecord(account_id, email)

    def get(self, account_id):
        return self.records.get(account_id)

    def upsert(self, account_id, email):
        self.upsert_calls.append((account_id, email))
        record = AccountRecord(account_id, email)
        self.records[account_id] = record
        return record


@pytest.fixture()
def settings():
    return Settings(
        stripe_secret_key='sk_test_123',
        stripe_connect_client_id='ca_test_123',
        app_url='https://revleak.test',
        resend_api_key='re_test_123',
        alert_from_email='alerts@revleak.test',
        supabase_url='https://db.supabase.test',
        supabase_service_role_key='service-role-key',
        price_ids={'starter': 'price_starter', 'growth': 'price_growth', 'pro': ''},
    )


@pytest.fixture()
def directory():
    return InMemoryDirectory({'acct_known': 'owner@merchant.test'})
