import json

import httpx
import pytest

from crm_dml.rest_client import RestClient


INSTANCE_URL = "https://example.my.salesforce.com"


class FakePort:
    """In-memory PersistencePort that records every call."""

    def __init__(self, accounts=None, fail_on=None):
        self.accounts = list(accounts or [])
        self.fail_on = fail_on
        self.calls = []
        self.updates = []
        self._seq = 0

    def _maybe_fail(self, op):
        if self.fail_on == op:
            raise RuntimeError(f"{op} failed")

    def query_accounts_by_name(self, names):
        self.calls.append("query")
        self._maybe_fail("query")
        return [a for a in self.accounts if a.name in names]

    def create_accounts(self, accounts):
        self.calls.append("create")
        self._maybe_fail("create")
        for acct in accounts:
            self._seq += 1
            acct.id = f"001NEW{self._seq:03d}"
            self.accounts.append(acct)
        return accounts

    def update_contacts(self, contacts):
        self.calls.append("update")
        self._maybe_fail("update")
        self.updates.append([(c.id, c.account_id) for c in contacts])


@pytest.fixture
def port():
    return FakePort()


def body_of(request: httpx.Request) -> dict:
    return json.loads(request.content)


@pytest.fixture
def make_rest():
    """Build a RestClient whose requests go to ``handler``; returns (rest, seen_requests)."""

    def _make(handler):
        seen = []

        def _record(request):
            seen.append(request)
            return handler(request)

        rest = RestClient("token", INSTANCE_URL, transport=httpx.MockTransport(_record))
        return rest, seen

    return _make
