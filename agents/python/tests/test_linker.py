import pytest

from conftest import FakePort
from crm_dml.errors import DmlError
from crm_dml.linker import link_contacts_to_accounts
from crm_dml.models import Account, Contact


def test_shared_missing_name_creates_one_account(port):
    contacts = [Contact("Doe", id="003A"), Contact("Doe", id="003B"), Contact("Jane", id="003C")]

    res = link_contacts_to_accounts(contacts, port)

    assert res.created == 2
    assert res.linked == 3
    assert sorted(a.name for a in port.accounts) == ["Doe", "Jane"]
    assert contacts[0].account_id == contacts[1].account_id
    assert contacts[0].account_id != contacts[2].account_id
    assert port.calls == ["query", "create", "update"]


def test_existing_account_is_reused():
    smith = Account("Smith", id="001SMITH")
    port = FakePort(accounts=[smith])
    contact = Contact("Smith", id="003A")

    res = link_contacts_to_accounts([contact], port)

    assert res.created == 0
    assert contact.account_id == "001SMITH"
    assert "create" not in port.calls
    assert port.updates == [[("003A", "001SMITH")]]


def test_second_run_makes_no_writes(port):
    contacts = [Contact("Doe", id="003A"), Contact("Jane", id="003B"), Contact(None, id="003C")]
    link_contacts_to_accounts(contacts, port)
    port.calls.clear()

    res = link_contacts_to_accounts(contacts, port)

    assert port.calls == []
    assert res.created == 0
    assert res.linked == 0
    assert res.skipped == 3
    assert len(port.accounts) == 2


def test_contact_without_last_name_is_skipped(port):
    contact = Contact(None, id="003A")

    res = link_contacts_to_accounts([contact], port)

    assert contact.account_id is None
    assert port.accounts == []
    assert port.calls == []
    assert res.skipped == 1


def test_empty_last_name_is_a_key(port):
    contact = Contact("", id="003A")

    res = link_contacts_to_accounts([contact], port)

    assert res.created == 1
    assert port.accounts[0].name == ""
    assert contact.account_id == port.accounts[0].id


def test_prelinked_contact_is_left_alone(port):
    linked = Contact("Doe", id="003A", account_id="001OTHER")
    fresh = Contact("Jane", id="003B")

    res = link_contacts_to_accounts([linked, fresh], port)

    assert linked.account_id == "001OTHER"
    assert [a.name for a in port.accounts] == ["Jane"]
    assert res.skipped == 1
    # the whole batch goes out in one update
    assert port.updates == [[("003A", "001OTHER"), ("003B", fresh.account_id)]]


def test_create_failure_propagates_without_updates():
    port = FakePort(fail_on="create")
    contact = Contact("Doe", id="003A")

    with pytest.raises(RuntimeError, match="create failed"):
        link_contacts_to_accounts([contact], port)

    assert "update" not in port.calls
    assert port.updates == []


def test_query_failure_propagates():
    port = FakePort(fail_on="query")

    with pytest.raises(RuntimeError, match="query failed"):
        link_contacts_to_accounts([Contact("Doe", id="003A")], port)

    assert port.calls == ["query"]


def test_created_account_without_id_is_an_error():
    class NoIdPort(FakePort):
        def create_accounts(self, accounts):
            self.calls.append("create")
            return accounts

    port = NoIdPort()
    with pytest.raises(DmlError, match="MISSING_ID"):
        link_contacts_to_accounts([Contact("Doe", id="003A")], port)
    assert "update" not in port.calls


def test_duplicate_existing_names_use_first_match():
    port = FakePort(accounts=[Account("Smith", id="001FIRST"), Account("Smith", id="001SECOND")])
    contact = Contact("Smith", id="003A")

    link_contacts_to_accounts([contact], port)

    assert contact.account_id == "001FIRST"


def test_created_accounts_resolve_through_staged_records():
    class RenamingPort(FakePort):
        def create_accounts(self, accounts):
            self.calls.append("create")
            return [Account(a.name.upper(), id=f"001NEW{i}") for i, a in enumerate(accounts)]

    port = RenamingPort()
    contacts = [Contact("Doe", id="003A"), Contact("Roe", id="003B")]

    link_contacts_to_accounts(contacts, port)

    assert [c.account_id for c in contacts] == ["001NEW0", "001NEW1"]
