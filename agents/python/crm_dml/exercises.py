"""
DML exercises against the standard objects (Account, Contact, Lead, Opportunity, Case).

Each function is a standalone exercise: insert one record, update a field
after a lookup, upsert with dedup, bulk insert then delete.
"""
from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from .linker import LinkResult, link_contacts_to_accounts
from .models import Contact
from .persistence import SalesforcePersistence
from .rest_client import RestClient, soql_quote


logger = logging.getLogger(__name__)


def _insert_one(rest: RestClient, object_api: str, fields: dict) -> str:
    record = {k: v for k, v in fields.items() if v is not None}
    results = rest.insert(object_api, [record], all_or_none=True)
    sfid = results[0]["id"]
    logger.info(f"{object_api} created: {sfid}")
    return sfid


def insert_account(rest: RestClient, name: str, **fields) -> str:
    return _insert_one(rest, "Account", {"Name": name, **fields})


def insert_contact(
    rest: RestClient,
    last_name: str,
    first_name: str | None = None,
    account_id: str | None = None,
    **fields,
) -> str:
    return _insert_one(
        rest,
        "Contact",
        {"LastName": last_name, "FirstName": first_name, "AccountId": account_id, **fields},
    )


def update_account_field(rest: RestClient, name: str, field: str, value) -> int:
    """Set ``field`` on every Account named ``name``; returns how many were updated."""
    records = rest.query(f"SELECT Id FROM Account WHERE Name = {soql_quote(name)}")
    if not records:
        logger.warning(f"No Account named {name!r}; nothing updated")
        return 0
    rest.update("Account", [{"Id": r["Id"], field: value} for r in records], all_or_none=True)
    return len(records)


def upsert_lead_by_email(
    rest: RestClient,
    email: str,
    last_name: str,
    company: str,
    **fields,
) -> Tuple[str, bool]:
    """Update the Lead with this Email if there is one, else insert it. Returns (Id, created)."""
    if not email:
        raise ValueError("email is required to dedup leads")
    existing = rest.query(f"SELECT Id FROM Lead WHERE Email = {soql_quote(email)} LIMIT 1")
    values = {"LastName": last_name, "Company": company, **fields}
    if existing:
        lead_id = existing[0]["Id"]
        rest.update("Lead", [{"Id": lead_id, **values}], all_or_none=True)
        logger.info(f"Lead updated: {lead_id}")
        return lead_id, False
    return _insert_one(rest, "Lead", {"Email": email, **values}), True


def create_opportunity(
    rest: RestClient,
    account_id: str,
    name: str,
    stage: str,
    close_date: str,
    amount: float | None = None,
) -> str:
    return _insert_one(
        rest,
        "Opportunity",
        {
            "AccountId": account_id,
            "Name": name,
            "StageName": stage,
            "CloseDate": close_date,
            "Amount": amount,
        },
    )


def open_case(
    rest: RestClient,
    subject: str,
    contact_id: str | None = None,
    account_id: str | None = None,
    priority: str = "Medium",
) -> str:
    return _insert_one(
        rest,
        "Case",
        {
            "Subject": subject,
            "ContactId": contact_id,
            "AccountId": account_id,
            "Priority": priority,
            "Status": "New",
            "Origin": "Web",
        },
    )


def bulk_insert_then_delete(rest: RestClient, object_api: str, records: List[dict]) -> int:
    """Insert the batch, then delete exactly the records it created."""
    results = rest.insert(object_api, records, all_or_none=True)
    ids = [r["id"] for r in results]
    logger.info(f"{object_api}: inserted {len(ids)} record(s), deleting")
    deleted = rest.delete(ids, all_or_none=True)
    return sum(1 for r in deleted if r.get("success"))


def upsert_accounts_with_contacts(rest: RestClient, contacts: Sequence[Contact]) -> LinkResult:
    """Link the batch to Accounts; Contacts without an Id are inserted, the rest updated."""
    # LastName is required on insert; reject before any Account is created.
    nameless = [c for c in contacts if not c.id and c.last_name is None]
    if nameless:
        raise ValueError(f"Contact insert: {len(nameless)} unsaved record(s) without LastName")
    return link_contacts_to_accounts(contacts, SalesforcePersistence(rest))


def upsert_accounts_by_external_id(
    rest: RestClient,
    external_id_field: str,
    records: List[dict],
) -> Tuple[int, int]:
    """Upsert Accounts keyed on an external ID field. Returns (created, updated)."""
    missing = [r for r in records if not r.get(external_id_field)]
    if missing:
        raise ValueError(f"{len(missing)} record(s) without {external_id_field}")
    results = rest.upsert("Account", external_id_field, records, all_or_none=True)
    created = sum(1 for r in results if r.get("created"))
    logger.info(f"Account upsert on {external_id_field}: {created} created, {len(results) - created} updated")
    return created, len(results) - created
