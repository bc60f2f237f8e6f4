"""
Link Contacts to Accounts named after their last name.

Accounts are looked up by exact Name, created once per missing name, and the
Contacts that gained an AccountId are written back in one batch. Running it
again over a linked batch makes no writes.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Protocol, Sequence, Set

from .errors import DmlError
from .models import Account, Contact


logger = logging.getLogger(__name__)


class PersistencePort(Protocol):
    def query_accounts_by_name(self, names: Set[str]) -> List[Account]: ...

    def create_accounts(self, accounts: List[Account]) -> List[Account]: ...

    def update_contacts(self, contacts: List[Contact]) -> None: ...


class LinkResult:
    def __init__(self, created: int, linked: int, skipped: int):
        self.created = created
        self.linked = linked
        self.skipped = skipped

    def __repr__(self) -> str:
        return f"LinkResult(created={self.created}, linked={self.linked}, skipped={self.skipped})"


def _needs_link(contact: Contact) -> bool:
    # Only None means "no key"; an empty last name is still a key.
    return contact.last_name is not None and contact.account_id is None


def link_contacts_to_accounts(contacts: Sequence[Contact], port: PersistencePort) -> LinkResult:
    """
    Ensure every unlinked Contact with a last name points at an Account of that name.

    Port failures propagate unchanged; nothing is retried and no Contact is
    updated once an earlier call has failed.
    """
    contacts = list(contacts)
    pending = [c for c in contacts if _needs_link(c)]
    skipped = len(contacts) - len(pending)
    if not pending:
        logger.info("No contacts to link (%d skipped)", skipped)
        return LinkResult(0, 0, skipped)

    names: Set[str] = {c.last_name for c in pending}
    by_name: Dict[str, Account] = {}
    for acct in port.query_accounts_by_name(names):
        # Duplicate names already in the org: first one wins.
        by_name.setdefault(acct.name, acct)
    logger.info("Found %d existing account(s) for %d name(s)", len(by_name), len(names))

    staged: Dict[str, Account] = {}
    waiting: List[Contact] = []
    linked = 0
    for contact in pending:
        acct = by_name.get(contact.last_name)
        if acct is not None:
            contact.account_id = acct.id
            linked += 1
            continue
        if contact.last_name not in staged:
            staged[contact.last_name] = Account(name=contact.last_name)
        waiting.append(contact)

    if staged:
        created = port.create_accounts(list(staged.values()))
        missing = [a.name for a in created if not a.id]
        if missing or len(created) != len(staged):
            raise DmlError(
                "Account",
                [{"statusCode": "MISSING_ID", "message": f"no id assigned to {name!r}"} for name in missing]
                or [{"statusCode": "COUNT_MISMATCH", "message": f"{len(created)} of {len(staged)} created"}],
            )
        for acct, res in zip(staged.values(), created):
            acct.id = res.id
        logger.info("Created %d account(s)", len(created))

    for contact in waiting:
        contact.account_id = staged[contact.last_name].id
        linked += 1

    port.update_contacts(contacts)
    logger.info("Linked %d contact(s), %d skipped", linked, skipped)
    return LinkResult(len(staged), linked, skipped)
