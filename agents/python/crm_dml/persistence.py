from __future__ import annotations

import logging
from typing import List, Set

from .models import Account, Contact
from .rest_client import RestClient, _chunk, soql_quote


logger = logging.getLogger(__name__)


class SalesforcePersistence:
    """PersistencePort over the REST API. Writes are all-or-none."""

    def __init__(self, rest: RestClient):
        self.rest = rest

    def query_accounts_by_name(self, names: Set[str]) -> List[Account]:
        result: List[Account] = []
        for chunk in _chunk(sorted(names)):
            soql = f"SELECT Id, Name FROM Account WHERE Name IN ({','.join(soql_quote(n) for n in chunk)})"
            result.extend(Account.from_record(r) for r in self.rest.query(soql))
        return result

    def create_accounts(self, accounts: List[Account]) -> List[Account]:
        results = self.rest.insert("Account", [a.to_payload() for a in accounts], all_or_none=True)
        for acct, res in zip(accounts, results):
            acct.id = res.get("id")
        return accounts

    def update_contacts(self, contacts: List[Contact]) -> None:
        """Insert the Contacts that have no Id yet (recording their new Ids), update the rest."""
        unsaved = [c for c in contacts if not c.id]
        saved = [c for c in contacts if c.id]
        if unsaved:
            results = self.rest.insert("Contact", [c.to_insert_payload() for c in unsaved], all_or_none=True)
            for contact, res in zip(unsaved, results):
                contact.id = res.get("id")
            logger.info("Inserted %d contact(s)", len(unsaved))
        if saved:
            self.rest.update("Contact", [c.to_payload() for c in saved], all_or_none=True)
            logger.info("Updated %d contact(s)", len(saved))


def load_unlinked_contacts(rest: RestClient, limit: int | None = None) -> List[Contact]:
    soql = "SELECT Id, FirstName, LastName, Email, AccountId FROM Contact WHERE AccountId = null"
    if limit:
        soql += f" LIMIT {int(limit)}"
    return [Contact.from_record(r) for r in rest.query(soql)]
