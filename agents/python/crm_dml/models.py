from __future__ import annotations

from typing import Optional


class Account:
    def __init__(self, name: str, id: Optional[str] = None):
        self.id = id
        self.name = name

    @classmethod
    def from_record(cls, rec: dict) -> "Account":
        return cls(name=rec["Name"], id=rec.get("Id"))

    def to_payload(self) -> dict:
        return {"Name": self.name}

    def __repr__(self) -> str:
        return f"Account(id={self.id!r}, name={self.name!r})"


class Contact:
    """A Contact; ``last_name`` is the key its Account is resolved by, ``account_id`` the link."""

    def __init__(
        self,
        last_name: Optional[str],
        id: Optional[str] = None,
        account_id: Optional[str] = None,
        first_name: Optional[str] = None,
        email: Optional[str] = None,
    ):
        self.id = id
        self.last_name = last_name
        self.account_id = account_id
        self.first_name = first_name
        self.email = email

    @classmethod
    def from_record(cls, rec: dict) -> "Contact":
        return cls(
            last_name=rec.get("LastName"),
            id=rec.get("Id"),
            account_id=rec.get("AccountId"),
            first_name=rec.get("FirstName"),
            email=rec.get("Email"),
        )

    def to_payload(self) -> dict:
        return {"Id": self.id, "AccountId": self.account_id}

    def to_insert_payload(self) -> dict:
        fields = {
            "LastName": self.last_name,
            "FirstName": self.first_name,
            "Email": self.email,
            "AccountId": self.account_id,
        }
        return {k: v for k, v in fields.items() if v is not None}

    def __repr__(self) -> str:
        return f"Contact(id={self.id!r}, last_name={self.last_name!r}, account_id={self.account_id!r})"
