"""
CRM DML CLI

Runs the DML exercises and the contact-to-account linker against a Salesforce
org over the REST API, authenticating with the JWT bearer flow.
"""
from __future__ import annotations

import argparse
import logging
import sys

from . import auth, config, exercises
from .persistence import load_unlinked_contacts
from .rest_client import RestClient


logger = logging.getLogger("crm_dml")


def configure_logging(verbose: bool = False) -> None:
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    if not logger.handlers:
        handler = logging.FileHandler(config.ensure_log_dir() / "dml_errors.log")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        if verbose:
            console = logging.StreamHandler()
            console.setFormatter(formatter)
            logger.addHandler(console)
    logger.setLevel(logging.INFO)


def connect() -> RestClient:
    print("🔐 Authenticating with Salesforce...")
    token, instance_url = auth.get_access_token()
    print(f"✓ Connected to {instance_url}")
    logger.info(f"Connected to Salesforce instance: {instance_url}")
    return RestClient(token, instance_url)


def _link_contacts(rest: RestClient, args) -> None:
    contacts = load_unlinked_contacts(rest, args.limit)
    print(f"👥 Found {len(contacts)} contact(s) without an account")
    res = exercises.upsert_accounts_with_contacts(rest, contacts)
    print(f"✓ Accounts created: {res.created}, contacts linked: {res.linked}, skipped: {res.skipped}")


def _exercise(rest: RestClient, args) -> None:
    if args.name == "insert-account":
        sfid = exercises.insert_account(rest, args.account_name)
        print(f"✓ Account created: {sfid}")
    elif args.name == "upsert-lead":
        sfid, created = exercises.upsert_lead_by_email(rest, args.email, args.last_name, args.company)
        print(f"✓ Lead {'created' if created else 'updated'}: {sfid}")
    elif args.name == "upsert-account":
        created, updated = exercises.upsert_accounts_by_external_id(
            rest, args.external_id_field, [{args.external_id_field: args.external_id, "Name": args.account_name}]
        )
        print(f"✓ Accounts created: {created}, updated: {updated}")
    elif args.name == "bulk-roundtrip":
        records = [{"Name": f"DML Demo {i + 1}"} for i in range(args.count)]
        deleted = exercises.bulk_insert_then_delete(rest, "Account", records)
        print(f"✓ Inserted and deleted {deleted} account(s)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crm-dml",
        description="Run Salesforce DML exercises and link contacts to accounts via REST API.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging output.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    link = sub.add_parser("link-contacts", help="Link unlinked contacts to accounts named after their last name.")
    link.add_argument("--limit", type=int, default=None, help="Maximum number of contacts to process.")
    link.set_defaults(func=_link_contacts)

    ex = sub.add_parser("exercise", help="Run a single DML exercise.")
    ex.add_argument("name", choices=["insert-account", "upsert-lead", "upsert-account", "bulk-roundtrip"])
    ex.add_argument("--account-name", default="DML Demo Account")
    ex.add_argument("--email", default="demo.lead@example.com")
    ex.add_argument("--last-name", default="Demo")
    ex.add_argument("--company", default="DML Demo Co")
    ex.add_argument("--external-id-field", default="AccountExtId__c")
    ex.add_argument("--external-id", default="DML-ACCT-1")
    ex.add_argument("--count", type=int, default=5)
    ex.set_defaults(func=_exercise)
    return parser


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        rest = connect()
        args.func(rest, args)
        return 0

    except KeyboardInterrupt:
        print("\n\n⚠️  Interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"\n❌ Error during {args.command}: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
