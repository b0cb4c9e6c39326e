"""Import a bank statement CSV from the command line.

    python -m tools.import_statement statement.csv

Runs the same normalize / dedup / batch-insert pipeline as the upload
endpoint, using the service-role key from the environment or .env.
"""

import argparse
import os
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv
from supabase import Client, create_client

from apps.api.domains.ingestion.service import ExistingReferencesError, ingest_statement
from apps.api.domains.ingestion.store import TransactionStore
from packages.pledge_engine.normalizer import StatementFormatError


def get_env_value(*names: str) -> Optional[str]:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


def connect() -> Client:
    url = get_env_value("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
    key = get_env_value("SUPABASE_SERVICE_KEY", "SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        raise SystemExit(
            "❌ Missing Supabase env vars. Set SUPABASE_URL and "
            "SUPABASE_SERVICE_KEY/SUPABASE_SERVICE_ROLE_KEY."
        )
    return create_client(url, key)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import a bank statement CSV")
    parser.add_argument("file", help="Path to the CSV export")
    parser.add_argument(
        "--page-size",
        type=int,
        default=1000,
        help="Rows per page when reading existing references",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None, client: Optional[Client] = None) -> int:
    args = build_parser().parse_args(argv)

    if not os.path.exists(args.file):
        print(f"❌ File not found: {args.file}")
        return 1
    if not args.file.lower().endswith(".csv"):
        print("❌ Only CSV statements can be imported.")
        return 1

    load_dotenv()
    if client is None:
        client = connect()

    print(f"📂 Reading file: {args.file}")
    with open(args.file, "rb") as fh:
        content = fh.read()

    try:
        result = ingest_statement(TransactionStore(client, page_size=args.page_size), content)
    except StatementFormatError as e:
        print(f"❌ {e}")
        return 1
    except ExistingReferencesError as e:
        print(f"❌ Error checking existing transactions: {e}")
        return 1

    for warning in result.warnings:
        print(f"⚠️ Row {warning.row}: could not read {warning.field} {warning.value!r}")
    for reference in result.duplicate_references:
        print(f"   Skipped duplicate: {reference}")

    print(("🚀 " if result.success else "❌ ") + result.message)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
