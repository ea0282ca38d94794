"""Management CLI.

Usage:
    python -m quotebook.cli create-tables          # Create any missing tables
    python -m quotebook.cli issue-token <owner>    # Print a bearer token for an owner
    python -m quotebook.cli list-drafts <owner>    # Show an owner's draft quotations
"""

import asyncio
import sys

from sqlalchemy import create_engine, select

from quotebook.auth.jwt import create_access_token
from quotebook.config import settings
from quotebook.database import create_tables
from quotebook.models.quotation import Quotation


def list_drafts(owner_id: str):
    engine = create_engine(settings.database_url_sync)
    with engine.connect() as conn:
        result = conn.execute(
            select(
                Quotation.id,
                Quotation.quotation_number,
                Quotation.project_title,
                Quotation.updated_at,
            )
            .where(Quotation.user_id == owner_id, Quotation.status == "draft")
            .order_by(Quotation.updated_at.desc())
        )
        rows = result.all()
    for row in rows:
        print(f"  {row.id}  {row.quotation_number:<20} {row.project_title or 'Untitled'}  ({row.updated_at:%Y-%m-%d %H:%M})")
    print(f"\n{len(rows)} draft(s)")


def issue_token(owner_id: str):
    print(create_access_token(owner_id))


def main():
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    arg = sys.argv[2] if len(sys.argv) > 2 else ""
    if cmd == "create-tables":
        asyncio.run(create_tables())
        print("Tables created.")
    elif cmd == "issue-token" and arg:
        issue_token(arg)
    elif cmd == "list-drafts" and arg:
        list_drafts(arg)
    else:
        print("Usage: python -m quotebook.cli [create-tables|issue-token <owner>|list-drafts <owner>]")


if __name__ == "__main__":
    main()
