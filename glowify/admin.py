"""
Admin bootstrap from the command line.

Usage:
    python -m glowify.admin grant <user_id>
    python -m glowify.admin check <user_id>

Uses DATABASE_URL / config/default.yaml unless --database-url is given.
"""
import argparse
from typing import List, Optional

from glowify.api.auth import is_admin, make_admin
from glowify.data import database


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Glowify admin management")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy URL (defaults to the configured one)")
    sub = parser.add_subparsers(dest="command", required=True)
    grant = sub.add_parser("grant", help="Grant admin rights to a platform user id")
    grant.add_argument("user_id")
    check = sub.add_parser("check", help="Report whether a user id is an admin")
    check.add_argument("user_id")
    args = parser.parse_args(argv)

    database.init_db(args.database_url)
    db = database.SessionLocal()
    try:
        if args.command == "grant":
            make_admin(db, args.user_id)
            print(f"{args.user_id} is now an admin")
            return 0
        admin = is_admin(db, args.user_id)
        print(f"{args.user_id}: {'admin' if admin else 'not an admin'}")
        return 0 if admin else 1
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
