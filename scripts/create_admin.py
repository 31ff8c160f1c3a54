#!/usr/bin/env python3
"""
Create the first admin account.

Usage:
    python scripts/create_admin.py --email admin@example.com --password Secret123 --name "Site Admin"
"""
import argparse
import asyncio
import sys

from pydantic import ValidationError as SchemaError

from qualinex.core.database import async_session, init_db
from qualinex.core.errors import AppError
from qualinex.models.user import UserCreate
from qualinex.services.users import ensure_admin


async def main(email: str, password: str, full_name: str) -> int:
    await init_db()

    try:
        user_in = UserCreate(email=email, password=password, full_name=full_name)
    except SchemaError as exc:
        print(f"❌ Invalid input: {exc}")
        return 1

    async with async_session() as session:
        try:
            admin = await ensure_admin(session, user_in)
        except AppError as exc:
            print(f"❌ {exc.message}")
            return 1

    print("=" * 60)
    print("ADMIN CREATED")
    print("=" * 60)
    print(f"   ID:    {admin.id}")
    print(f"   Email: {admin.email}")
    print(f"   Name:  {admin.full_name}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the first admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", required=True, dest="full_name")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.email, args.password, args.full_name)))
