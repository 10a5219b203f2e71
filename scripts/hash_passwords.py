#!/usr/bin/env python3
"""Re-hash plaintext login passwords with bcrypt.

Rows whose ``password_hash`` is already a recognised hash are left alone.

Usage:
    python scripts/hash_passwords.py
    python scripts/hash_passwords.py --dry-run   # only report what would change
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# ── Path setup ────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

from sqlalchemy import select

from leavetrack.auth.models import LoginAccount
from leavetrack.auth.service import hash_password, is_password_hash
from leavetrack.database import async_session_factory
import leavetrack.attendance.models  # noqa: F401
import leavetrack.employees.models  # noqa: F401
import leavetrack.leave.models  # noqa: F401

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("hash_passwords")


async def rehash(dry_run: bool = False) -> int:
    updated = 0
    async with async_session_factory() as db:
        result = await db.execute(select(LoginAccount))
        for account in result.scalars().all():
            if is_password_hash(account.password_hash):
                continue
            logger.info("Hashing password for employee number %s", account.employee_number)
            if not dry_run:
                account.password_hash = hash_password(account.password_hash)
            updated += 1
        if not dry_run:
            await db.commit()
    return updated


def main():
    parser = argparse.ArgumentParser(description="Hash plaintext login passwords.")
    parser.add_argument("--dry-run", action="store_true", help="Report only, no writes")
    args = parser.parse_args()

    count = asyncio.run(rehash(dry_run=args.dry_run))
    logger.info("%s %d password(s).", "Would hash" if args.dry_run else "Hashed", count)


if __name__ == "__main__":
    main()
