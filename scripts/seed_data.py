#!/usr/bin/env python3
"""Seed the leave policy and a small sample organisation.

Creates (idempotently):
  - the leave policy under ``LEAVE_POLICY_KEY``
  - one manager and two reports, each with a login account

Usage:
    python scripts/seed_data.py
    python scripts/seed_data.py --sick 12 --casual 12
    python scripts/seed_data.py --create-tables   # create tables first (dev only)
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
from leavetrack.auth.service import hash_password
from leavetrack.config import settings
from leavetrack.database import Base, async_session_factory, engine
from leavetrack.employees.models import Employee
from leavetrack.leave.models import LeavePolicy
import leavetrack.attendance.models  # noqa: F401

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("seed_data")

# (employee_number, name, is_manager, manager_name, password)
SAMPLE_EMPLOYEES = [
    (1001, "Asha Menon", True, None, "manager123"),
    (1002, "Ravi Kumar", False, "Asha Menon", "employee123"),
    (1003, "Meera Iyer", False, "Asha Menon", "employee123"),
]


async def seed(sick: int, casual: int, create_tables: bool = False) -> None:
    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as db:
        policy = await db.get(LeavePolicy, settings.LEAVE_POLICY_KEY)
        if policy is None:
            db.add(LeavePolicy(
                key=settings.LEAVE_POLICY_KEY, sick_total=sick, casual_total=casual,
            ))
            logger.info("Created leave policy %r (sick=%d, casual=%d)",
                        settings.LEAVE_POLICY_KEY, sick, casual)
        else:
            logger.info("Leave policy %r already exists. Skipping.", policy.key)

        for number, name, is_manager, manager_name, password in SAMPLE_EMPLOYEES:
            existing = await db.execute(
                select(LoginAccount).where(LoginAccount.employee_number == number)
            )
            if existing.scalars().first():
                logger.info("Employee number %d already exists. Skipping.", number)
                continue
            employee = Employee(
                emp_name=name, is_manager=is_manager, manager_name=manager_name,
            )
            db.add(employee)
            await db.flush()
            db.add(LoginAccount(
                employee_number=number,
                employee_id=employee.id,
                password_hash=hash_password(password),
            ))
            logger.info("Created %s -> %d", name, number)

        await db.commit()

    await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description="Seed leave policy and sample employees.")
    parser.add_argument("--sick", type=int, default=12, help="Sick leave days per employee")
    parser.add_argument("--casual", type=int, default=12, help="Casual leave days per employee")
    parser.add_argument("--create-tables", action="store_true", help="Run create_all first")
    args = parser.parse_args()

    asyncio.run(seed(args.sick, args.casual, create_tables=args.create_tables))


if __name__ == "__main__":
    main()
