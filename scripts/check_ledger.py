#!/usr/bin/env python3
"""Leave ledger check — compare cached leave counters with the ledger.

For every employee, the sick / casual counters must equal the sum of
``applied_days`` over their requests still holding their days. A rejected
request releases its days once; approving it afterwards does not consume
them again, so such requests are not counted either.

Usage:
    python scripts/check_ledger.py           # report drift
    python scripts/check_ledger.py --fix     # also reset drifted counters
    python scripts/check_ledger.py --json    # machine-readable output

Exit codes:
    0 = every counter matches the ledger (or drift was fixed)
    1 = drift found
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# ── Path setup ────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavetrack.common.constants import LeaveType
from leavetrack.database import async_session_factory
from leavetrack.employees.models import Employee
from leavetrack.leave.service import LeaveService
import leavetrack.attendance.models  # noqa: F401
import leavetrack.auth.models  # noqa: F401

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("check_ledger")


async def find_drift(db: AsyncSession, fix: bool = False) -> list[dict]:
    """Return one entry per (employee, leave type) whose counter drifted."""
    drift: list[dict] = []
    result = await db.execute(select(Employee).order_by(Employee.emp_name))
    for emp in result.scalars().all():
        totals = await LeaveService.ledger_totals(db, emp.id)
        for leave_type in LeaveType:
            cached = emp.taken(leave_type)
            ledger = totals[leave_type]
            if cached == ledger:
                continue
            drift.append({
                "employee_id": str(emp.id),
                "emp_name": emp.emp_name,
                "leave_type": leave_type.value,
                "counter": cached,
                "ledger": ledger,
            })
            if fix:
                setattr(emp, Employee.counter_column(leave_type).key, ledger)
    if fix and drift:
        await db.commit()
    return drift


async def run(fix: bool = False) -> list[dict]:
    async with async_session_factory() as db:
        return await find_drift(db, fix=fix)


def main():
    parser = argparse.ArgumentParser(
        description="Compare cached leave counters with the leave ledger.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--fix", action="store_true", help="Reset drifted counters to the ledger totals")
    parser.add_argument("--json", action="store_true", help="Print drift as JSON")
    args = parser.parse_args()

    drift = asyncio.run(run(fix=args.fix))

    if args.json:
        print(json.dumps({"drift": drift, "fixed": bool(args.fix and drift)}, indent=2))
    else:
        for item in drift:
            logger.warning(
                "%s (%s) %s: counter=%d ledger=%d",
                item["emp_name"], item["employee_id"], item["leave_type"],
                item["counter"], item["ledger"],
            )
        if not drift:
            logger.info("All leave counters match the ledger.")
        elif args.fix:
            logger.info("Reset %d drifted counter(s).", len(drift))

    if drift and not args.fix:
        sys.exit(1)


if __name__ == "__main__":
    main()
