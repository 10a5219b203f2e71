"""001 – Initial schema: employees, leave ledger, attendance, sessions.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000+00:00
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("leave_type", ["sick", "casual"]),
    ("leave_status", ["pending", "approved", "rejected"]),
]


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id                        UUID PRIMARY KEY,
            emp_name                  VARCHAR(200) NOT NULL,
            is_manager                BOOLEAN NOT NULL DEFAULT FALSE,
            manager_name              VARCHAR(200),
            total_sick_leave_taken    INTEGER NOT NULL DEFAULT 0,
            total_casual_leave_taken  INTEGER NOT NULL DEFAULT 0,
            created_at                TIMESTAMPTZ DEFAULT NOW(),
            updated_at                TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_employee_name_length CHECK (length(emp_name) >= 3),
            CONSTRAINT ck_employee_manager_name
                CHECK (is_manager OR manager_name IS NOT NULL),
            CONSTRAINT ck_employee_sick_non_negative
                CHECK (total_sick_leave_taken >= 0),
            CONSTRAINT ck_employee_casual_non_negative
                CHECK (total_casual_leave_taken >= 0)
        )
    """)
    op.execute(
        "CREATE INDEX ix_employees_manager_name ON employees (manager_name)"
    )

    # ── 2. leave_policies ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_policies (
            key           VARCHAR(50) PRIMARY KEY,
            sick_total    INTEGER NOT NULL CHECK (sick_total >= 0),
            casual_total  INTEGER NOT NULL CHECK (casual_total >= 0),
            updated_at    TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 3. leave_requests ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_requests (
            id            UUID PRIMARY KEY,
            employee_id   UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            policy_key    VARCHAR(50) REFERENCES leave_policies(key),
            leave_type    leave_type NOT NULL,
            start_date    DATE NOT NULL,
            end_date      DATE NOT NULL,
            applied_days  INTEGER NOT NULL,
            status        leave_status NOT NULL DEFAULT 'pending',
            days_released BOOLEAN NOT NULL DEFAULT FALSE,
            created_at    TIMESTAMPTZ DEFAULT NOW(),
            updated_at    TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_leave_applied_days_positive CHECK (applied_days > 0),
            CONSTRAINT ck_leave_date_order CHECK (end_date >= start_date)
        )
    """)
    op.execute(
        "CREATE INDEX ix_leave_requests_employee_id ON leave_requests (employee_id)"
    )
    op.execute(
        "CREATE INDEX ix_leave_requests_status ON leave_requests (status)"
    )

    # ── 4. attendance_records ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE attendance_records (
            id                UUID PRIMARY KEY,
            employee_id       UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            date              DATE NOT NULL,
            clock_in          TIMESTAMPTZ NOT NULL,
            clock_out         TIMESTAMPTZ,
            total_work_hours  NUMERIC(5, 2),
            created_at        TIMESTAMPTZ DEFAULT NOW(),
            updated_at        TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_attendance_emp_date UNIQUE (employee_id, date),
            CONSTRAINT ck_attendance_hours_non_negative
                CHECK (total_work_hours IS NULL OR total_work_hours >= 0)
        )
    """)
    op.execute(
        "CREATE INDEX ix_attendance_records_employee_id "
        "ON attendance_records (employee_id)"
    )

    # ── 5. login_accounts ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE login_accounts (
            id               UUID PRIMARY KEY,
            employee_number  INTEGER NOT NULL UNIQUE,
            employee_id      UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            password_hash    VARCHAR(255) NOT NULL,
            active_token     TEXT
        )
    """)

    # ── 6. revoked_tokens ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE revoked_tokens (
            token_hash  VARCHAR(64) PRIMARY KEY,
            expires_at  TIMESTAMPTZ NOT NULL,
            revoked_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX ix_revoked_tokens_expires_at ON revoked_tokens (expires_at)"
    )

    # ── Seed data ─────────────────────────────────────────────────────────
    op.execute("""
        INSERT INTO leave_policies (key, sick_total, casual_total)
        VALUES ('default', 12, 12)
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "revoked_tokens",
        "login_accounts",
        "attendance_records",
        "leave_requests",
        "leave_policies",
        "employees",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    # Drop enum types
    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)
