"""001 – Initial schema: users, leave requests, app settings.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 10:00:00.000000+05:30
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Enum columns are VARCHAR + CHECK (values as displayed), not native types
CHECKS: dict[str, list[str]] = {
    "staff_role": [
        "Teaching Staff", "Non-Teaching Staff", "HOD", "Principal",
        "Admin", "Admin 1", "Admin 2",
    ],
    "approver_role": ["HOD", "Principal", "Admin"],
    "department": [
        "AIML", "AIDA", "COMPS", "IT", "CIVIL", "MECH", "AUTOMOBILE",
        "Student Section", "TPO", "Exam Cell", "Not Applicable",
    ],
    "leave_category": ["CL", "CO", "ML", "VL", "EL"],
    "leave_status": ["Pending", "Approved", "Rejected"],
}


def _in(column: str, check: str) -> str:
    vals = ", ".join(f"'{v}'" for v in CHECKS[check])
    return f"CHECK ({column} IN ({vals}))"


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. users ──────────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE users (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            email           VARCHAR(255) NOT NULL UNIQUE,
            name            VARCHAR(200) NOT NULL,
            password_hash   VARCHAR(255),
            role            VARCHAR(32) NOT NULL {_in("role", "staff_role")},
            department      VARCHAR(32) NOT NULL {_in("department", "department")},
            date_of_joining DATE,
            approver_role   VARCHAR(32) {_in("approver_role", "approver_role")},
            approver_id     UUID,
            quotas          JSON NOT NULL,
            deducted_request_ids JSON NOT NULL DEFAULT '[]',
            created_at      TIMESTAMPTZ DEFAULT NOW(),
            updated_at      TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE UNIQUE INDEX idx_users_email_lower ON users(LOWER(email))")
    op.execute("CREATE INDEX idx_users_created ON users(created_at, email)")

    # ── 2. leave_requests ─────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE leave_requests (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id           UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            user_name         VARCHAR(200) NOT NULL,
            department        VARCHAR(32) NOT NULL {_in("department", "department")},
            category          VARCHAR(32) NOT NULL {_in("category", "leave_category")},
            start_date        DATE NOT NULL,
            end_date          DATE NOT NULL,
            manual_days       INTEGER,
            total_days        INTEGER NOT NULL,
            reason            TEXT,
            status            VARCHAR(32) NOT NULL DEFAULT 'Pending' {_in("status", "leave_status")},
            applied_at        TIMESTAMPTZ NOT NULL,
            approver_id       UUID,
            decided_by_id     UUID,
            decided_by_name   VARCHAR(200),
            decided_at        TIMESTAMPTZ,
            deduction_applied BOOLEAN NOT NULL DEFAULT FALSE
        )
    """)
    op.execute("CREATE INDEX ix_leave_requests_user_id ON leave_requests(user_id)")
    op.execute(
        "CREATE INDEX ix_leave_requests_approver_status ON leave_requests(approver_id, status)"
    )
    op.execute("CREATE INDEX idx_leave_req_applied ON leave_requests(applied_at DESC)")

    # ── 3. app_settings ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE app_settings (
            key         VARCHAR(100) PRIMARY KEY,
            value       TEXT NOT NULL,
            description TEXT,
            updated_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ══════════════════════════════════════════════════════════════════════
    # SEED DATA
    # ══════════════════════════════════════════════════════════════════════

    op.execute("""
        INSERT INTO app_settings (key, value, description) VALUES
        ('admin_access_code', 'SCOE2024', 'Shared secret gating Admin self-registration')
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    for t in ["app_settings", "leave_requests", "users"]:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    op.execute('DROP EXTENSION IF EXISTS "uuid-ossp"')
