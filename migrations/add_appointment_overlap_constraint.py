"""
Add the appointment overlap exclusion constraint

Databases created before the constraint existed can still hold two active
appointments of one employee at overlapping times. This migration:
- enables the btree_gist extension
- adds appointment_time_conflict (EXCLUDE USING gist, cancelled rows ignored)

Existing overlaps make ALTER TABLE fail; they are listed first so they can
be resolved by hand.

Run with: python migrations/add_appointment_overlap_constraint.py
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import text

from salonbook.database import engine
from salonbook.models import APPOINTMENT_CONFLICT_CONSTRAINT


def find_overlaps(conn):
    """Pairs of active appointments of the same employee that overlap"""
    result = conn.execute(text("""
        SELECT a.id, b.id, a.employee_id, a.scheduled_at, b.scheduled_at
        FROM appointments a
        JOIN appointments b
          ON a.employee_id = b.employee_id
         AND a.id < b.id
         AND a.scheduled_at < b.ends_at
         AND b.scheduled_at < a.ends_at
        WHERE a.status <> 'cancelled' AND b.status <> 'cancelled'
        ORDER BY a.employee_id, a.scheduled_at
    """))
    return result.fetchall()


def upgrade():
    """Add the overlap constraint"""
    with engine.connect() as conn:
        if conn.dialect.name != "postgresql":
            print("ℹ️  Not a PostgreSQL database - overlap constraint not supported, skipping")
            return

        # Check if constraint already exists to make migration idempotent
        result = conn.execute(
            text("SELECT 1 FROM pg_constraint WHERE conname = :name"),
            {"name": APPOINTMENT_CONFLICT_CONSTRAINT},
        )
        if result.first():
            print(f"ℹ️  {APPOINTMENT_CONFLICT_CONSTRAINT} constraint already exists")
            return

        overlaps = find_overlaps(conn)
        if overlaps:
            print(f"❌ Found {len(overlaps)} overlapping appointment pairs:")
            for first_id, second_id, employee_id, first_start, second_start in overlaps:
                print(
                    f"   employee {employee_id}: #{first_id} ({first_start}) overlaps #{second_id} ({second_start})"
                )
            print("Cancel or move these appointments, then run the migration again.")
            sys.exit(1)

        conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))
        print("✅ btree_gist extension enabled")

        conn.execute(text(f"""
            ALTER TABLE appointments
            ADD CONSTRAINT {APPOINTMENT_CONFLICT_CONSTRAINT}
            EXCLUDE USING gist (
                employee_id WITH =,
                tstzrange(scheduled_at, ends_at, '[)') WITH &&
            )
            WHERE (status <> 'cancelled')
        """))
        print(f"✅ Added {APPOINTMENT_CONFLICT_CONSTRAINT} constraint")

        conn.commit()
        print("\n✅ Migration completed successfully!")


def downgrade():
    """Remove the overlap constraint (the extension is left installed)"""
    with engine.connect() as conn:
        if conn.dialect.name != "postgresql":
            return
        conn.execute(text(
            f"ALTER TABLE appointments DROP CONSTRAINT IF EXISTS {APPOINTMENT_CONFLICT_CONSTRAINT}"
        ))
        conn.commit()
        print("✅ Migration rolled back successfully!")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Manage the appointment overlap constraint migration")
    parser.add_argument("--down", action="store_true", help="Rollback the migration")
    args = parser.parse_args()

    if args.down:
        print("Rolling back migration...")
        downgrade()
    else:
        print("Running migration...")
        upgrade()
