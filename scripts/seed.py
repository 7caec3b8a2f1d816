#!/usr/bin/env python3
"""
Seed the Evexia database with demo data.

Creates the demo patient with records from three hospitals, the provider
directory, and one authorized provider. Safe to run repeatedly.
"""

import argparse
import sys

from evexia.core.database import SessionLocal, init_db
from evexia.demo import seed_demo_data
from evexia.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Seed Evexia with demo data")
    parser.add_argument(
        "--skip-create-tables",
        action="store_true",
        help="Assume the schema already exists (e.g. after alembic upgrade)",
    )
    args = parser.parse_args()

    setup_logging()

    if not args.skip_create_tables:
        init_db()

    session = SessionLocal()
    try:
        patient = seed_demo_data(session)
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    print(f"\n{'=' * 60}")
    print("Demo data seeded")
    print(f"Patient: {patient.name} ({patient.email})")
    print(f"{'=' * 60}\n")
    print(f"DEMO_PATIENT_ID={patient.id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
