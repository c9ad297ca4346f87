#!/usr/bin/env python3
"""
Create the School ERP tables and seed the default grade bands.

    python init_db.py            # create missing tables
    python init_db.py --reset    # drop everything first (asks for confirmation)
"""

import argparse

from app import create_app
from database import db, reset_database
from models.results import GradeDefinition

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Initialize the School ERP database")
    parser.add_argument('--reset', action='store_true', help="drop all tables before recreating them")
    parser.add_argument('--yes', action='store_true', help="skip the reset confirmation prompt")
    return parser.parse_args(argv)

def main(argv=None):
    args = parse_args(argv)
    # create_app already creates tables and seeds grades
    app = create_app()

    if args.reset:
        if not args.yes:
            print("WARNING: --reset deletes every attendance row, result and report record.")
            if input("Type 'yes' to continue: ").strip().lower() != 'yes':
                print("Reset cancelled.")
                return 1
        reset_database(app)

    with app.app_context():
        bands = db.session.query(GradeDefinition).count()
    print(f"Database ready at {app.config['SQLALCHEMY_DATABASE_URI']} ({bands} grade bands)")
    return 0

if __name__ == '__main__':
    raise SystemExit(main())
