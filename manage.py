#!/usr/bin/env python3
"""
Management script for the salesboard CLI commands.

    python manage.py initdb
    python manage.py ingest sales_2024.xlsx --entity HQ
    python manage.py history --entity HQ --limit 5
"""

import sys

from salesboard.interfaces.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
