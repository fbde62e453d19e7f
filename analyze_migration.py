#!/usr/bin/env python3
"""
Control-M Migration Analyzer

Analyzes Control-M XML exports and plans their migration to Airflow.

Usage:
    python analyze_migration.py analyze -i export.xml
    python analyze_migration.py analyze -i export.xml -f json -o reports
    python analyze_migration.py export-sqlite -i export.xml -o controlm.db
    python analyze_migration.py serve -d controlm.db --port 8080
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from controlm_analysis.cli import main


if __name__ == "__main__":
    sys.exit(main())
