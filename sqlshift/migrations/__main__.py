"""Entry point for running migrations as a module.

Usage:
    python -m sqlshift.migrations init --root .
    python -m sqlshift.migrations prog add --root . --name AddReports
    python -m sqlshift.migrations db update --project . --conn mssql+pyodbc://...
    python -m sqlshift.migrations db status --project .
"""

from .cli import main

if __name__ == "__main__":
    main()
