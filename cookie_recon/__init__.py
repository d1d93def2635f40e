"""Troop cookie sale reconciliation package.

Importers fill a DataStore from the Digital Cookie and Smart Cookie exports;
build_unified_dataset() turns the frozen snapshot into one season ledger.
Run the API standalone via Uvicorn:

    python -m uvicorn cookie_recon.api_app:app --host 127.0.0.1 --port 8000
"""
