"""Auditor-facing views and manual corrections."""
from .ledger import AuditorLedger

__all__ = ["AuditorLedger"]
