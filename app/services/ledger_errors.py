# app/services/ledger_errors.py
"""
Failures the scan ledger raises instead of returning.
Non-fatal anomalies (bad direction, unmatched OUT, unknown building) are
never raised; they come back inside ScanResult.
"""


class LedgerError(Exception):
    """Infrastructure failure surfaced to the ingestion adapter."""

    retryable = False


class ScanContentionError(LedgerError):
    """A building/tag lock could not be acquired in time. Retry the whole scan."""

    retryable = True


class StorageUnavailableError(LedgerError):
    """The store failed mid-call; nothing was committed."""
