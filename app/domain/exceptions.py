"""
Domain exceptions. Both derive from ValueError so the API's ValueError
handler still applies.
"""


class LedgerConfigurationError(ValueError):
    """Snapshot cannot be reported on as configured (e.g. unmapped account type)."""


class InvalidReportRequest(ValueError):
    """Report parameters are malformed (bad date, start after end, ...)."""
