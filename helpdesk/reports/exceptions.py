class ReportError(Exception):
    """Base class for report requests that cannot be computed."""


class InvalidReportRequest(ReportError):
    """Required filter missing or malformed (HTTP 400)."""


class ReportNotFound(ReportError):
    """Referenced category or template does not exist (HTTP 404)."""
