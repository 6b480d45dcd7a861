"""Exceptions raised by mintgrabber."""


class MintGrabberError(Exception):
    """Base class for mintgrabber errors."""


class TransientError(MintGrabberError):
    """A failure worth retrying."""


class TrendTimeoutError(TransientError):
    """The trends API omitted its payload, which it does when a request times out."""

    def __init__(self, message: str = "Trend timeout"):
        super().__init__(message)


class NoHistoryError(MintGrabberError):
    """No monthly history exists to derive an account's start date from."""


class StructuralError(MintGrabberError):
    """Misconfiguration that aborts the whole run. Never retried."""


class UnsupportedReportTypeError(StructuralError, ValueError):
    def __init__(self, report_type):
        super().__init__(f"Unsupported report type: {report_type}")
        self.report_type = report_type


class InvalidReportTypeError(StructuralError, ValueError):
    def __init__(self, message: str = "Invalid report type."):
        super().__init__(message)


class AmbiguousReportTypeError(StructuralError):
    """An account returned history for both the asset and the debt report."""

    def __init__(self, account_id: str):
        super().__init__(
            f"Account {account_id} has history for both ASSETS_TIME and DEBTS_TIME."
        )
        self.account_id = account_id
