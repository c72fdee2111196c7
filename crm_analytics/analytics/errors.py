"""
Analytics Errors

Client errors carry a 400 status and a fixed message; anything else raised
while serving analytics is treated as an upstream failure (500).
"""


class AnalyticsError(Exception):
    """Base class for analytics errors with an HTTP status"""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidTimeRangeError(AnalyticsError):
    """Unrecognized ``timeRange`` under the strict range policy"""

    status_code = 400


class ExportTypeError(AnalyticsError):
    """Missing or unrecognized export ``type``"""

    status_code = 400
