"""
Exceptions raised by the browsing insights core.
"""


class InvalidDateRange(ValueError):
    """Raised when a requested date range cannot be honoured.

    ``condition`` names the violated rule so the API can report it verbatim.
    """

    def __init__(self, message: str, condition: str):
        super().__init__(message)
        self.condition = condition


class InvalidArgument(ValueError):
    """Raised for programmer errors such as an unknown behaviour tier."""
