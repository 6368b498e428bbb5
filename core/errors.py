"""
Analytics Error Types

Errors raised by the data access layer and propagated unchanged through the
analytics pipeline.
"""


class RepositoryError(Exception):
    """Raised when aggregate data cannot be read from the operations database."""

    def __init__(self, message: str, query_name: str = ""):
        super().__init__(message)
        self.query_name = query_name
