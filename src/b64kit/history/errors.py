"""Recent-files history errors."""


class HistoryError(Exception):
    """Raised when the recent-files history cannot be read or written."""
