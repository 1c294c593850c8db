class SessionNotFoundError(LookupError):
    """Raised when an operation targets a session that does not exist"""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class EventUploadLimitError(ValueError):
    """Raised when a single upload carries more events than allowed"""

    def __init__(self, count: int, limit: int):
        super().__init__(f"Too many events in one request: {count} (max {limit})")
        self.count = count
        self.limit = limit


class UnsupportedDocumentError(ValueError):
    """Raised when a knowledge base document cannot be loaded"""


class DocumentFetchError(RuntimeError):
    """Raised when a remote document cannot be fetched"""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to load URL {url}: {reason}")
        self.url = url
        self.reason = reason
