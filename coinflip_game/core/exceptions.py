class FlipInProgressError(Exception):
    """Raised when a flip is started while another flip is still being resolved."""

    def __init__(self, message: str = "A flip is already in progress"):
        super().__init__(message)


class StorageError(Exception):
    """Raised by progress stores when the backing store cannot be read or written."""

    def __init__(self, message: str, key: str = None):
        super().__init__(message)
        self.key = key
