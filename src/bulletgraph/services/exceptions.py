"""Custom exceptions for bulletgraph services."""


class FileModifiedError(Exception):
    """Raised when a file is modified during an atomic write operation.

    The file changed between the initial read and the final write, so
    writing would discard someone else's edits.

    Attributes:
        path: Path to the file that was modified
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str = "File was modified during write operation"):
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class DocumentError(Exception):
    """Raised when an edit targets a line that holds no bullet.

    Attributes:
        line_number: 1-based line number given by the caller
        message: Human-readable error message
    """

    def __init__(self, line_number: int, message: str = "No bullet at line"):
        self.line_number = line_number
        self.message = message
        super().__init__(f"{message} {line_number}")
