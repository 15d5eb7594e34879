from enum import Enum


class SourceType(str, Enum):
    """Where a document's text came from."""
    FILE = "file"
    URL = "url"
    CONTENT = "content"
