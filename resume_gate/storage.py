"""
Object storage for the resume PDF.

The service only ever reads one object: the file named by RESUME_PDF_KEY. An
ObjectStore returns the object's bytes, or None when the key does not exist.
"""
import base64
from abc import ABC, abstractmethod
from pathlib import Path

from resume_gate.config import DEFAULT_PDF_KEY
from resume_gate.email import Attachment
from resume_gate.errors import DependencyError


class ObjectStore(ABC):
    @abstractmethod
    def get(self, key: str) -> bytes | None:
        ...


class InMemoryObjectStore(ObjectStore):
    def __init__(self, objects: dict[str, bytes] | None = None):
        self.objects = dict(objects or {})

    def get(self, key):
        return self.objects.get(key)


class FileSystemObjectStore(ObjectStore):
    """Objects are files under root; the key is the relative path."""

    def __init__(self, root: str):
        self._root = Path(root).resolve()

    def get(self, key):
        path = (self._root / key).resolve()
        # Keys like "../../etc/passwd" must not escape the bucket directory.
        if self._root not in path.parents:
            return None
        if not path.is_file():
            return None
        return path.read_bytes()


def fetch_attachment(store: ObjectStore, key: str) -> Attachment:
    """
    Load key from store as a base64 email attachment.

    Raises DependencyError when the object is missing or the store fails, so
    the decision handler leaves the request pending.
    """
    try:
        data = store.get(key)
    except OSError as e:
        raise DependencyError(f"Object storage read failed for key {key}: {e}") from e
    if data is None:
        raise DependencyError(f"Resume PDF not found in object storage at key: {key}")
    filename = key.split("/")[-1] or DEFAULT_PDF_KEY
    return Attachment(filename=filename, content=base64.b64encode(data).decode("ascii"))
