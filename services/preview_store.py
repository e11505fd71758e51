"""
Preview handle registry

Hands out short-lived handles that resolve to an uploaded file's bytes so
clients can render thumbnails. Only the wizard creates and revokes handles;
everything else may only resolve them.
"""

import threading
import uuid
from typing import Dict, Optional

from models.schemas import FileRef


class PreviewStore:
    """Thread-safe map of preview handle -> FileRef"""

    def __init__(self):
        self._previews: Dict[str, FileRef] = {}
        self._lock = threading.Lock()

    def create(self, file_ref: FileRef) -> str:
        """Register a file and return its new preview handle"""
        handle = uuid.uuid4().hex
        with self._lock:
            self._previews[handle] = file_ref
        return handle

    def revoke(self, handle: str) -> bool:
        """
        Release a preview handle.

        Returns:
            True if the handle was live, False if already revoked
        """
        with self._lock:
            return self._previews.pop(handle, None) is not None

    def resolve(self, handle: str) -> Optional[FileRef]:
        """Get the file behind a handle, None once revoked"""
        with self._lock:
            return self._previews.get(handle)

    def __contains__(self, handle) -> bool:
        with self._lock:
            return handle in self._previews

    def __len__(self) -> int:
        with self._lock:
            return len(self._previews)
