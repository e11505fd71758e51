"""
Data models for the virtual try-on application

Everything here is transient: created for one wizard session or one
request and discarded afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


MAX_FILE_SIZE = 10485760  # 10MB per image


class Step(str, Enum):
    """Current stage of the upload wizard"""
    COLLECTING_MODEL = "collecting_model"
    COLLECTING_CLOTHING = "collecting_clothing"


@dataclass(frozen=True)
class FileRef:
    """An uploaded image held in memory"""
    name: str
    mime_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return bool(self.mime_type) and self.mime_type.lower().startswith("image/")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'mime_type': self.mime_type,
            'size': self.size
        }


@dataclass(frozen=True)
class Selection:
    """A selected file paired with the preview handle that displays it"""
    file: FileRef
    preview: str


@dataclass
class SelectionState:
    """Point-in-time view of the wizard, safe to hand to other components"""
    step: Step
    files: List[FileRef]
    previews: List[str]
    error: Optional[str] = None
    progress: int = 0
    uploading: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'step': self.step.value,
            'files': [
                dict(f.to_dict(), preview=preview)
                for f, preview in zip(self.files, self.previews)
            ],
            'error': self.error,
            'progress': self.progress,
            'uploading': self.uploading
        }


@dataclass(frozen=True)
class GenerationResult:
    """Composite image returned by the relay"""
    image: str  # base64 payload
    mime_type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': True,
            'image': self.image,
            'mimeType': self.mime_type
        }


@dataclass(frozen=True)
class GenerationCompleted:
    """Event emitted once per successful submission, after the wizard resets"""
    image: str
    mime_type: str


@dataclass
class GenerationProgress:
    """Progress update pushed to Socket.IO clients"""
    step: str
    message: str
    progress_percent: int
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'step': self.step,
            'message': self.message,
            'progress_percent': self.progress_percent,
            'details': self.details
        }
