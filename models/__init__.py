"""
Data models for the virtual try-on application
"""

from .schemas import (
    MAX_FILE_SIZE,
    Step,
    FileRef,
    Selection,
    SelectionState,
    GenerationResult,
    GenerationCompleted,
    GenerationProgress
)

__all__ = [
    'MAX_FILE_SIZE',
    'Step',
    'FileRef',
    'Selection',
    'SelectionState',
    'GenerationResult',
    'GenerationCompleted',
    'GenerationProgress'
]
