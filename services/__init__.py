"""
Virtual Try-On Services

This package contains service modules for the try-on application:
- errors: Error types and their HTTP statuses
- utils: Shared utility functions
- image_converter: Format conversion before generation
- gemini_generator: Gemini image generation
- tryon_relay: Orchestration behind /api/upload
- relay_client: HTTP client for /api/upload
- preview_store: Preview handle registry
- upload_wizard: Two-step selection state machine
- result_display: Generated image download
- session_manager: Wizard sessions per Socket.IO connection
"""

__all__ = [
    'errors',
    'utils',
    'image_converter',
    'gemini_generator',
    'tryon_relay',
    'relay_client',
    'preview_store',
    'upload_wizard',
    'result_display',
    'session_manager',
]
