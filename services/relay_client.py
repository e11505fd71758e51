"""
HTTP client for the relay endpoint

Posts the model and clothing images as multipart form data to
/api/upload and turns the JSON answer into a GenerationResult.
"""

import requests

from models.schemas import GenerationResult
from .errors import RelayError

DEFAULT_ERROR = "Failed to process images"


class RelayClient:
    """Talks to a running try-on server"""

    def __init__(self, base_url, timeout=None, session=None):
        """
        Args:
            base_url: Server root, e.g. "http://localhost:5001"
            timeout: Seconds to wait for the answer (None: transport default)
            session: Optional requests.Session to reuse connections
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def generate(self, model_image, clothing_image):
        """
        Submit one generation request.

        Args:
            model_image: FileRef of the person
            clothing_image: FileRef of the garment

        Returns:
            GenerationResult

        Raises:
            RelayError: If the server answers with an error status
            requests.RequestException: On transport failures
        """
        files = {
            "modelImage": (model_image.name, model_image.data, model_image.mime_type),
            "clothingImage": (clothing_image.name, clothing_image.data, clothing_image.mime_type),
        }

        response = self.session.post(
            f"{self.base_url}/api/upload",
            files=files,
            timeout=self.timeout,
        )

        if not response.ok:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            message = error_data.get('error') if isinstance(error_data, dict) else None
            raise RelayError(message or DEFAULT_ERROR, status_code=response.status_code)

        result = response.json()
        return GenerationResult(
            image=result.get('image'),
            mime_type=result.get('mimeType')
        )
