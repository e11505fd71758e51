"""
Try-on relay

Stateless orchestration behind POST /api/upload: checks configuration and
inputs, prepares both images, calls Gemini once and hands back the
composite. Also usable in-process by the wizard (same generate() signature
as RelayClient).
"""

import logging
from google import genai

from .errors import (
    TryOnError,
    ValidationError,
    ConfigurationError,
    InternalError
)
from .gemini_generator import MODEL_NAME, generate_try_on_image
from .image_converter import prepare_for_generation

logger = logging.getLogger(__name__)


class TryOnRelay:
    """Forwards a model/clothing pair to the generative API"""

    def __init__(self, api_key=None, model=MODEL_NAME, client_factory=None):
        """
        Initialize the relay.

        Args:
            api_key: Gemini API key; checked on every request
            model: Gemini model name
            client_factory: Callable taking the API key and returning a client
                (defaults to genai.Client)
        """
        self.api_key = api_key
        self.model = model
        self.client_factory = client_factory or (lambda key: genai.Client(api_key=key))

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def generate(self, model_image, clothing_image):
        """
        Generate a composite image for one submission.

        Args:
            model_image: FileRef of the person (or None if missing)
            clothing_image: FileRef of the garment (or None if missing)

        Returns:
            GenerationResult

        Raises:
            ConfigurationError: API key not set
            ValidationError: Either image is missing
            GenerationError: The API returned no image
            InternalError: Anything else went wrong
        """
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY environment variable not set")

        if model_image is None or clothing_image is None:
            raise ValidationError("Both modelImage and clothingImage are required")

        try:
            client = self.client_factory(self.api_key)
            return generate_try_on_image(
                client,
                prepare_for_generation(model_image),
                prepare_for_generation(clothing_image),
                model=self.model
            )
        except TryOnError:
            raise
        except Exception:
            logger.exception("Error processing upload")
            raise InternalError("Internal server error")
