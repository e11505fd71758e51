"""
Gemini Image Generation Service

Composites a clothing item onto a model photo using Google's Gemini image
model. The API is called once per request; only the first part of the
first candidate is considered.
"""

import base64
import logging
from google.genai import types

from models.schemas import GenerationResult
from .errors import GenerationError

logger = logging.getLogger(__name__)

MODEL_NAME = "gemini-2.5-flash-image-preview"

TRY_ON_PROMPT = """Take the clothing item from the second image and realistically place it on the person in the first image.
Make it look natural and professional, as if the person is actually wearing that clothing item.
Ensure proper lighting, shadows, and realistic integration with the person's body and pose."""


def build_try_on_contents(model_image, clothing_image, prompt=TRY_ON_PROMPT):
    """
    Build the request contents: model image, clothing image, then the prompt.

    Args:
        model_image: FileRef of the person
        clothing_image: FileRef of the garment
        prompt: Instruction appended after the two images

    Returns:
        list[types.Content]: A single user turn
    """
    parts = [
        types.Part.from_bytes(data=model_image.data, mime_type=model_image.mime_type),
        types.Part.from_bytes(data=clothing_image.data, mime_type=clothing_image.mime_type),
        types.Part.from_text(text=prompt),
    ]

    return [
        types.Content(
            role="user",
            parts=parts,
        )
    ]


def extract_first_image(response):
    """
    Return the inline image of the first part of the first candidate.

    Args:
        response: types.GenerateContentResponse

    Returns:
        types.Blob or None if that part is missing or is not image data
    """
    if (
        response is None
        or not response.candidates
        or response.candidates[0].content is None
        or not response.candidates[0].content.parts
    ):
        return None

    part = response.candidates[0].content.parts[0]

    if part.inline_data and part.inline_data.data:
        return part.inline_data

    return None


def generate_try_on_image(client, model_image, clothing_image, model=MODEL_NAME):
    """
    Generate the composite image.

    Args:
        client: genai.Client (or anything exposing models.generate_content)
        model_image: FileRef of the person
        clothing_image: FileRef of the garment
        model: Gemini model name

    Returns:
        GenerationResult: base64 image and its MIME type

    Raises:
        GenerationError: If the response holds no image in its first part
    """
    contents = build_try_on_contents(model_image, clothing_image)

    generate_content_config = types.GenerateContentConfig(
        response_modalities=["IMAGE", "TEXT"],
    )

    logger.info(f"Generating try-on image with {model} "
                f"(model: {model_image.name}, clothing: {clothing_image.name})")

    response = client.models.generate_content(
        model=model,
        contents=contents,
        config=generate_content_config,
    )

    inline_data = extract_first_image(response)
    if inline_data is None:
        logger.warning("Gemini response contained no image in its first part")
        raise GenerationError("Failed to generate image")

    return GenerationResult(
        image=base64.b64encode(inline_data.data).decode("ascii"),
        mime_type=inline_data.mime_type or "image/png"
    )
