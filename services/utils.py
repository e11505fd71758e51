"""
Utility functions for image handling

Shared by the CLI, the relay endpoint and the result display.
"""

import mimetypes
import os

from models.schemas import FileRef


def guess_mime_type(filename, declared=None, fallback=""):
    """
    Resolve the media type of an upload.

    Args:
        filename: Original filename (used when nothing was declared)
        declared: Media type sent by the client, if any
        fallback: Returned when neither source names a type

    Returns:
        str: MIME type, or fallback (empty) when it cannot be determined
    """
    if declared and declared != 'application/octet-stream':
        return declared

    mime_type, _ = mimetypes.guess_type(filename or '')
    if mime_type is None:
        mime_type = fallback

    return mime_type


def read_local_image(image_path):
    """
    Reads a local image file into a FileRef.

    Args:
        image_path: Path to the image file

    Returns:
        FileRef: name, MIME type and bytes of the image

    Raises:
        FileNotFoundError: If the image doesn't exist
    """
    if not os.path.exists(image_path):
        raise FileNotFoundError(f"Could not find image at: {image_path}")

    with open(image_path, "rb") as f:
        image_bytes = f.read()

    return FileRef(
        name=os.path.basename(image_path),
        mime_type=guess_mime_type(image_path),
        data=image_bytes
    )


def save_binary_file(file_name, data):
    """
    Saves binary data to a file.

    Args:
        file_name: Path where the file should be saved
        data: Binary data to write

    Returns:
        str: The file path where data was saved
    """
    with open(file_name, "wb") as f:
        f.write(data)
    return file_name
