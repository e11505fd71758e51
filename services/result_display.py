"""
Result display

Keeps the most recent generated image and offers it for download.
"""

import base64
import binascii
import logging
import os
import webbrowser
from datetime import datetime

from .upload_wizard import WizardListener
from .utils import save_binary_file

logger = logging.getLogger(__name__)


def to_data_uri(image_base64):
    """Build the PNG data URI used to display and download the image"""
    return f"data:image/png;base64,{image_base64}"


class ResultDisplay(WizardListener):
    """Consumes GenerationCompleted events from the wizard"""

    def __init__(self, output_dir="output", opener=webbrowser.open):
        self.output_dir = output_dir
        self.opener = opener
        self.image = None

    @property
    def data_uri(self):
        if self.image is None:
            return None
        return to_data_uri(self.image)

    def on_generation_completed(self, event):
        self.image = event.image

    def download(self, filename=None):
        """
        Save the current image as a PNG.

        If the file cannot be written the image is opened in a new browser
        context instead.

        Returns:
            str: Path of the saved file, or None if the fallback was used
        """
        if self.image is None:
            raise ValueError("No generated image to download")

        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"tryon_{timestamp}.png"

        try:
            os.makedirs(self.output_dir, exist_ok=True)
            return save_binary_file(
                os.path.join(self.output_dir, filename),
                base64.b64decode(self.image)
            )
        except (OSError, binascii.Error) as e:
            logger.warning(f"Download failed, opening image instead: {e}")
            self.opener(self.data_uri)
            return None
