import threading
import time

import pytest

from models.schemas import FileRef, GenerationResult
from services.upload_wizard import WizardListener


def make_image(name="photo.png", mime_type="image/png", size=64):
    return FileRef(name=name, mime_type=mime_type, data=b"\x89PNG" + b"\x00" * (size - 4))


class RecordingListener(WizardListener):
    def __init__(self):
        self.states = []
        self.progress = []
        self.completed = []

    def on_state_changed(self, state):
        self.states.append(state)

    def on_progress(self, percent):
        self.progress.append(percent)

    def on_generation_completed(self, event):
        self.completed.append(event)


class FakeRelay:
    """Relay stand-in: returns a fixed result or raises, after an optional delay"""

    def __init__(self, result=None, error=None, delay=0.0):
        self.result = result or GenerationResult(image="QQ==", mime_type="image/png")
        self.error = error
        self.delay = delay
        self.calls = []

    def generate(self, model_image, clothing_image):
        self.calls.append((model_image, clothing_image))
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


class BlockingRelay(FakeRelay):
    """Holds the request open until release() is called"""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.started = threading.Event()
        self.released = threading.Event()

    def generate(self, model_image, clothing_image):
        self.started.set()
        self.released.wait(5)
        return super().generate(model_image, clothing_image)

    def release(self):
        self.released.set()


@pytest.fixture
def listener():
    return RecordingListener()
