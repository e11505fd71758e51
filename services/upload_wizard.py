"""
Upload Wizard

Two-step selection state machine: the model image first, then the
clothing image. Owns the preview handles of its selections, submits the
pair to a relay and reports progress and the finished image to a
listener.

Anything exposing generate(model_image, clothing_image) -> GenerationResult
can act as the relay (RelayClient over HTTP, TryOnRelay in-process).
"""

import logging
import threading
import time
from typing import List, Optional

from models.schemas import (
    MAX_FILE_SIZE,
    Step,
    FileRef,
    Selection,
    SelectionState,
    GenerationResult,
    GenerationCompleted
)
from .errors import InvalidTransition, TryOnError
from .preview_store import PreviewStore

logger = logging.getLogger(__name__)

MAX_FILES = 2
PROGRESS_STEP = 5
PROGRESS_CEILING = 95
DEFAULT_ERROR = "Error processing images"


class WizardListener:
    """Receives wizard notifications. Override what you need."""

    def on_state_changed(self, state: SelectionState) -> None:
        pass

    def on_progress(self, percent: int) -> None:
        pass

    def on_generation_completed(self, event: GenerationCompleted) -> None:
        pass


class UploadWizard:
    """Collects a model image and a clothing image, then submits them"""

    def __init__(
        self,
        relay,
        previews: Optional[PreviewStore] = None,
        listener: Optional[WizardListener] = None,
        max_file_size: int = MAX_FILE_SIZE,
        tick_interval: float = 0.2,
        display_delay: float = 1.0
    ):
        """
        Initialize the wizard.

        Args:
            relay: Object with generate(model_image, clothing_image)
            previews: Store the preview handles live in
            listener: Receiver of state, progress and completion events
            max_file_size: Largest accepted file in bytes
            tick_interval: Seconds between progress ramp steps
            display_delay: Seconds 100% stays visible before the reset
        """
        self.relay = relay
        self.previews = previews if previews is not None else PreviewStore()
        self.listener = listener or WizardListener()
        self.max_file_size = max_file_size
        self.tick_interval = tick_interval
        self.display_delay = display_delay

        self._lock = threading.RLock()
        self._step = Step.COLLECTING_MODEL
        self._selections: List[Selection] = []
        self._error: Optional[str] = None
        self._progress = 0
        self._uploading = False

    # ------------------------------------------------------------------
    # State access

    @property
    def step(self) -> Step:
        return self._step

    @property
    def files(self) -> List[FileRef]:
        with self._lock:
            return [s.file for s in self._selections]

    @property
    def preview_handles(self) -> List[str]:
        with self._lock:
            return [s.preview for s in self._selections]

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def progress(self) -> int:
        return self._progress

    @property
    def uploading(self) -> bool:
        return self._uploading

    def snapshot(self) -> SelectionState:
        with self._lock:
            return SelectionState(
                step=self._step,
                files=[s.file for s in self._selections],
                previews=[s.preview for s in self._selections],
                error=self._error,
                progress=self._progress,
                uploading=self._uploading
            )

    def to_dict(self):
        return self.snapshot().to_dict()

    # ------------------------------------------------------------------
    # Transitions

    def select_files(self, files: List[FileRef]) -> bool:
        """
        Handle one drop/selection of files.

        Exactly one file is accepted per call. On the model step it replaces
        the current selection; on the clothing step it is appended.

        Returns:
            True if the file was accepted, False if rejected (see error)
        """
        with self._lock:
            self._error = None
            rejection = self._check_selection(files)

            if rejection:
                self._error = rejection
            else:
                file_ref = files[0]
                if self._step == Step.COLLECTING_MODEL:
                    self._release_all()
                self._selections.append(
                    Selection(file=file_ref, preview=self.previews.create(file_ref))
                )
                logger.debug(f"Selected {file_ref.name} on {self._step.value}")

        self._notify_state()
        return rejection is None

    def advance(self) -> None:
        """Move from the model step to the clothing step"""
        with self._lock:
            if self._step != Step.COLLECTING_MODEL:
                raise InvalidTransition("Already on the clothing step")
            if len(self._selections) != 1:
                raise InvalidTransition("Select the model image before continuing")
            self._step = Step.COLLECTING_CLOTHING

        self._notify_state()

    def go_back(self) -> None:
        """Return to the model step, discarding every selection"""
        with self._lock:
            if self._step != Step.COLLECTING_CLOTHING:
                raise InvalidTransition("Already on the model step")
            if self._uploading:
                raise InvalidTransition("Cannot go back while uploading")
            self._release_all()
            self._step = Step.COLLECTING_MODEL
            self._error = None

        self._notify_state()

    def remove_file(self, index: int) -> None:
        """Remove the selection at index and revoke its preview"""
        with self._lock:
            if self._uploading:
                raise InvalidTransition("Cannot remove images while uploading")
            if index < 0 or index >= len(self._selections):
                raise InvalidTransition(f"No image at position {index}")
            if index == 0 and len(self._selections) == MAX_FILES:
                raise InvalidTransition(
                    "The model image cannot be removed. Go back to step 1 to change it."
                )
            removed = self._selections.pop(index)
            self.previews.revoke(removed.preview)
            self._error = None

        self._notify_state()

    def submit(self) -> Optional[GenerationResult]:
        """
        Send both images to the relay.

        Blocks until the relay answers. A progress ramp runs meanwhile and
        is stopped as soon as the answer arrives.

        Returns:
            GenerationResult on success, None on failure (see error)
        """
        with self._lock:
            self._error = None
            if self._uploading:
                raise InvalidTransition("An upload is already in progress")
            if self._step != Step.COLLECTING_CLOTHING or len(self._selections) != MAX_FILES:
                raise InvalidTransition("Select both images before submitting")

            model_image, clothing_image = (s.file for s in self._selections)
            self._uploading = True
            self._progress = 0

        self._notify_state()

        cancel = threading.Event()
        ramp = threading.Thread(
            target=self._run_progress_ramp,
            args=(cancel,),
            name="progress-ramp",
            daemon=True
        )
        ramp.start()

        try:
            result = self.relay.generate(model_image, clothing_image)
        except Exception as e:
            self._stop_ramp(cancel, ramp)
            if isinstance(e, TryOnError):
                logger.error(f"Upload error: {e.message}")
                message = e.message or DEFAULT_ERROR
            else:
                logger.exception("Upload error")
                message = DEFAULT_ERROR
            with self._lock:
                self._uploading = False
                self._progress = 0
                self._error = message
            self._notify_state()
            return None

        self._stop_ramp(cancel, ramp)

        with self._lock:
            self._progress = 100
        self.listener.on_progress(100)

        if self.display_delay > 0:
            time.sleep(self.display_delay)

        with self._lock:
            self._reset()
        self._notify_state()

        logger.info("Virtual try-on completed")
        if result.image:
            self.listener.on_generation_completed(
                GenerationCompleted(image=result.image, mime_type=result.mime_type)
            )

        return result

    def close(self) -> None:
        """Release every preview handle still held"""
        with self._lock:
            self._release_all()

    # ------------------------------------------------------------------
    # Internals

    def _check_selection(self, files: List[FileRef]) -> Optional[str]:
        if self._uploading:
            return "Cannot change images while uploading"

        if len(files) != 1:
            if self._step == Step.COLLECTING_MODEL:
                return "Select only 1 image for the first step."
            return "Select only 1 image for the second step."

        if self._step == Step.COLLECTING_CLOTHING and len(self._selections) >= MAX_FILES:
            return f"You already have the maximum of {MAX_FILES} images."

        file_ref = files[0]
        if not file_ref.is_image:
            return f"{file_ref.name} is not an image file."
        if file_ref.size > self.max_file_size:
            return f"{file_ref.name} is larger than {self.max_file_size / 1024 / 1024:g}MB."

        return None

    def _run_progress_ramp(self, cancel: threading.Event) -> None:
        while not cancel.wait(self.tick_interval):
            with self._lock:
                if self._progress >= PROGRESS_CEILING:
                    return
                self._progress = min(self._progress + PROGRESS_STEP, PROGRESS_CEILING)
                value = self._progress
            self.listener.on_progress(value)

    @staticmethod
    def _stop_ramp(cancel: threading.Event, ramp: threading.Thread) -> None:
        cancel.set()
        ramp.join()

    def _release_all(self) -> None:
        for selection in self._selections:
            self.previews.revoke(selection.preview)
        self._selections = []

    def _reset(self) -> None:
        self._release_all()
        self._progress = 0
        self._uploading = False
        self._step = Step.COLLECTING_MODEL

    def _notify_state(self) -> None:
        self.listener.on_state_changed(self.snapshot())
