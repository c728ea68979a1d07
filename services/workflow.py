"""Grading workflow: the single owner of the client's state.

States (domain.types): Idle, ImageReady, CameraActive, Submitting, Success,
Failed. Exactly one is current and only this class changes it.

    Idle | ImageReady | Success | Failed | CameraActive  --select_file-->  ImageReady
    Idle | ImageReady | Success | Failed  --open_camera-->  CameraActive
    CameraActive  --capture_frame-->  ImageReady
    ImageReady  --submit-->  Submitting  -->  Success | Failed

Everything else is a no-op. Runs on one asyncio loop; the suspension points
are opening the camera, grabbing a frame, reading the image bytes and the
network call, which run in worker threads via asyncio.to_thread. A result
that comes back after the state moved on (or after close()) is dropped.
Any failure while grading ends in Failed; submit() never raises.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Callable, Optional, Union

from domain.errors import GENERIC_FAILURE_MESSAGE, GraderError, ValidationError
from domain.types import (
    CameraActive,
    EncodedPayload,
    Failed,
    Idle,
    ImageArtifact,
    ImageReady,
    Submitting,
    Success,
    WorkflowState,
)
from services.encoder import encode
from services.image_source import CameraSession, artifact_from_file, open_camera


logger = logging.getLogger(__name__)

Listener = Callable[[WorkflowState], None]


class GradingWorkflow:
    def __init__(
        self,
        client: Any,
        camera_opener: Callable[[Any], CameraSession] = open_camera,
        camera_device: Any = 0,
        encoder: Callable[[ImageArtifact], EncodedPayload] = encode,
    ):
        self._client = client
        self._camera_opener = camera_opener
        self._camera_device = camera_device
        self._encoder = encoder
        self._state: WorkflowState = Idle()
        self._listeners: list[Listener] = []
        self._epoch = 0
        self._closed = False
        self._capturing = False

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with every new state. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    def _transition(self, new_state: WorkflowState) -> WorkflowState:
        old = self._state
        self._state = new_state
        self._epoch += 1
        logger.info("Workflow %s -> %s", old.name, new_state.name)
        for listener in list(self._listeners):
            listener(new_state)
        return new_state

    def _fail(self, error: GraderError) -> WorkflowState:
        logger.warning("%s: %s", type(error).__name__, error.user_message)
        return self._transition(Failed(message=error.user_message, error=error))

    def _stale(self, epoch: int) -> bool:
        return self._closed or epoch != self._epoch

    def _release_camera(self) -> None:
        if isinstance(self._state, CameraActive):
            self._state.session.release()

    def _ignore(self, action: str) -> WorkflowState:
        logger.debug("Ignoring %s in state %s", action, self._state.name)
        return self._state

    # ------------------------------------------------------------------
    # user actions
    # ------------------------------------------------------------------

    def select_file(
        self,
        source: Union[str, "os.PathLike[str]", ImageArtifact],
        media_type: Optional[str] = None,
    ) -> WorkflowState:
        """Adopt a dropped or browsed file. Stops a live camera first."""
        if self._closed or isinstance(self._state, Submitting):
            return self._ignore("select_file")

        self._release_camera()
        try:
            if isinstance(source, ImageArtifact):
                artifact = source
            else:
                artifact = artifact_from_file(os.fspath(source), media_type)
        except ValidationError as exc:
            return self._fail(exc)
        return self._transition(ImageReady(artifact))

    async def open_camera(self) -> WorkflowState:
        """Start the live camera. A denied or missing device ends in Failed."""
        if self._closed or isinstance(self._state, (CameraActive, Submitting)):
            return self._ignore("open_camera")

        epoch = self._epoch
        try:
            session = await asyncio.to_thread(self._camera_opener, self._camera_device)
        except GraderError as exc:
            if self._stale(epoch):
                return self._state
            return self._fail(exc)

        if self._stale(epoch):
            # Something else happened while the device was opening.
            session.release()
            return self._state
        return self._transition(CameraActive(session))

    def preview_frame(self) -> Any:
        """Current live frame while the camera is active, else None."""
        if isinstance(self._state, CameraActive):
            return self._state.session.preview_frame()
        return None

    async def capture_frame(self) -> WorkflowState:
        """Snapshot the live camera into an image. Always releases the camera."""
        state = self._state
        if self._closed or self._capturing or not isinstance(state, CameraActive):
            return self._ignore("capture_frame")

        epoch = self._epoch
        self._capturing = True
        try:
            artifact = await asyncio.to_thread(state.session.capture)
        except GraderError as exc:
            if self._stale(epoch):
                return self._state
            return self._fail(exc)
        finally:
            self._capturing = False

        if self._stale(epoch):
            logger.info("Dropping camera capture that finished after the workflow moved on")
            return self._state
        return self._transition(ImageReady(artifact))

    async def submit(self) -> WorkflowState:
        """Encode and send the current image. Only valid in ImageReady."""
        state = self._state
        if self._closed or not isinstance(state, ImageReady):
            return self._ignore("submit")

        artifact = state.artifact
        self._transition(Submitting(artifact))
        epoch = self._epoch

        try:
            payload = await asyncio.to_thread(self._encoder, artifact)
            response = await asyncio.to_thread(self._client.submit, payload)
        except GraderError as exc:
            if self._stale(epoch):
                logger.info("Dropping %s that arrived after the workflow moved on", type(exc).__name__)
                return self._state
            return self._fail(exc)
        except Exception as exc:
            logger.exception("Unexpected failure while grading")
            if self._stale(epoch):
                return self._state
            return self._transition(Failed(message=GENERIC_FAILURE_MESSAGE, error=exc))

        if self._stale(epoch):
            logger.info("Dropping grading response that arrived after the workflow moved on")
            return self._state
        return self._transition(Success(response))

    def close(self) -> None:
        """Tear down: release the camera and drop any in-flight result."""
        if self._closed:
            return
        self._release_camera()
        self._closed = True
        self._epoch += 1
        self._listeners.clear()
        logger.info("Workflow closed in state %s", self._state.name)
