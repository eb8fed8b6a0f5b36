"""SessionController — the capture → analyze → present state machine.

Transitions (anything else is ignored):

    IDLE            request_camera   → CAPTURING_LIVE   (open camera)
    IDLE            image_selected   → ANALYZING        (store image, start analysis)
    CAPTURING_LIVE  shutter_pressed  → ANALYZING        (grab frame, release camera, start analysis)
    CAPTURING_LIVE  cancel           → IDLE             (release camera)
    ANALYZING       <completion>     → RESULT | FAILED
    RESULT, FAILED  reset            → IDLE             (clear image and outcome)

Events run one at a time under a single asyncio.Lock. The remote call runs
in its own task; its completion is applied under the same lock and only if
it belongs to the current analysis episode.
"""
import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Optional

from src.constants import (
    ERR_TIMEOUT,
    MSG_ANALYSIS_CRASHED,
    MSG_CAMERA_ABANDONED,
    MSG_DEVICE_LOST,
    MSG_EVENT_IGNORED,
    MSG_RENDER_FAIL,
    MSG_SESSION_FAILED,
    MSG_STALE_COMPLETION,
    MSG_TRANSITION,
)
from src.errors import DeviceUnavailable, InvalidInput, ScanError, ServiceUnavailable
from src.imaging.camera import CameraStream
from src.imaging.image import EncodedImage
from src.imaging.source import ImageSource
from src.imaging.upload import Upload
from src.presenter import Presenter
from src.session_models import Session, SessionSnapshot, SessionState
from src.vision.client import VisionClient, check_image
from src.vision.schema import AnalysisResult

logger = logging.getLogger(__name__)


def _release_abandoned(opening: "asyncio.Future[CameraStream]") -> None:
    if opening.cancelled() or opening.exception() is not None:
        return
    logger.warning(MSG_CAMERA_ABANDONED)
    opening.result().release()


class SessionController:

    def __init__(
        self,
        vision: VisionClient,
        source: ImageSource,
        *,
        analysis_timeout: float,
        presenters: Iterable[Presenter] = (),
    ) -> None:
        self._vision = vision
        self._source = source
        self._timeout = analysis_timeout
        self._presenters = list(presenters)
        self._session = Session()
        self._lock = asyncio.Lock()
        self._stream: Optional[CameraStream] = None
        self._analysis: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()
        self._episode = 0

    # ── presenter boundary (read) ─────────────────────────────────────────────

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def image(self) -> Optional[EncodedImage]:
        return self._session.image

    @property
    def result(self) -> Optional[AnalysisResult]:
        return self._session.result

    @property
    def error_detail(self) -> Optional[str]:
        return self._session.error_detail

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot.of(self._session)

    def attach(self, presenter: Presenter) -> None:
        self._presenters.append(presenter)

    # ── presenter boundary (events) ───────────────────────────────────────────

    async def request_camera(self) -> bool:
        return await self._dispatch("request_camera", {SessionState.IDLE}, self._open_camera)

    async def image_selected(self, upload: Upload) -> bool:
        return await self._dispatch(
            "image_selected", {SessionState.IDLE}, functools.partial(self._load_upload, upload)
        )

    async def shutter_pressed(self) -> bool:
        return await self._dispatch("shutter_pressed", {SessionState.CAPTURING_LIVE}, self._capture)

    async def cancel(self) -> bool:
        return await self._dispatch("cancel", {SessionState.CAPTURING_LIVE}, self._cancel)

    async def reset(self) -> bool:
        return await self._dispatch(
            "reset", {SessionState.RESULT, SessionState.FAILED}, self._reset
        )

    async def close(self) -> None:
        """Tear the session down from any state.

        Releases the camera and orphans any in-flight analysis: its
        completion will be discarded when it arrives.
        """
        async with self._lock:
            before = self._session.state
            self._episode += 1
            self._release_camera()
            self._enter_idle()
            snapshot = self._transitioned(before)
        if before is not SessionState.IDLE:
            await self._render(snapshot)

    async def settle(self) -> SessionSnapshot:
        """Wait for the outstanding analysis, if any, and return the resulting snapshot."""
        task = self._analysis
        if task is not None:
            await asyncio.shield(task)
        return self.snapshot()

    # ── dispatch ──────────────────────────────────────────────────────────────

    async def _dispatch(
        self,
        event: str,
        accepted: set[SessionState],
        action: Callable[[], Awaitable[None]],
    ) -> bool:
        async with self._lock:
            before = self._session.state
            if before not in accepted:
                logger.debug(MSG_EVENT_IGNORED, self.session_id, event, before.value)
                return False
            await action()
            snapshot = self._transitioned(before)
        await self._render(snapshot)
        return True

    def _transitioned(self, before: SessionState) -> SessionSnapshot:
        logger.debug(MSG_TRANSITION, self.session_id, before.value, self._session.state.value)
        return self.snapshot()

    async def _render(self, snapshot: SessionSnapshot) -> None:
        for presenter in self._presenters:
            try:
                await presenter.render(snapshot)
            except Exception:
                logger.exception(MSG_RENDER_FAIL, snapshot.state.value)

    # ── actions (run under the lock) ──────────────────────────────────────────

    async def _open_camera(self) -> None:
        opening = asyncio.ensure_future(asyncio.to_thread(self._source.open_camera))
        try:
            self._stream = await asyncio.shield(opening)
        except DeviceUnavailable as exc:
            self._enter_failed(exc)
            return
        except asyncio.CancelledError:
            # The worker thread cannot be stopped; release whatever it opens.
            opening.add_done_callback(_release_abandoned)
            raise
        self._session.state = SessionState.CAPTURING_LIVE

    async def _load_upload(self, upload: Upload) -> None:
        try:
            image = await asyncio.to_thread(self._source.load_upload, upload)
        except InvalidInput as exc:
            self._enter_failed(exc)
            return
        self._start_analysis(image)

    async def _capture(self) -> None:
        stream = self._stream
        try:
            image = await asyncio.to_thread(stream.capture_frame)
        except Exception as exc:
            # Any failure mid-stream is handled as a cancel.
            logger.warning(MSG_DEVICE_LOST, exc)
            self._enter_idle()
            return
        finally:
            self._release_camera()
        self._start_analysis(image)

    async def _cancel(self) -> None:
        self._release_camera()
        self._enter_idle()

    async def _reset(self) -> None:
        self._enter_idle()

    # ── state helpers ─────────────────────────────────────────────────────────

    def _release_camera(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.release()

    def _enter_idle(self) -> None:
        session = self._session
        session.state = SessionState.IDLE
        session.image = None
        session.result = None
        session.error_detail = None
        session.error_kind = None

    def _enter_failed(self, exc: ScanError) -> None:
        logger.warning(MSG_SESSION_FAILED, self.session_id, exc.kind, exc)
        session = self._session
        session.state = SessionState.FAILED
        session.result = None
        session.error_detail = exc.user_message
        session.error_kind = exc.kind

    def _enter_result(self, result: AnalysisResult) -> None:
        session = self._session
        session.state = SessionState.RESULT
        session.result = result
        session.error_detail = None
        session.error_kind = None
        session.scan_count += 1

    def _start_analysis(self, image: EncodedImage) -> None:
        try:
            check_image(image)
        except InvalidInput as exc:
            self._enter_failed(exc)
            return
        self._session.image = image
        self._session.state = SessionState.ANALYZING
        self._episode += 1
        task = asyncio.create_task(self._run_analysis(self._episode, image))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._analysis = task

    # ── analysis episode ──────────────────────────────────────────────────────

    async def _run_analysis(self, episode: int, image: EncodedImage) -> None:
        try:
            result = await asyncio.wait_for(self._vision.analyze(image), timeout=self._timeout)
        except asyncio.TimeoutError:
            await self._complete(episode, error=ServiceUnavailable(ERR_TIMEOUT % self._timeout))
        except ScanError as exc:
            await self._complete(episode, error=exc)
        except Exception as exc:
            logger.exception(MSG_ANALYSIS_CRASHED)
            await self._complete(episode, error=ServiceUnavailable(str(exc)))
        else:
            await self._complete(episode, result=result)

    async def _complete(
        self,
        episode: int,
        *,
        result: Optional[AnalysisResult] = None,
        error: Optional[ScanError] = None,
    ) -> None:
        async with self._lock:
            if episode != self._episode or self._session.state is not SessionState.ANALYZING:
                logger.info(MSG_STALE_COMPLETION, self.session_id, episode)
                return
            match error:
                case None:
                    self._enter_result(result)
                case exc:
                    self._enter_failed(exc)
            self._analysis = None
            snapshot = self._transitioned(SessionState.ANALYZING)
        await self._render(snapshot)
