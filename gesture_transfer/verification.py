"""
Biometric Verification Module

Wires a camera and two external detectors (face boxes, hand landmarks) into
a small state machine:

    IDLE -> CAMERA_ACQUIRING -> DETECTING -> VERIFIED
                      \\              \\
                       +-> ERROR <-----+

Each detector delivers results on its own timeline. The latest result of
each is kept in its own slot (last write wins) and every face or hand
callback re-runs a single coincidence check. The first time both slots are
non-empty the session is verified; there is no smoothing, liveness check or
score fusion. The reported confidence is the raw face score.

Detection backends do not ship here. Integrators implement FaceDetector,
HandDetector and optionally Canvas over their library of choice; an OpenCV
CameraSource lives in gesture_transfer.camera (the "vision" extra).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
import asyncio
import logging
import uuid

from .config import GestureTransferConfig, get_config
from .errors import CameraPermissionError, DetectorUnavailableError
from .events import EventDispatcher, EventPayload, VerificationEvent

logger = logging.getLogger("gesture_transfer.verification")

Frame = Any
FrameHandler = Callable[[Frame], Awaitable[None]]

FACE_COLOR = "#00ff00"
LANDMARK_COLOR = "#ff0000"
LABEL_FONT = "16px Arial"

# The hand detector exposes no per-frame confidence
HAND_CAPTURE_CONFIDENCE = 1.0
GESTURE_CONFIDENCE = 0.8
TAP_CONFIDENCE = 0.9


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VerificationState(Enum):
    IDLE = "idle"
    CAMERA_ACQUIRING = "camera_acquiring"
    DETECTING = "detecting"
    VERIFIED = "verified"
    ERROR = "error"


@dataclass
class Landmark:
    """Normalized [0, 1] image coordinates"""
    x: float
    y: float
    z: float = 0.0


@dataclass
class RelativeBoundingBox:
    x_center: float
    y_center: float
    width: float
    height: float


@dataclass
class FaceDetection:
    score: float
    box: RelativeBoundingBox
    landmarks: List[Landmark] = field(default_factory=list)


@dataclass
class FaceResults:
    detections: List[FaceDetection] = field(default_factory=list)

    @property
    def detected(self) -> bool:
        return len(self.detections) > 0


@dataclass
class Handedness:
    label: str  # "Left" or "Right"
    score: float = 0.0


@dataclass
class HandResults:
    multi_hand_landmarks: List[List[Landmark]] = field(default_factory=list)
    multi_handedness: List[Handedness] = field(default_factory=list)

    @property
    def detected(self) -> bool:
        return len(self.multi_hand_landmarks) > 0


@dataclass
class VerificationResult:
    success: bool
    face_verified: bool
    hand_verified: bool
    confidence: float
    timestamp: datetime
    message: str


@dataclass
class FaceSnapshot:
    detected: bool
    confidence: float
    landmarks: List[Landmark]
    timestamp: datetime


@dataclass
class HandSnapshot:
    detected: bool
    confidence: float
    landmarks: List[Landmark]
    handedness: str
    timestamp: datetime


@dataclass
class BiometricData:
    face: FaceSnapshot
    hands: HandSnapshot


@dataclass
class HandDetectionResult:
    detected: bool
    confidence: float
    landmarks: Optional[List[List[Landmark]]] = None


class FaceDetector(ABC):
    """Adapter over an external face detection library"""

    @abstractmethod
    def set_options(self, options: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def on_results(self, callback: Callable[[FaceResults], None]) -> None:
        pass

    @abstractmethod
    async def send(self, frame: Frame) -> None:
        """Process one frame; results arrive through the on_results callback"""
        pass

    def close(self) -> None:
        pass


class HandDetector(ABC):
    """Adapter over an external hand landmark library"""

    @abstractmethod
    def set_options(self, options: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def on_results(self, callback: Callable[[HandResults], None]) -> None:
        pass

    @abstractmethod
    async def send(self, frame: Frame) -> None:
        """Process one frame; results arrive through the on_results callback"""
        pass

    def close(self) -> None:
        pass


class CameraSource(ABC):
    """Video stream behind the platform's camera permission prompt"""

    @abstractmethod
    async def start(self, on_frame: FrameHandler, width: int, height: int) -> None:
        """
        Acquire a width x height stream and begin delivering frames to on_frame.

        Raises:
            CameraPermissionError: If access is denied or unsupported
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop delivering frames and release every track"""
        pass


class Canvas(ABC):
    """Minimal 2D drawing surface for overlays"""

    width: int
    height: int

    @abstractmethod
    def save(self) -> None:
        pass

    @abstractmethod
    def restore(self) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    def draw_frame(self, frame: Frame) -> None:
        pass

    @abstractmethod
    def stroke_rect(self, x: float, y: float, width: float, height: float,
                    color: str, line_width: int) -> None:
        pass

    @abstractmethod
    def fill_circle(self, x: float, y: float, radius: float, color: str) -> None:
        pass

    @abstractmethod
    def fill_text(self, text: str, x: float, y: float, color: str, font: str) -> None:
        pass


class RecordingCanvas(Canvas):
    """Headless canvas that records drawing operations as tuples"""

    def __init__(self, width: int = 640, height: int = 480):
        self.width = width
        self.height = height
        self.operations: List[Tuple] = []

    def save(self) -> None:
        self.operations.append(("save",))

    def restore(self) -> None:
        self.operations.append(("restore",))

    def clear(self) -> None:
        self.operations = [("clear",)]

    def draw_frame(self, frame: Frame) -> None:
        self.operations.append(("frame", frame))

    def stroke_rect(self, x, y, width, height, color, line_width) -> None:
        self.operations.append(("rect", x, y, width, height, color, line_width))

    def fill_circle(self, x, y, radius, color) -> None:
        self.operations.append(("circle", x, y, radius, color))

    def fill_text(self, text, x, y, color, font) -> None:
        self.operations.append(("text", text, x, y, color, font))

    def ops(self, kind: str) -> List[Tuple]:
        return [op for op in self.operations if op[0] == kind]


class OverlayRenderer:
    """Draws detector output onto a canvas in pixel space"""

    def __init__(self, canvas: Canvas):
        self.canvas = canvas

    def face_box(self, detection: FaceDetection) -> Tuple[float, float, float, float]:
        """Relative box to (x, y, width, height) in canvas pixels"""
        box = detection.box
        width = box.width * self.canvas.width
        height = box.height * self.canvas.height
        x = box.x_center * self.canvas.width - width / 2
        y = box.y_center * self.canvas.height - height / 2
        return x, y, width, height

    def draw_face(self, detection: FaceDetection) -> None:
        x, y, width, height = self.face_box(detection)
        self.canvas.stroke_rect(x, y, width, height, FACE_COLOR, 3)
        self.canvas.fill_text(f"Face: {detection.score * 100:.1f}%", x, y - 10, FACE_COLOR, LABEL_FONT)

    def draw_hand(self, landmarks: List[Landmark], handedness: Optional[Handedness]) -> None:
        for landmark in landmarks:
            self.canvas.fill_circle(landmark.x * self.canvas.width,
                                    landmark.y * self.canvas.height, 5, LANDMARK_COLOR)

        if landmarks:
            wrist = landmarks[0]
            label = handedness.label if handedness else "Unknown"
            self.canvas.fill_text(f"{label} Hand", wrist.x * self.canvas.width,
                                  wrist.y * self.canvas.height - 20, LANDMARK_COLOR, LABEL_FONT)


@dataclass
class VerificationCallbacks:
    on_face_detected: Optional[Callable[[FaceResults], None]] = None
    on_hand_detected: Optional[Callable[[HandResults], None]] = None
    on_verification_complete: Optional[Callable[[VerificationResult], None]] = None
    on_error: Optional[Callable[[str], None]] = None


class BiometricVerificationService:
    """
    Face-plus-hand verification session
    """

    def __init__(
        self,
        face_detector: FaceDetector,
        hand_detector: HandDetector,
        camera: CameraSource,
        canvas: Optional[Canvas] = None,
        dispatcher: Optional[EventDispatcher] = None,
        settings: Optional[GestureTransferConfig] = None,
        clock: Callable[[], datetime] = _utcnow
    ):
        self.face_detector = face_detector
        self.hand_detector = hand_detector
        self.camera = camera
        self.renderer = OverlayRenderer(canvas) if canvas else None
        self.dispatcher = dispatcher or EventDispatcher()
        self.settings = settings or get_config()
        self._clock = clock

        self.session_id = str(uuid.uuid4())
        self.state = VerificationState.IDLE
        self.callbacks = VerificationCallbacks()
        self.result: Optional[VerificationResult] = None
        self.error: Optional[str] = None

        # Latest result slots, written independently by each detector
        self.face_results: Optional[FaceResults] = None
        self.hand_results: Optional[HandResults] = None
        self._last_frame: Optional[Frame] = None
        self._streaming = False

        self._initialize_detectors()

    def _initialize_detectors(self) -> None:
        try:
            self.face_detector.set_options({
                "model": self.settings.face_model,
                "min_detection_confidence": self.settings.face_min_detection_confidence,
            })
            self.face_detector.on_results(self.handle_face_results)

            self.hand_detector.set_options({
                "max_num_hands": self.settings.hands_max_num_hands,
                "model_complexity": self.settings.hands_model_complexity,
                "min_detection_confidence": self.settings.hands_min_detection_confidence,
                "min_tracking_confidence": self.settings.hands_min_tracking_confidence,
            })
            self.hand_detector.on_results(self.handle_hand_results)
        except Exception as e:
            self._fail(f"Failed to initialize biometric detection: {e}")

    def set_callbacks(self, **callbacks) -> None:
        """Merge callbacks (on_face_detected, on_hand_detected, on_verification_complete, on_error)"""
        for name, callback in callbacks.items():
            if not hasattr(self.callbacks, name):
                raise TypeError(f"Unknown verification callback: {name}")
            setattr(self.callbacks, name, callback)

    async def start(self) -> bool:
        """
        Acquire the camera and begin feeding frames to both detectors.

        Returns:
            False if the session is not idle or the camera could not be acquired
        """
        if self.state != VerificationState.IDLE:
            logger.warning(f"Cannot start verification from state {self.state.value}")
            return False

        self._set_state(VerificationState.CAMERA_ACQUIRING)
        self._streaming = True
        try:
            await self.camera.start(self._on_frame, self.settings.camera_width, self.settings.camera_height)
        except Exception as e:
            self._streaming = False
            self._fail(
                f"Failed to access camera. Please ensure camera permissions are granted: {e}"
            )
            return False
        return True

    async def _on_frame(self, frame: Frame) -> None:
        if not self._streaming:
            return
        if self.state == VerificationState.CAMERA_ACQUIRING:
            self._set_state(VerificationState.DETECTING)

        self._last_frame = frame
        await self.face_detector.send(frame)
        await self.hand_detector.send(frame)

    def handle_face_results(self, results: FaceResults) -> None:
        self.face_results = results

        if self.renderer:
            canvas = self.renderer.canvas
            canvas.save()
            canvas.clear()
            if self._last_frame is not None:
                canvas.draw_frame(self._last_frame)
            for detection in results.detections:
                self.renderer.draw_face(detection)
            canvas.restore()

        if results.detected:
            self._invoke(self.callbacks.on_face_detected, results)
            self._publish(VerificationEvent.FACE_DETECTED, {
                "count": len(results.detections),
                "score": results.detections[0].score,
            })

        self._check_verification()

    def handle_hand_results(self, results: HandResults) -> None:
        self.hand_results = results

        if self.renderer:
            for index, landmarks in enumerate(results.multi_hand_landmarks):
                handedness = results.multi_handedness[index] if index < len(results.multi_handedness) else None
                self.renderer.draw_hand(landmarks, handedness)

        if results.detected:
            self._invoke(self.callbacks.on_hand_detected, results)
            self._publish(VerificationEvent.HAND_DETECTED, {
                "count": len(results.multi_hand_landmarks),
            })

        self._check_verification()

    def _both_detected(self) -> bool:
        return bool(
            self.face_results and self.face_results.detected
            and self.hand_results and self.hand_results.detected
        )

    def _check_verification(self) -> None:
        # First coincidence wins; later callbacks never re-verify
        if self.state != VerificationState.DETECTING or not self._both_detected():
            return

        self.result = VerificationResult(
            success=True,
            face_verified=True,
            hand_verified=True,
            confidence=self.face_results.detections[0].score,
            timestamp=self._clock(),
            message="Biometric verification successful",
        )
        self._set_state(VerificationState.VERIFIED)
        logger.info(f"Verification {self.session_id} succeeded with face score {self.result.confidence:.3f}")
        self._publish(VerificationEvent.VERIFIED, {"confidence": self.result.confidence})
        self._invoke(self.callbacks.on_verification_complete, self.result)

    def capture_verification(self) -> Optional[BiometricData]:
        """Snapshot of the latest face and hand results, or None if either is missing"""
        if not self._both_detected():
            self._report_error("Failed to capture verification: "
                               "Both face and hand must be visible for verification")
            return None

        now = self._clock()
        face = self.face_results.detections[0]
        handedness = self.hand_results.multi_handedness
        return BiometricData(
            face=FaceSnapshot(
                detected=True,
                confidence=face.score,
                landmarks=list(face.landmarks),
                timestamp=now,
            ),
            hands=HandSnapshot(
                detected=True,
                confidence=HAND_CAPTURE_CONFIDENCE,
                landmarks=list(self.hand_results.multi_hand_landmarks[0]),
                handedness=handedness[0].label if handedness else "Unknown",
                timestamp=now,
            ),
        )

    def stop_camera(self) -> None:
        self._streaming = False
        self.camera.stop()

    def cleanup(self) -> None:
        """Stop the camera and release both detectors"""
        self.stop_camera()
        self.face_detector.close()
        self.hand_detector.close()

    def _set_state(self, new_state: VerificationState) -> None:
        previous = self.state
        self.state = new_state
        logger.debug(f"Verification {self.session_id}: {previous.value} -> {new_state.value}")
        self._publish(VerificationEvent.STATE_CHANGED, {
            "from": previous.value,
            "to": new_state.value,
        })

    def _fail(self, message: str) -> None:
        self._set_state(VerificationState.ERROR)
        self._report_error(message)

    def _report_error(self, message: str) -> None:
        self.error = message
        logger.error(f"Verification {self.session_id}: {message}")
        self._publish(VerificationEvent.ERROR, {"message": message})
        self._invoke(self.callbacks.on_error, message)

    def _publish(self, event_type: VerificationEvent, data: Dict[str, Any]) -> None:
        self.dispatcher.publish(EventPayload(
            event_type=event_type,
            session_id=self.session_id,
            data=data,
            timestamp=self._clock(),
        ))

    def _invoke(self, callback: Optional[Callable], payload: Any) -> None:
        if callback is None:
            return
        try:
            callback(payload)
        except Exception as e:
            logger.error(f"Verification callback {getattr(callback, '__name__', repr(callback))} failed: {e}")


def _publish_gesture(dispatcher: Optional[EventDispatcher], session_id: str,
                     result: HandDetectionResult, source: str) -> None:
    if dispatcher is None:
        return
    dispatcher.publish(EventPayload(
        event_type=VerificationEvent.GESTURE_UPDATED,
        session_id=session_id,
        data={"detected": result.detected, "confidence": result.confidence, "source": source},
    ))


class HandGestureDetector:
    """Hand-only presence detection used for the transfer gesture"""

    def __init__(self, hand_detector: HandDetector, camera: CameraSource,
                 settings: Optional[GestureTransferConfig] = None,
                 dispatcher: Optional[EventDispatcher] = None):
        self.hand_detector = hand_detector
        self.camera = camera
        self.settings = settings or get_config()
        self.dispatcher = dispatcher
        self.session_id = str(uuid.uuid4())
        self.initialized = False
        self._running = False

    def initialize(self) -> None:
        if self.initialized:
            return
        try:
            self.hand_detector.set_options({
                "max_num_hands": 1,
                "model_complexity": self.settings.hands_model_complexity,
                "min_detection_confidence": self.settings.gesture_min_detection_confidence,
                "min_tracking_confidence": self.settings.hands_min_tracking_confidence,
            })
        except Exception as e:
            logger.error(f"Hand detector configuration failed: {e}")
            raise DetectorUnavailableError("Hand detection not available") from e
        self.initialized = True

    async def start_detection(self, on_results: Callable[[HandDetectionResult], None]) -> None:
        """
        Raises:
            DetectorUnavailableError: If the detector cannot be configured
            CameraPermissionError: If the camera cannot be acquired
        """
        self.initialize()

        def forward(results: HandResults) -> None:
            result = HandDetectionResult(
                detected=results.detected,
                confidence=GESTURE_CONFIDENCE if results.detected else 0.0,
                landmarks=results.multi_hand_landmarks,
            )
            _publish_gesture(self.dispatcher, self.session_id, result, "hand")
            on_results(result)

        self.hand_detector.on_results(forward)
        self._running = True
        try:
            await self.camera.start(self._process_frame, self.settings.camera_width, self.settings.camera_height)
        except Exception as e:
            self._running = False
            logger.error(f"Camera acquisition failed: {e}")
            raise CameraPermissionError("Camera access denied") from e

    async def _process_frame(self, frame: Frame) -> None:
        if self._running:
            await self.hand_detector.send(frame)

    def stop(self) -> None:
        self._running = False
        self.camera.stop()


class TapGestureDetector:
    """
    Fallback when no hand detector is available: a tap on the preview counts
    as a detected hand for a short window, then resets.
    """

    def __init__(self, camera: Optional[CameraSource] = None,
                 reset_seconds: Optional[float] = None,
                 settings: Optional[GestureTransferConfig] = None,
                 dispatcher: Optional[EventDispatcher] = None):
        self.settings = settings or get_config()
        self.camera = camera
        self.dispatcher = dispatcher
        self.session_id = str(uuid.uuid4())
        self.reset_seconds = reset_seconds if reset_seconds is not None else self.settings.gesture_reset_seconds
        self._on_results: Optional[Callable[[HandDetectionResult], None]] = None
        self._reset_handle: Optional[asyncio.TimerHandle] = None

    async def start_detection(self, on_results: Callable[[HandDetectionResult], None]) -> None:
        """
        Raises:
            CameraPermissionError: If a preview camera was given and cannot be acquired
        """
        if self.camera is not None:
            try:
                await self.camera.start(self._ignore_frame, self.settings.camera_width, self.settings.camera_height)
            except Exception as e:
                logger.error(f"Camera acquisition failed: {e}")
                raise CameraPermissionError("Camera access denied") from e
        self._on_results = on_results

    @staticmethod
    async def _ignore_frame(frame: Frame) -> None:
        return None

    def tap(self) -> None:
        """Report a detected hand and schedule the reset; needs a running event loop"""
        if self._on_results is None:
            return
        self._emit(HandDetectionResult(detected=True, confidence=TAP_CONFIDENCE))

        if self._reset_handle is not None:
            self._reset_handle.cancel()
        loop = asyncio.get_running_loop()
        self._reset_handle = loop.call_later(self.reset_seconds, self._reset)

    def _reset(self) -> None:
        self._reset_handle = None
        if self._on_results is not None:
            self._emit(HandDetectionResult(detected=False, confidence=0.0))

    def _emit(self, result: HandDetectionResult) -> None:
        _publish_gesture(self.dispatcher, self.session_id, result, "tap")
        self._on_results(result)

    def stop(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None
        self._on_results = None
        if self.camera is not None:
            self.camera.stop()
