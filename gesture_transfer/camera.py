"""
OpenCV Camera Source

CameraSource over cv2.VideoCapture, installed with the "vision" extra. Frames
are BGR numpy arrays read on a worker thread and handed to the frame
handler on the event loop, one at a time.
"""

from typing import Callable, Optional, Union
import asyncio
import logging

import cv2

from .config import GestureTransferConfig, get_config
from .errors import CameraPermissionError
from .verification import CameraSource, FrameHandler

logger = logging.getLogger("gesture_transfer.camera")


def _device_source(device: str) -> Union[int, str]:
    # "0", "1" ... select a local device; anything else is a file or stream URL
    return int(device) if device.isdigit() else device


class OpenCVCamera(CameraSource):
    """Local webcam, video file or network stream read through OpenCV"""

    def __init__(self, device: Optional[str] = None,
                 settings: Optional[GestureTransferConfig] = None,
                 capture_factory: Callable = cv2.VideoCapture):
        self.settings = settings or get_config()
        self.device = device if device is not None else self.settings.camera_device
        self._capture_factory = capture_factory
        self._capture = None
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self.frames_read = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self, on_frame: FrameHandler, width: int, height: int) -> None:
        """
        Open the device and start the read loop.

        Raises:
            CameraPermissionError: If the device cannot be opened
        """
        if self._running:
            raise CameraPermissionError("Camera is already streaming")

        capture = self._capture_factory(_device_source(self.device))
        if not capture.isOpened():
            capture.release()
            logger.error(f"Failed to open camera device {self.device}")
            raise CameraPermissionError(f"Failed to open camera device {self.device}")

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        self._capture = capture
        self._running = True
        self.frames_read = 0
        logger.info(f"Camera {self.device} opened at {width}x{height}")
        self._task = asyncio.get_running_loop().create_task(self._read_loop(on_frame))

    async def _read_loop(self, on_frame: FrameHandler) -> None:
        loop = asyncio.get_running_loop()
        capture = self._capture
        try:
            while self._running:
                ok, frame = await loop.run_in_executor(None, capture.read)
                if not ok or not self._running:
                    if self._running:
                        logger.warning(f"Camera {self.device} stream ended after {self.frames_read} frames")
                    break
                self.frames_read += 1
                await on_frame(frame)
        except Exception as e:
            logger.error(f"Camera {self.device} read loop failed: {e}", exc_info=True)
        finally:
            self._running = False
            capture.release()

    async def wait_closed(self) -> None:
        """Wait until the read loop has exited and the device is released"""
        if self._task is not None:
            await self._task

    def stop(self) -> None:
        self._running = False
        if self._task is None and self._capture is not None:
            self._capture.release()
        self._capture = None
