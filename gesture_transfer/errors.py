"""
Domain exceptions for the gesture transfer services.
"""


class GestureTransferError(Exception):
    """Base class for all gesture transfer errors"""
    pass


class ConversionError(GestureTransferError, ValueError):
    """Raised when an amount cannot be converted between two currencies"""
    pass


class CameraPermissionError(GestureTransferError):
    """Raised when the camera stream cannot be acquired"""
    pass


class DetectorUnavailableError(GestureTransferError):
    """Raised when a detection backend cannot be configured"""
    pass
