"""
Audio module - Recording session state and clip utilities.
"""

from .processor import estimate_duration_seconds
from .recorder import CaptureState, DeviceCapabilities, PermissionState, Recorder

__all__ = [
    "CaptureState",
    "DeviceCapabilities",
    "PermissionState",
    "Recorder",
    "estimate_duration_seconds",
]
