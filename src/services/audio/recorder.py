"""Recording session state for one microphone capture.

The capture device itself lives on the client (browser/mobile); it reports
permission outcomes and streams encoded chunks. ``Recorder`` owns the
permission lifecycle, the start/pause/resume/stop controls, the elapsed
active time, and the chunk buffer, and finalizes an ``AudioClip``.

Permission states: checking -> granted | denied | prompt
Capture states:    idle -> recording <-> paused -> stopped

Device problems (no microphone, busy microphone, denied access, insecure
context) are stored as user-facing messages in ``error``, never raised.
Calling a control in the wrong capture state raises
``InvalidRecorderStateError``.
"""

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum

from src.core.exceptions import InvalidRecorderStateError
from src.core.models import AudioClip

logger = logging.getLogger(__name__)

# Negotiated in order; the first one the client supports wins
PREFERRED_ENCODINGS = ("audio/webm;codecs=opus", "audio/mp4", "audio/wav")
DEFAULT_ENCODING = "audio/wav"


class PermissionState(StrEnum):
    """Microphone permission as reported by the client platform."""

    checking = "checking"
    granted = "granted"
    denied = "denied"
    prompt = "prompt"


class CaptureState(StrEnum):
    """Recorder control state."""

    idle = "idle"
    recording = "recording"
    paused = "paused"
    stopped = "stopped"


class DeviceError(StrEnum):
    """Device failure names as reported by the capture platform."""

    not_allowed = "NotAllowedError"
    not_found = "NotFoundError"
    not_readable = "NotReadableError"
    overconstrained = "OverconstrainedError"
    security = "SecurityError"
    unsupported = "UnsupportedError"
    insecure_context = "InsecureContextError"


DEVICE_ERROR_MESSAGES = {
    DeviceError.not_allowed: (
        "Permissão negada. Clique no ícone do microfone na barra de endereços "
        "e permita o acesso."
    ),
    DeviceError.not_found: (
        "Nenhum microfone encontrado. Verifique se há um microfone conectado."
    ),
    DeviceError.not_readable: (
        "Microfone está sendo usado por outro aplicativo. Feche outros programas "
        "que possam estar usando o microfone."
    ),
    DeviceError.overconstrained: "Configurações de áudio não suportadas pelo seu microfone.",
    DeviceError.security: "Erro de segurança. Certifique-se de estar usando HTTPS.",
    DeviceError.unsupported: (
        "Seu navegador não suporta gravação de áudio. Use Chrome, Firefox ou Safari."
    ),
    DeviceError.insecure_context: "Gravação de áudio requer conexão segura (HTTPS)",
}

# Errors that mean the user (or platform) refused access outright
_DENYING_ERRORS = {DeviceError.not_allowed, DeviceError.unsupported, DeviceError.insecure_context}


def device_error_message(error_name: str, detail: str = "") -> str:
    """Map a platform error name to the message shown to the user."""
    try:
        return DEVICE_ERROR_MESSAGES[DeviceError(error_name)]
    except ValueError:
        return f"Erro ao acessar microfone: {detail or error_name}"


@dataclass(frozen=True)
class DeviceCapabilities:
    """What the client platform reported before asking for the microphone.

    Attributes:
        media_devices_supported: The platform exposes an audio capture API.
        secure_context: The page runs over HTTPS (or localhost).
        permission_state: Result of the platform permission query
            ("granted", "denied", "prompt"), or None if the query failed.
    """

    media_devices_supported: bool = True
    secure_context: bool = True
    permission_state: str | None = None


class Recorder:
    """One capture session.

    Args:
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.permission = PermissionState.checking
        self.state = CaptureState.idle
        self.error: str | None = None
        self.encoding = DEFAULT_ENCODING
        self._chunks: list[bytes] = []
        self._active_seconds = 0.0
        self._resumed_at: float | None = None
        self._stream_open = False

    # ------------------------------------------------------------------
    # Permission lifecycle
    # ------------------------------------------------------------------

    def check_permission(self, capabilities: DeviceCapabilities) -> PermissionState:
        """Resolve the initial permission state from platform capabilities."""
        self.permission = PermissionState.checking
        if not capabilities.media_devices_supported:
            return self._deny(DeviceError.unsupported)
        if not capabilities.secure_context:
            return self._deny(DeviceError.insecure_context)

        try:
            self.permission = PermissionState(capabilities.permission_state)
        except ValueError:
            # Platform could not answer the permission query
            self.permission = PermissionState.prompt
        if self.permission is PermissionState.denied:
            self.error = DEVICE_ERROR_MESSAGES[DeviceError.not_allowed]
        return self.permission

    def request_access(self, error_name: str | None = None, detail: str = "") -> bool:
        """Apply the outcome of the platform's microphone request.

        Args:
            error_name: None when access was granted, otherwise the platform
                error name (e.g. ``"NotAllowedError"``).
            detail: Platform error message, used for unrecognized errors.

        Returns:
            True when access was granted.
        """
        if error_name is None:
            self.permission = PermissionState.granted
            self.error = None
            return True

        message = device_error_message(error_name, detail)
        logger.info("Microphone access failed: %s (%s)", error_name, detail)
        if error_name in _DENYING_ERRORS:
            self.permission = PermissionState.denied
        self.error = message
        return False

    def _deny(self, reason: DeviceError) -> PermissionState:
        self.permission = PermissionState.denied
        self.error = DEVICE_ERROR_MESSAGES[reason]
        return self.permission

    @property
    def can_record(self) -> bool:
        return self.permission is PermissionState.granted and self.error is None

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def start(self, supported_encodings: Iterable[str] = ()) -> str:
        """Begin capturing; returns the negotiated encoding."""
        if self.state not in (CaptureState.idle, CaptureState.stopped):
            raise InvalidRecorderStateError("start", self.state)
        if self.permission is not PermissionState.granted:
            raise InvalidRecorderStateError("start", f"permission {self.permission}")
        if self.error is not None:
            # Cleared only by a successful access request or reset()
            raise InvalidRecorderStateError("start", "device error")

        supported = set(supported_encodings)
        self.encoding = next((e for e in PREFERRED_ENCODINGS if e in supported), DEFAULT_ENCODING)
        self._chunks = []
        self._active_seconds = 0.0
        self._resumed_at = self._clock()
        self._stream_open = True
        self.state = CaptureState.recording
        logger.debug("Recording started (%s)", self.encoding)
        return self.encoding

    def feed(self, chunk: bytes) -> None:
        """Append one encoded chunk; empty chunks are ignored."""
        if self.state not in (CaptureState.recording, CaptureState.paused):
            raise InvalidRecorderStateError("feed audio", self.state)
        if chunk:
            self._chunks.append(bytes(chunk))

    def pause(self) -> None:
        if self.state is not CaptureState.recording:
            raise InvalidRecorderStateError("pause", self.state)
        self._active_seconds += self._clock() - self._resumed_at
        self._resumed_at = None
        self.state = CaptureState.paused

    def resume(self) -> None:
        if self.state is not CaptureState.paused:
            raise InvalidRecorderStateError("resume", self.state)
        self._resumed_at = self._clock()
        self.state = CaptureState.recording

    def toggle_pause(self) -> None:
        if self.state is CaptureState.paused:
            self.resume()
        else:
            self.pause()

    @property
    def elapsed_seconds(self) -> int:
        """Whole seconds of active (un-paused) recording."""
        active = self._active_seconds
        if self._resumed_at is not None:
            active += self._clock() - self._resumed_at
        return int(active)

    @property
    def buffered_bytes(self) -> int:
        return sum(len(c) for c in self._chunks)

    @property
    def stream_open(self) -> bool:
        return self._stream_open

    def stop(self) -> AudioClip:
        """Finalize the capture into an immutable AudioClip and release the stream."""
        if self.state not in (CaptureState.recording, CaptureState.paused):
            raise InvalidRecorderStateError("stop", self.state)
        duration = self.elapsed_seconds
        clip = AudioClip(data=b"".join(self._chunks), encoding=self.encoding, duration_seconds=duration)
        self._release()
        self.state = CaptureState.stopped
        logger.info("Recording stopped: %ss, %d bytes", duration, clip.size_bytes)
        return clip

    def cancel(self) -> None:
        """Discard the capture and release the stream."""
        self._release()
        self._chunks = []
        self._active_seconds = 0.0
        self.state = CaptureState.idle

    def fail(self, detail: str = "") -> None:
        """Record a capture failure reported mid-recording and release the stream."""
        self.error = f"Erro na gravação: {detail or 'Erro desconhecido'}"
        self._release()
        self.state = CaptureState.idle

    def reset(self) -> None:
        """Return to idle for a new take, keeping the permission state."""
        self.cancel()
        self.error = None

    def _release(self) -> None:
        if self._resumed_at is not None:
            self._active_seconds += self._clock() - self._resumed_at
            self._resumed_at = None
        self._stream_open = False
