"""WebSocket endpoint for live practice recording.

The client owns the microphone. It reports permission outcomes and control
actions as JSON text frames and streams encoded audio as binary frames.
The server drives a ``Recorder`` and, on ``stop``, analyzes the finalized
clip and sends the result back.

Client -> server (text)::

    {"action": "permission", "capabilities": {"media_devices_supported": true,
                                              "secure_context": true,
                                              "permission_state": "prompt"}}
    {"action": "permission", "error": null}              # access granted
    {"action": "permission", "error": "NotFoundError", "message": "..."}
    {"action": "start", "encodings": ["audio/webm;codecs=opus", ...]}
    {"action": "pause"} | {"action": "resume"} | {"action": "cancel"}
    {"action": "stop"}
    {"action": "error", "message": "..."}                # capture failed mid-recording

Client -> server (binary): encoded audio chunks while recording.

Server -> client: JSON ``RecorderMessage`` objects (connected, status,
result, error).
"""

import json
import logging

from fastapi import APIRouter, Query, WebSocket

from src.core.exceptions import OratoriaError
from src.core.models import RecorderMessage, RecorderMessageType, RuntimeEnvironment
from src.services import orchestrator
from src.services.audio.recorder import CaptureState, DeviceCapabilities, Recorder

logger = logging.getLogger(__name__)

router = APIRouter()


def _status(recorder: Recorder) -> dict:
    return {
        "state": recorder.state,
        "permission": recorder.permission,
        "encoding": recorder.encoding,
        "elapsed_seconds": recorder.elapsed_seconds,
        "buffered_bytes": recorder.buffered_bytes,
    }


async def _send(websocket: WebSocket, kind: RecorderMessageType, data: dict) -> None:
    await websocket.send_json(RecorderMessage(type=kind, data=data).model_dump(mode="json"))


async def _handle_action(
    websocket: WebSocket,
    recorder: Recorder,
    message: dict,
    preferred: str,
    env: RuntimeEnvironment,
) -> None:
    """Apply one control message to the recorder and answer the client."""
    action = message.get("action")

    if action == "permission":
        if "capabilities" in message:
            caps = message.get("capabilities") or {}
            recorder.check_permission(
                DeviceCapabilities(
                    media_devices_supported=bool(caps.get("media_devices_supported", True)),
                    secure_context=bool(caps.get("secure_context", True)),
                    permission_state=caps.get("permission_state"),
                )
            )
        else:
            recorder.request_access(message.get("error"), message.get("message", ""))
    elif action == "start":
        recorder.start(message.get("encodings") or ())
    elif action == "pause":
        recorder.pause()
    elif action == "resume":
        recorder.resume()
    elif action == "cancel":
        recorder.cancel()
    elif action == "error":
        recorder.fail(message.get("message", ""))
    elif action == "stop":
        clip = recorder.stop()
        await _send(websocket, RecorderMessageType.status, _status(recorder))
        result = await orchestrator.get_orchestrator().analyze(clip, preferred=preferred, env=env)
        await _send(websocket, RecorderMessageType.result, result.model_dump(mode="json"))
        return
    else:
        await _send(
            websocket,
            RecorderMessageType.error,
            {"detail": f"Unknown action: {action}", "code": "UNKNOWN_ACTION"},
        )
        return

    if recorder.error:
        await _send(
            websocket,
            RecorderMessageType.error,
            {"detail": recorder.error, "code": "DEVICE_ERROR", "permission": recorder.permission},
        )
    else:
        await _send(websocket, RecorderMessageType.status, _status(recorder))


@router.websocket("/ws/record")
async def record_ws(
    websocket: WebSocket,
    preferred: str = Query(orchestrator.AUTO),
    online: bool = Query(True),
) -> None:
    """Live recording session; one ``Recorder`` per connection.

    Query params:
        preferred: ``auto`` or one provider name for the analysis.
        online: Whether remote providers may be used.
    """
    await websocket.accept()
    recorder = Recorder()
    env = RuntimeEnvironment(online=online)
    logger.info("Recording WebSocket connected (preferred=%s, online=%s)", preferred, online)
    await _send(websocket, RecorderMessageType.connected, _status(recorder))

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break

            if frame.get("bytes") is not None:
                try:
                    recorder.feed(frame["bytes"])
                except OratoriaError as exc:
                    await _send(websocket, RecorderMessageType.error, {"detail": exc.detail, "code": exc.code})
                continue

            try:
                message = json.loads(frame.get("text") or "")
            except ValueError:
                await _send(
                    websocket,
                    RecorderMessageType.error,
                    {"detail": "Control messages must be JSON objects", "code": "INVALID_MESSAGE"},
                )
                continue
            if not isinstance(message, dict):
                await _send(
                    websocket,
                    RecorderMessageType.error,
                    {"detail": "Control messages must be JSON objects", "code": "INVALID_MESSAGE"},
                )
                continue

            try:
                await _handle_action(websocket, recorder, message, preferred, env)
            except OratoriaError as exc:
                await _send(websocket, RecorderMessageType.error, {"detail": exc.detail, "code": exc.code})
    finally:
        if recorder.state in (CaptureState.recording, CaptureState.paused):
            recorder.cancel()
        logger.info("Recording WebSocket closed")
