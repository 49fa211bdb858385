"""
Speech input: wraps the platform recognition engine into a small state machine
(idle / listening) with separate final and interim transcripts.

- Listening auto-stops after settings.listen_timeout_seconds.
- Network errors are retried (settings.max_recognition_retries, linear backoff).
- Permission, no-speech and audio-capture errors end the attempt and are
  surfaced as RecognitionError values for the UI; nothing here raises.
- Pending interim text is promoted to the final transcript when listening ends.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from ayuda.config import Settings, settings
from ayuda.services import capabilities as caps
from ayuda.services.capabilities import Capabilities, TranscriptSegment

logger = logging.getLogger(__name__)


class ListenState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"


class RecognitionErrorKind(str, Enum):
    UNSUPPORTED = "unsupported"
    PERMISSION_DENIED = "permission_denied"
    NO_SPEECH = "no_speech"
    AUDIO_CAPTURE = "audio_capture"
    NETWORK = "network"
    START_FAILED = "start_failed"
    UNKNOWN = "unknown"


_ENGINE_ERRORS = {
    caps.ERROR_NOT_ALLOWED: RecognitionErrorKind.PERMISSION_DENIED,
    caps.ERROR_SERVICE_NOT_ALLOWED: RecognitionErrorKind.PERMISSION_DENIED,
    caps.ERROR_NO_SPEECH: RecognitionErrorKind.NO_SPEECH,
    caps.ERROR_AUDIO_CAPTURE: RecognitionErrorKind.AUDIO_CAPTURE,
    caps.ERROR_NETWORK: RecognitionErrorKind.NETWORK,
}

_MESSAGES = {
    RecognitionErrorKind.UNSUPPORTED: "Tu dispositivo no soporta reconocimiento de voz.",
    RecognitionErrorKind.PERMISSION_DENIED: "Permisos de micrófono denegados. Permite el acceso al micrófono para continuar.",
    RecognitionErrorKind.NO_SPEECH: "No se detectó voz. Toca el micrófono e intenta hablar de nuevo.",
    RecognitionErrorKind.AUDIO_CAPTURE: "No se puede acceder al micrófono. Verifica que esté conectado y no lo use otra aplicación.",
    RecognitionErrorKind.NETWORK: "Error de conexión en el reconocimiento de voz. Intenta de nuevo.",
    RecognitionErrorKind.START_FAILED: "No se pudo iniciar el reconocimiento de voz. Intenta de nuevo.",
    RecognitionErrorKind.UNKNOWN: "Error de reconocimiento de voz. Intenta de nuevo.",
}


@dataclass(frozen=True)
class RecognitionError:
    kind: RecognitionErrorKind
    message: str
    code: Optional[str] = None  # raw engine code, when there is one

    @property
    def needs_permission(self) -> bool:
        return self.kind is RecognitionErrorKind.PERMISSION_DENIED


class SpeechRecognizer:
    def __init__(
        self,
        capabilities: Capabilities,
        config: Settings = settings,
        on_update: Optional[Callable[["SpeechRecognizer"], None]] = None,
    ):
        self._engine = capabilities.recognition
        self._config = config
        self._on_update = on_update
        self.state = ListenState.IDLE
        self.final_transcript = ""
        self.interim_transcript = ""
        self.error: Optional[RecognitionError] = None
        self.has_permission: Optional[bool] = None
        self.retries = 0
        self._run = 0  # bumped on every engine start/stop; callbacks from older runs are ignored
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._timeout_handle: Optional[asyncio.TimerHandle] = None
        self._retry_handle: Optional[asyncio.TimerHandle] = None

    @property
    def supported(self) -> bool:
        return self._engine is not None

    @property
    def is_listening(self) -> bool:
        return self.state is ListenState.LISTENING

    @property
    def is_retrying(self) -> bool:
        return self._retry_handle is not None

    @property
    def transcript(self) -> str:
        """Final text followed by whatever is still interim."""
        return " ".join(p for p in (self.final_transcript, self.interim_transcript) if p)

    async def request_permission(self) -> bool:
        if self._engine is None:
            self._fail(RecognitionErrorKind.UNSUPPORTED)
            return False
        try:
            granted = bool(await self._engine.request_permission())
        except Exception as e:
            logger.warning("Microphone permission request failed: %s", e)
            granted = False
        self.has_permission = granted
        if granted:
            self.error = None
            self._notify()
        else:
            self._fail(RecognitionErrorKind.PERMISSION_DENIED)
        return granted

    async def start_listening(self) -> None:
        if self._engine is None:
            self._fail(RecognitionErrorKind.UNSUPPORTED)
            return
        if self.has_permission is not True and not await self.request_permission():
            return
        if self.is_listening:
            logger.debug("Already listening; ignoring duplicate start")
            return
        self._cancel_timers()
        self.final_transcript = ""
        self.interim_transcript = ""
        self.error = None
        self.retries = 0
        self._begin()

    def stop_listening(self) -> str:
        """Stop and return the final transcript (interim text included)."""
        self._cancel_timers()
        if self.is_listening:
            logger.debug("Stopping speech recognition")
            self._halt_engine()
        self._finish()
        return self.final_transcript

    def reset_transcript(self) -> None:
        """Stop listening and forget transcripts, error and retry count."""
        self._cancel_timers()
        if self.is_listening:
            self._halt_engine()
        self.state = ListenState.IDLE
        self.final_transcript = ""
        self.interim_transcript = ""
        self.error = None
        self.retries = 0
        self._notify()

    def clear_transcript(self) -> None:
        self.final_transcript = ""
        self.interim_transcript = ""
        self._notify()

    # engine plumbing

    def _begin(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._run += 1
        run = self._run
        self.state = ListenState.LISTENING
        try:
            self._engine.start(
                self._config.speech_locale,
                on_result=lambda segments: self._dispatch(run, self._handle_result, segments),
                on_error=lambda code: self._dispatch(run, self._handle_error, code),
                on_end=lambda: self._dispatch(run, self._handle_end),
            )
        except Exception as e:
            logger.warning("Could not start speech recognition: %s", e)
            self.state = ListenState.IDLE
            self._fail(RecognitionErrorKind.START_FAILED)
            return
        self._timeout_handle = self._loop.call_later(
            self._config.listen_timeout_seconds, self._auto_stop, run
        )
        logger.info("Listening (%s)", self._config.speech_locale)
        self._notify()

    def _dispatch(self, run: int, handler: Callable, *args) -> None:
        # engines may call back from their own thread
        self._loop.call_soon_threadsafe(self._run_if_current, run, handler, args)

    def _run_if_current(self, run: int, handler: Callable, args: tuple) -> None:
        if run != self._run:
            return
        handler(*args)

    def _halt_engine(self) -> None:
        self._run += 1
        try:
            self._engine.stop()
        except Exception as e:
            logger.warning("Error stopping speech recognition: %s", e)

    def _handle_result(self, segments: Sequence[TranscriptSegment]) -> None:
        interim = ""
        finals = []
        for segment in segments:
            if segment.is_final:
                finals.append(segment.text.strip())
            else:
                interim += segment.text
        if finals:
            self.final_transcript = " ".join(p for p in [self.final_transcript, *finals] if p)
            self.interim_transcript = ""
            logger.debug("Final text: %r", " ".join(finals))
        else:
            self.interim_transcript = interim.strip()
        self._notify()

    def _handle_error(self, code: str) -> None:
        if code == caps.ERROR_ABORTED:
            logger.info("Speech recognition aborted")
            return
        kind = _ENGINE_ERRORS.get(code, RecognitionErrorKind.UNKNOWN)
        self._cancel_timers()
        self._run += 1  # the engine's trailing on_end belongs to a dead run
        self.state = ListenState.IDLE
        self.interim_transcript = ""

        if kind is RecognitionErrorKind.NETWORK and self.retries < self._config.max_recognition_retries:
            self.retries += 1
            delay = self._config.recognition_retry_backoff_seconds * self.retries
            logger.warning(
                "Speech recognition network error; retry %d/%d in %.1fs",
                self.retries, self._config.max_recognition_retries, delay,
            )
            self._retry_handle = self._loop.call_later(delay, self._retry)
            self._notify()
            return

        if kind is RecognitionErrorKind.PERMISSION_DENIED:
            self.has_permission = False
        self._fail(kind, code)

    def _handle_end(self) -> None:
        self._cancel_timers()
        self._run += 1
        self._finish()

    def _retry(self) -> None:
        self._retry_handle = None
        if self.is_listening:
            return
        logger.info("Retrying speech recognition")
        self._begin()

    def _auto_stop(self, run: int) -> None:
        self._timeout_handle = None
        if run != self._run or not self.is_listening:
            return
        logger.info("Auto-stopping speech recognition after %ss", self._config.listen_timeout_seconds)
        self.stop_listening()

    def _finish(self) -> None:
        if self.interim_transcript:
            self.final_transcript = " ".join(p for p in (self.final_transcript, self.interim_transcript) if p)
            self.interim_transcript = ""
        self.state = ListenState.IDLE
        self._notify()

    def _cancel_timers(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    def _fail(self, kind: RecognitionErrorKind, code: Optional[str] = None) -> None:
        self.error = RecognitionError(kind=kind, message=_MESSAGES[kind], code=code)
        logger.warning("Speech recognition error: %s (%s)", kind.value, code or "-")
        self._notify()

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update(self)
