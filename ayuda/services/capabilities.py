"""
Platform capabilities the core consumes: speech recognition, speech synthesis
and a phone dialer. Whatever the host provides (browser bridge, mobile SDK,
desktop engine) is wrapped to these interfaces and resolved once at startup.
A capability that is missing is simply None; callers check the
supports_* flags instead of probing the platform themselves.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)

# Error codes a RecognitionEngine reports through on_error
ERROR_NOT_ALLOWED = "not-allowed"
ERROR_SERVICE_NOT_ALLOWED = "service-not-allowed"
ERROR_NO_SPEECH = "no-speech"
ERROR_AUDIO_CAPTURE = "audio-capture"
ERROR_NETWORK = "network"
ERROR_ABORTED = "aborted"


@dataclass(frozen=True)
class TranscriptSegment:
    text: str
    is_final: bool


@dataclass(frozen=True)
class Voice:
    name: str
    lang: str  # BCP 47 tag, e.g. "es-ES"


@dataclass(frozen=True)
class Utterance:
    text: str
    voice: Optional[Voice] = None  # None = platform default
    rate: float = 1.0
    pitch: float = 1.0
    volume: float = 1.0


class RecognitionEngine(Protocol):
    async def request_permission(self) -> bool:
        """Ask for microphone access. True if granted."""
        ...

    def start(
        self,
        locale: str,
        on_result: Callable[[Sequence[TranscriptSegment]], None],
        on_error: Callable[[str], None],
        on_end: Callable[[], None],
    ) -> None:
        ...

    def stop(self) -> None:
        ...


class SynthesisEngine(Protocol):
    def voices(self) -> Sequence[Voice]:
        ...

    def speak(self, utterance: Utterance, on_done: Callable[[], None]) -> None:
        """Start speaking. on_done fires once when the utterance ends, fails or is cancelled."""
        ...

    def cancel(self) -> None:
        ...


class Dialer(Protocol):
    def dial(self, number: str) -> None:
        ...


@dataclass(frozen=True)
class Capabilities:
    recognition: Optional[RecognitionEngine] = None
    synthesis: Optional[SynthesisEngine] = None
    dialer: Optional[Dialer] = None

    @property
    def supports_recognition(self) -> bool:
        return self.recognition is not None

    @property
    def supports_synthesis(self) -> bool:
        return self.synthesis is not None

    @property
    def supports_dialing(self) -> bool:
        return self.dialer is not None


def resolve_capabilities(
    recognition: Optional[RecognitionEngine] = None,
    synthesis: Optional[SynthesisEngine] = None,
    dialer: Optional[Dialer] = None,
) -> Capabilities:
    """Bundle the host's engines. Call once at startup and pass the result around."""
    caps = Capabilities(recognition=recognition, synthesis=synthesis, dialer=dialer)
    logger.info(
        "Platform capabilities: recognition=%s synthesis=%s dialer=%s",
        caps.supports_recognition, caps.supports_synthesis, caps.supports_dialing,
    )
    if not caps.supports_recognition:
        logger.warning("Speech recognition is not supported on this platform")
    return caps
