import asyncio
import logging
from typing import Optional

from ayuda.config import Settings, settings
from ayuda.services.capabilities import Capabilities, Utterance, Voice

logger = logging.getLogger(__name__)


class SpeechSynthesizer:
    """
    Speaks text with the platform voice engine. The newest request wins: speaking
    while an utterance is playing cancels it first. Each speak() returns a future
    that resolves True when the utterance finished, False when it was cancelled.
    """

    def __init__(self, capabilities: Capabilities, config: Settings = settings):
        self._engine = capabilities.synthesis
        self._locale = config.speech_locale
        self._rate = config.speech_rate
        self._current: Optional[asyncio.Future] = None

    @property
    def is_speaking(self) -> bool:
        return self._current is not None and not self._current.done()

    def select_voice(self) -> Optional[Voice]:
        """First voice in the configured language, or None for the platform default."""
        if self._engine is None:
            return None
        language = self._locale.split("-")[0].lower()
        for voice in self._engine.voices():
            if voice.lang.lower().startswith(language):
                return voice
        logger.debug("No %s voice available; using platform default", language)
        return None

    def speak(self, text: str) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        done = loop.create_future()
        if self._engine is None or not text.strip():
            done.set_result(True)
            return done

        self._interrupt()
        self._current = done
        utterance = Utterance(text=text, voice=self.select_voice(), rate=self._rate)

        def _finish() -> None:
            if not done.done():
                done.set_result(True)
            if self._current is done:
                self._current = None

        try:
            self._engine.speak(utterance, lambda: loop.call_soon_threadsafe(_finish))
        except Exception as e:
            logger.warning("Speech synthesis failed: %s", e)
            done.set_result(False)
            self._current = None
        return done

    async def say(self, text: str) -> bool:
        """Speak and wait until the utterance is over. False if it was cancelled."""
        return await self.speak(text)

    def cancel(self) -> None:
        if self._engine is not None:
            self._engine.cancel()
        self._resolve_current(False)

    def _interrupt(self) -> None:
        if self.is_speaking:
            logger.debug("Cancelling current utterance for a newer one")
            self._engine.cancel()
        self._resolve_current(False)

    def _resolve_current(self, finished: bool) -> None:
        if self._current is not None and not self._current.done():
            self._current.set_result(finished)
        self._current = None
