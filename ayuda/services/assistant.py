"""
Emergency flow: prompt -> listen -> analyze -> speak guidance -> maybe call.
Each step waits for the previous utterance to finish speaking instead of
guessing its duration.
"""
import logging
from enum import Enum
from typing import Optional

from ayuda.config import Settings, settings
from ayuda.core.categories import guidance_for
from ayuda.core.guardrails import check_utterance
from ayuda.schemas.emergency import EmergencyResponse
from ayuda.services.capabilities import Capabilities
from ayuda.services.conversation import ConversationManager
from ayuda.services.speech_input import SpeechRecognizer
from ayuda.services.speech_output import SpeechSynthesizer

logger = logging.getLogger(__name__)

INITIAL_PROMPT = "Describe tu emergencia. Explica claramente qué está pasando para poder ayudarte mejor."
CALLING_MESSAGE = "Llamando a la ambulancia automáticamente. Mantén la calma, la ayuda está en camino."


class AssistantState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    ANALYZING = "analyzing"
    RESPONSE = "response"
    CALLING = "calling"


def instructions_text(response: EmergencyResponse) -> str:
    return "Instrucciones: " + ". ".join(response.instructions)


class EmergencyAssistant:
    def __init__(
        self,
        conversation: ConversationManager,
        recognizer: SpeechRecognizer,
        synthesizer: SpeechSynthesizer,
        capabilities: Capabilities,
        config: Settings = settings,
    ):
        self.conversation = conversation
        self.recognizer = recognizer
        self.synthesizer = synthesizer
        self.capabilities = capabilities
        self._config = config
        self.state = AssistantState.IDLE
        self.last_response: Optional[EmergencyResponse] = None
        self._busy = False

    async def start_emergency(self) -> None:
        logger.info("Starting emergency flow")
        self.synthesizer.cancel()
        self.recognizer.reset_transcript()
        self.conversation.reset_session()
        self.last_response = None
        self.state = AssistantState.LISTENING
        session = self.conversation.session_id

        await self.synthesizer.say(INITIAL_PROMPT)
        if not self._current(session, AssistantState.LISTENING):
            return
        await self.recognizer.start_listening()

    async def submit(self) -> Optional[EmergencyResponse]:
        """Stop listening and process what was said. Empty input -> ask again."""
        text = self.recognizer.stop_listening()
        is_valid, prompt = check_utterance(text)
        if not is_valid:
            session = self.conversation.session_id
            await self.synthesizer.say(prompt)
            self.recognizer.reset_transcript()
            if self._current(session, AssistantState.LISTENING):
                await self.recognizer.start_listening()
            return None
        return await self.process_utterance(text.strip())

    async def process_utterance(self, text: str) -> Optional[EmergencyResponse]:
        if self._busy:
            logger.info("Still processing the previous utterance; ignoring %r", text[:40])
            return None
        self._busy = True
        session = self.conversation.session_id
        try:
            self.state = AssistantState.ANALYZING
            reply = await self.conversation.send_message(text)
            if not self._current(session, AssistantState.ANALYZING):
                logger.info("Emergency was reset while waiting for a reply; dropping it")
                return None

            self.last_response = reply
            self.state = AssistantState.RESPONSE
            await self.synthesizer.say(reply.response_text)
            if reply.instructions and self._current(session, AssistantState.RESPONSE):
                await self.synthesizer.say(instructions_text(reply))
            if reply.should_call_emergency and self._current(session, AssistantState.RESPONSE):
                await self.call_emergency()
            return reply
        finally:
            self._busy = False

    async def call_emergency(self) -> bool:
        self.state = AssistantState.CALLING
        await self.synthesizer.say(CALLING_MESSAGE)
        number = self._config.emergency_number
        dialer = self.capabilities.dialer
        if dialer is None:
            logger.warning("No dialer on this platform; cannot call %s", number)
            return False
        try:
            dialer.dial(number)
        except Exception as e:
            logger.warning("Dialing %s failed: %s", number, e)
            return False
        logger.info("Dialed %s", number)
        return True

    def select_category(self, category_id: str) -> Optional[EmergencyResponse]:
        """Silent mode: pick a category from the list and show its guidance without speech."""
        category = self.conversation.begin_category(category_id)
        if category is None:
            return None
        guidance = guidance_for(category)
        if guidance is not None:
            self.last_response = guidance
            self.state = AssistantState.RESPONSE
        return guidance

    def reset(self) -> None:
        logger.info("Resetting emergency flow")
        self.state = AssistantState.IDLE
        self.last_response = None
        self.synthesizer.cancel()
        self.recognizer.reset_transcript()
        self.conversation.reset_session()

    def _current(self, session: str, state: AssistantState) -> bool:
        return self.conversation.session_id == session and self.state is state
