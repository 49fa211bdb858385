import asyncio

from ayuda.services import capabilities as caps
from ayuda.services.capabilities import Capabilities
from ayuda.services.speech_input import ListenState, RecognitionErrorKind, SpeechRecognizer
from fakes import FakeRecognitionEngine, settle


def _recognizer(settings, engine=None, **kwargs):
    engine = engine or FakeRecognitionEngine()
    return engine, SpeechRecognizer(Capabilities(recognition=engine), settings, **kwargs)


def test_unsupported_platform(test_settings):
    async def scenario():
        recognizer = SpeechRecognizer(Capabilities(), test_settings)
        await recognizer.start_listening()
        return recognizer

    recognizer = asyncio.run(scenario())
    assert not recognizer.supported
    assert recognizer.state is ListenState.IDLE
    assert recognizer.error.kind is RecognitionErrorKind.UNSUPPORTED


def test_permission_denied(test_settings):
    async def scenario():
        engine, recognizer = _recognizer(test_settings, FakeRecognitionEngine(permission=False))
        await recognizer.start_listening()
        return engine, recognizer

    engine, recognizer = asyncio.run(scenario())
    assert engine.starts == 0
    assert not recognizer.is_listening
    assert recognizer.has_permission is False
    assert recognizer.error.needs_permission
    assert recognizer.error.message


def test_start_uses_configured_locale(test_settings):
    async def scenario():
        engine, recognizer = _recognizer(test_settings)
        await recognizer.start_listening()
        return engine, recognizer

    engine, recognizer = asyncio.run(scenario())
    assert engine.starts == 1
    assert engine.locale == "es-ES"
    assert recognizer.is_listening
    assert recognizer.has_permission is True


def test_interim_and_final_results(test_settings):
    async def scenario():
        engine, recognizer = _recognizer(test_settings)
        await recognizer.start_listening()

        engine.emit(("me duele", False))
        await settle()
        assert recognizer.interim_transcript == "me duele"
        assert recognizer.final_transcript == ""

        engine.emit(("me duele el pecho", True))
        await settle()
        assert recognizer.final_transcript == "me duele el pecho"
        assert recognizer.interim_transcript == ""

        engine.emit(("y el brazo", True))
        await settle()
        assert recognizer.final_transcript == "me duele el pecho y el brazo"
        recognizer.stop_listening()

    asyncio.run(scenario())


def test_stop_promotes_interim_text(test_settings):
    async def scenario():
        engine, recognizer = _recognizer(test_settings)
        await recognizer.start_listening()
        engine.emit(("hola", True))
        engine.emit(("necesito ayuda", False))
        await settle()
        text = recognizer.stop_listening()
        return engine, recognizer, text

    engine, recognizer, text = asyncio.run(scenario())
    assert text == "hola necesito ayuda"
    assert recognizer.interim_transcript == ""
    assert recognizer.state is ListenState.IDLE
    assert engine.stops == 1


def test_results_after_stop_are_ignored(test_settings):
    async def scenario():
        engine, recognizer = _recognizer(test_settings)
        await recognizer.start_listening()
        engine.emit(("hola", True))
        await settle()
        recognizer.stop_listening()
        engine.emit(("tarde", True))
        engine.end()
        await settle()
        return recognizer

    recognizer = asyncio.run(scenario())
    assert recognizer.final_transcript == "hola"


def test_engine_end_returns_to_idle(test_settings):
    async def scenario():
        engine, recognizer = _recognizer(test_settings)
        await recognizer.start_listening()
        engine.emit(("me caí", False))
        engine.end()
        await settle()
        return recognizer

    recognizer = asyncio.run(scenario())
    assert recognizer.state is ListenState.IDLE
    assert recognizer.final_transcript == "me caí"


def test_listening_stops_after_timeout(test_settings):
    config = test_settings.model_copy(update={"listen_timeout_seconds": 0.05})

    async def scenario():
        engine, recognizer = _recognizer(config)
        await recognizer.start_listening()
        engine.emit(("me quemé", False))
        await settle()
        await asyncio.sleep(0.15)
        return engine, recognizer

    engine, recognizer = asyncio.run(scenario())
    assert not recognizer.is_listening
    assert engine.stops == 1
    assert recognizer.final_transcript == "me quemé"


def test_no_speech_is_not_retried(test_settings):
    async def scenario():
        engine, recognizer = _recognizer(test_settings)
        await recognizer.start_listening()
        engine.fail(caps.ERROR_NO_SPEECH)
        await settle()
        await asyncio.sleep(0.05)
        return engine, recognizer

    engine, recognizer = asyncio.run(scenario())
    assert engine.starts == 1
    assert recognizer.state is ListenState.IDLE
    assert recognizer.error.kind is RecognitionErrorKind.NO_SPEECH
    assert recognizer.error.code == caps.ERROR_NO_SPEECH


def test_permission_error_while_listening(test_settings):
    async def scenario():
        engine, recognizer = _recognizer(test_settings)
        await recognizer.start_listening()
        engine.fail(caps.ERROR_NOT_ALLOWED)
        await settle()
        return recognizer

    recognizer = asyncio.run(scenario())
    assert recognizer.has_permission is False
    assert recognizer.error.needs_permission


def test_aborted_is_ignored(test_settings):
    async def scenario():
        engine, recognizer = _recognizer(test_settings)
        await recognizer.start_listening()
        engine.fail(caps.ERROR_ABORTED)
        await settle()
        listening = recognizer.is_listening
        recognizer.stop_listening()
        return recognizer, listening

    recognizer, listening = asyncio.run(scenario())
    assert listening
    assert recognizer.error is None


def test_network_errors_are_retried_then_surfaced(test_settings):
    async def scenario():
        engine, recognizer = _recognizer(test_settings)
        await recognizer.start_listening()

        for attempt in range(1, 4):
            engine.fail(caps.ERROR_NETWORK)
            await settle()
            assert recognizer.is_retrying
            assert recognizer.error is None
            assert recognizer.retries == attempt
            await asyncio.sleep(0.1)
            assert engine.starts == attempt + 1
            assert recognizer.is_listening

        engine.fail(caps.ERROR_NETWORK)
        await settle()
        return engine, recognizer

    engine, recognizer = asyncio.run(scenario())
    assert engine.starts == 4
    assert not recognizer.is_retrying
    assert recognizer.state is ListenState.IDLE
    assert recognizer.error.kind is RecognitionErrorKind.NETWORK


def test_engine_start_failure(test_settings):
    class BrokenEngine(FakeRecognitionEngine):
        def start(self, *args, **kwargs):
            raise RuntimeError("busy")

    async def scenario():
        _, recognizer = _recognizer(test_settings, BrokenEngine())
        await recognizer.start_listening()
        return recognizer

    recognizer = asyncio.run(scenario())
    assert recognizer.state is ListenState.IDLE
    assert recognizer.error.kind is RecognitionErrorKind.START_FAILED


def test_reset_transcript(test_settings):
    updates = []

    async def scenario():
        engine, recognizer = _recognizer(test_settings, on_update=updates.append)
        await recognizer.start_listening()
        engine.emit(("algo", True))
        await settle()
        recognizer.reset_transcript()
        return engine, recognizer

    engine, recognizer = asyncio.run(scenario())
    assert recognizer.transcript == ""
    assert recognizer.state is ListenState.IDLE
    assert engine.stops == 1
    assert updates
