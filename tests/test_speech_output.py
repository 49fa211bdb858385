import asyncio

from ayuda.services.capabilities import Capabilities, Voice
from ayuda.services.speech_output import SpeechSynthesizer
from fakes import FakeSynthesisEngine, settle


def test_selects_voice_for_locale_language(test_settings, spanish_voices):
    synth = SpeechSynthesizer(Capabilities(synthesis=FakeSynthesisEngine(spanish_voices)), test_settings)
    assert synth.select_voice().name == "Paulina"


def test_falls_back_to_platform_voice(test_settings):
    engine = FakeSynthesisEngine([Voice(name="Samantha", lang="en-US")])
    synth = SpeechSynthesizer(Capabilities(synthesis=engine), test_settings)
    assert synth.select_voice() is None

    assert asyncio.run(synth.say("hola")) is True
    assert engine.spoken[0].voice is None
    assert engine.spoken[0].rate == test_settings.speech_rate


def test_say_waits_for_the_utterance(test_settings):
    engine = FakeSynthesisEngine(auto_finish=False)
    synth = SpeechSynthesizer(Capabilities(synthesis=engine), test_settings)

    async def scenario():
        task = asyncio.ensure_future(synth.say("Describe tu emergencia"))
        await settle()
        speaking = synth.is_speaking
        engine.finish_all()
        return speaking, await task

    speaking, finished = asyncio.run(scenario())
    assert speaking
    assert finished is True
    assert not synth.is_speaking


def test_newest_utterance_wins(test_settings):
    engine = FakeSynthesisEngine(auto_finish=False)
    synth = SpeechSynthesizer(Capabilities(synthesis=engine), test_settings)

    async def scenario():
        first = synth.speak("uno")
        second = synth.speak("dos")
        assert first.done() and first.result() is False
        assert synth.is_speaking
        engine.finish_all()
        return await second

    assert asyncio.run(scenario()) is True
    assert engine.texts == ["uno", "dos"]
    assert engine.cancels == 1


def test_cancel_is_idempotent(test_settings):
    engine = FakeSynthesisEngine(auto_finish=False)
    synth = SpeechSynthesizer(Capabilities(synthesis=engine), test_settings)

    async def scenario():
        synth.cancel()
        pending = synth.speak("hola")
        synth.cancel()
        synth.cancel()
        return await pending

    assert asyncio.run(scenario()) is False
    assert not synth.is_speaking


def test_without_synthesis_nothing_blocks(test_settings):
    synth = SpeechSynthesizer(Capabilities(), test_settings)
    assert synth.select_voice() is None
    assert asyncio.run(synth.say("hola")) is True
    synth.cancel()


def test_blank_text_is_not_spoken(test_settings):
    engine = FakeSynthesisEngine()
    synth = SpeechSynthesizer(Capabilities(synthesis=engine), test_settings)
    assert asyncio.run(synth.say("  ")) is True
    assert engine.spoken == []


def test_engine_failure_resolves_false(test_settings):
    class BrokenEngine(FakeSynthesisEngine):
        def speak(self, utterance, on_done):
            raise RuntimeError("no audio device")

    synth = SpeechSynthesizer(Capabilities(synthesis=BrokenEngine()), test_settings)
    assert asyncio.run(synth.say("hola")) is False
    assert not synth.is_speaking
