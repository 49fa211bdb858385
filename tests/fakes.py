import asyncio

import httpx

from ayuda.services.capabilities import TranscriptSegment


class FakeRecognitionEngine:
    """Recognition engine driven by the test: emit results, errors and end events by hand."""

    def __init__(self, permission=True):
        self.permission = permission
        self.starts = 0
        self.stops = 0
        self.locale = None
        self._on_result = None
        self._on_error = None
        self._on_end = None

    async def request_permission(self):
        return self.permission

    def start(self, locale, on_result, on_error, on_end):
        self.starts += 1
        self.locale = locale
        self._on_result = on_result
        self._on_error = on_error
        self._on_end = on_end

    def stop(self):
        self.stops += 1

    def emit(self, *segments):
        self._on_result([TranscriptSegment(text=t, is_final=f) for t, f in segments])

    def fail(self, code):
        self._on_error(code)

    def end(self):
        self._on_end()


class FakeSynthesisEngine:
    """Synthesis engine that records utterances; finishes them immediately when auto_finish is set."""

    def __init__(self, voices=(), auto_finish=True):
        self._voices = list(voices)
        self.auto_finish = auto_finish
        self.spoken = []
        self.cancels = 0
        self._pending = []

    def voices(self):
        return self._voices

    def speak(self, utterance, on_done):
        self.spoken.append(utterance)
        if self.auto_finish:
            on_done()
        else:
            self._pending.append(on_done)

    def cancel(self):
        self.cancels += 1

    def finish_all(self):
        pending, self._pending = self._pending, []
        for on_done in pending:
            on_done()

    @property
    def texts(self):
        return [u.text for u in self.spoken]


class FakeDialer:
    def __init__(self):
        self.dialed = []

    def dial(self, number):
        self.dialed.append(number)


async def settle(rounds=5):
    """Let callbacks scheduled with call_soon run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def backend_client(handler):
    """AsyncClient whose requests are answered by `handler(request)`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
