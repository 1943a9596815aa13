"""Tests for the capture state machine (silence auto-submit, stop, errors, fallback)."""

from __future__ import annotations

import asyncio

import pytest

from clinilex.asr import (
    AudioUtterance,
    CaptureError,
    CaptureStateMachine,
    CaptureStatus,
    RecognizerEnded,
    TextUtterance,
)
from tests.fakes.fake_recognizer import FakeRecognizerFactory, unavailable_factory
from tests.fakes.fake_recorder import FakeRecorder


class Harness:
    def __init__(self, clock, factory=None, recorder=None, **kwargs) -> None:
        self.submitted = []
        self.errors = []
        self.transcripts = []
        self.starts = 0
        self.factory = factory if factory is not None else FakeRecognizerFactory()
        self.recorder = recorder or FakeRecorder()
        self.machine = CaptureStateMachine(
            self.factory,
            self.submitted.append,
            locale="en-US",
            recorder_factory=lambda: self.recorder,
            on_session_start=self._started,
            on_transcript=self.transcripts.append,
            on_error=self.errors.append,
            silence_timeout_s=4.0,
            now_fn=clock,
            **kwargs,
        )

    def _started(self) -> None:
        self.starts += 1

    @property
    def recognizer(self):
        return self.factory.last


@pytest.fixture
def harness(clock):
    return Harness(clock)


class TestSilenceAutoSubmit:
    @pytest.mark.asyncio
    async def test_submits_once_after_four_seconds(self, harness, clock):
        await harness.machine.start()
        assert harness.machine.status is CaptureStatus.LISTENING

        harness.recognizer.say("my head hurts", final=True)
        clock.advance(3.9)
        assert harness.machine.poll_silence() is False
        assert harness.submitted == []

        clock.advance(0.2)
        assert harness.machine.poll_silence() is True

        assert harness.submitted == [TextUtterance("my head hurts")]
        assert harness.machine.status is CaptureStatus.IDLE
        assert harness.recognizer.calls == ["abort", "start", "stop"]

        # nothing left to finalize
        clock.advance(10)
        assert harness.machine.poll_silence() is False
        await harness.machine.stop()
        harness.recognizer.end()
        assert len(harness.submitted) == 1

    @pytest.mark.asyncio
    async def test_new_results_reset_the_deadline(self, harness, clock):
        await harness.machine.start()
        harness.recognizer.say("my head", final=True)
        clock.advance(3.0)
        harness.recognizer.say("hurts", final=False)
        clock.advance(3.0)
        assert harness.machine.poll_silence() is False
        clock.advance(1.1)
        assert harness.machine.poll_silence() is True
        assert harness.submitted == [TextUtterance("my head hurts")]

    @pytest.mark.asyncio
    async def test_interim_replaces_interim(self, harness, clock):
        await harness.machine.start()
        harness.recognizer.say("I have", final=True)
        harness.recognizer.say("a hed", final=False)
        harness.recognizer.say("a headache", final=False)
        assert harness.machine.session.accumulated_text == "I have a headache"
        assert harness.transcripts[-1] == "I have a headache"

    @pytest.mark.asyncio
    async def test_silence_without_text_keeps_listening(self, harness, clock):
        await harness.machine.start()
        harness.recognizer.say("   ", final=False)
        clock.advance(5.0)
        assert harness.machine.poll_silence() is False
        assert harness.machine.status is CaptureStatus.LISTENING
        assert harness.submitted == []

    @pytest.mark.asyncio
    async def test_finalizing_waits_for_recognizer_end(self, clock):
        h = Harness(clock, factory=FakeRecognizerFactory(end_on_stop=False))
        await h.machine.start()
        h.recognizer.say("short of breath", final=False)
        clock.advance(4.5)
        assert h.machine.poll_silence() is True
        assert h.machine.status is CaptureStatus.FINALIZING

        # late final result still lands in this utterance
        h.recognizer.say("short of breath", final=True)
        assert h.submitted == []
        h.recognizer.end()
        assert h.submitted == [TextUtterance("short of breath")]
        assert h.machine.poll_silence() is False

    @pytest.mark.asyncio
    async def test_watch_silence_loop(self, harness, clock):
        await harness.machine.start()
        harness.recognizer.say("dizzy", final=True)
        clock.advance(5.0)
        watcher = asyncio.create_task(harness.machine.watch_silence(interval_s=0.001))
        # the loop ends on its own once the session is submitted
        await asyncio.wait_for(watcher, timeout=1.0)
        assert harness.submitted == [TextUtterance("dizzy")]

    @pytest.mark.asyncio
    async def test_watch_silence_ends_with_recognizer(self, harness):
        await harness.machine.start()
        watcher = asyncio.create_task(harness.machine.watch_silence(interval_s=0.001))
        await asyncio.sleep(0.005)
        assert not watcher.done()
        harness.recognizer.end()
        await asyncio.wait_for(watcher, timeout=1.0)
        assert harness.submitted == []

    @pytest.mark.asyncio
    async def test_steady_speech_then_silence_submits_once(self, clock):
        finalizing = []

        h = Harness(clock, factory=FakeRecognizerFactory(end_on_stop=False))
        await h.machine.start()
        words = ["my", "chest", "feels", "tight", "when", "I", "climb", "the", "stairs", "slowly"]
        # one update per second, growing interim phrase, final on the last word
        for i in range(len(words)):
            h.recognizer.say(" ".join(words[: i + 1]), final=i == len(words) - 1)
            clock.advance(1.0)
            if h.machine.poll_silence():
                finalizing.append(clock())
        assert finalizing == []
        assert h.machine.status is CaptureStatus.LISTENING

        clock.advance(3.0)
        for _ in range(5):
            if h.machine.poll_silence():
                finalizing.append(clock())
            clock.advance(1.0)
        assert len(finalizing) == 1
        assert h.machine.status is CaptureStatus.FINALIZING

        h.recognizer.end()
        assert h.submitted == [TextUtterance(" ".join(words))]
        assert h.machine.status is CaptureStatus.IDLE


class TestExplicitStop:
    @pytest.mark.asyncio
    async def test_stop_submits_accumulated_text(self, harness):
        await harness.machine.start()
        harness.recognizer.say("pain in my", final=True)
        harness.recognizer.say("left arm", final=False)
        await harness.machine.stop()
        assert harness.submitted == [TextUtterance("pain in my left arm")]
        assert harness.machine.status is CaptureStatus.IDLE

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, harness):
        await harness.machine.start()
        harness.recognizer.say("nausea", final=True)
        await harness.machine.stop()
        await harness.machine.stop()
        harness.machine.handle(RecognizerEnded())
        assert harness.submitted == [TextUtterance("nausea")]

    @pytest.mark.asyncio
    async def test_stop_without_speech_submits_nothing(self, harness):
        await harness.machine.start()
        await harness.machine.stop()
        assert harness.submitted == []

    @pytest.mark.asyncio
    async def test_stop_while_idle_is_noop(self, harness):
        await harness.machine.stop()
        assert harness.submitted == []

    @pytest.mark.asyncio
    async def test_start_while_active_is_ignored(self, harness):
        await harness.machine.start()
        await harness.machine.start()
        assert harness.starts == 1
        assert len(harness.factory.built) == 1

    @pytest.mark.asyncio
    async def test_abort_discards(self, harness):
        await harness.machine.start()
        harness.recognizer.say("never mind", final=True)
        harness.machine.abort()
        assert harness.submitted == []
        assert harness.recognizer.calls[-1] == "abort"

    @pytest.mark.asyncio
    async def test_results_after_session_are_ignored(self, harness, clock):
        await harness.machine.start()
        harness.recognizer.say("cough", final=True)
        await harness.machine.stop()
        harness.recognizer.say("stray words", final=True)
        clock.advance(10)
        assert harness.machine.poll_silence() is False
        assert harness.submitted == [TextUtterance("cough")]


class TestRecognizerErrors:
    @pytest.mark.asyncio
    async def test_no_speech_is_ignored(self, harness):
        await harness.machine.start()
        harness.recognizer.fail("no-speech")
        assert harness.machine.status is CaptureStatus.LISTENING
        assert harness.errors == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["not-allowed", "service-not-allowed", "audio-capture"])
    async def test_permission_denied_ends_session(self, harness, code):
        await harness.machine.start()
        harness.recognizer.say("hello", final=True)
        harness.recognizer.fail(code)
        assert harness.machine.status is CaptureStatus.IDLE
        assert harness.submitted == []
        assert len(harness.errors) == 1
        assert harness.errors[0].code == code

    @pytest.mark.asyncio
    async def test_other_errors_are_logged_only(self, harness):
        await harness.machine.start()
        harness.recognizer.fail("network")
        harness.recognizer.fail("language-not-supported")
        assert harness.machine.status is CaptureStatus.LISTENING
        assert harness.errors == []

    @pytest.mark.asyncio
    async def test_restart_after_permission_error(self, harness):
        await harness.machine.start()
        harness.recognizer.fail("not-allowed")
        assert not harness.recognizer.running

        await harness.machine.start()
        assert harness.machine.status is CaptureStatus.LISTENING
        assert harness.recognizer.calls == ["abort", "start", "abort", "abort", "start"]

    @pytest.mark.asyncio
    async def test_leftover_recognition_is_aborted_before_start(self, clock):
        h = Harness(clock, factory=FakeRecognizerFactory(end_on_stop=False))
        await h.machine.start()
        await h.machine.stop()
        # the recognizer never reported its end; the next tap must still work
        assert h.recognizer.running
        await h.machine.start()
        assert h.machine.status is CaptureStatus.LISTENING
        assert h.errors == []

    @pytest.mark.asyncio
    async def test_start_after_close_raises(self, harness):
        harness.machine.close()
        with pytest.raises(CaptureError):
            await harness.machine.start()
        assert harness.machine.status is CaptureStatus.IDLE

    @pytest.mark.asyncio
    async def test_recognizer_start_failure(self, clock):

        h = Harness(clock, factory=FakeRecognizerFactory(fail_start=True))
        with pytest.raises(CaptureError):
            await h.machine.start()
        assert h.machine.status is CaptureStatus.IDLE
        assert not h.machine.is_active


class TestFallbackRecorder:
    @pytest.mark.asyncio
    async def test_records_until_stop_and_submits_audio(self, clock):
        recorder = FakeRecorder(payload=b"RIFFdata")
        h = Harness(clock, factory=unavailable_factory, recorder=recorder)
        assert h.machine.fallback_mode

        await h.machine.start()
        assert h.machine.status is CaptureStatus.RECORDING

        # no silence auto-submit in fallback mode
        clock.advance(30)
        assert h.machine.poll_silence() is False

        await h.machine.stop()
        assert h.submitted == [AudioUtterance(b"RIFFdata")]
        assert recorder.calls == ["open", "close"]
        assert h.machine.status is CaptureStatus.IDLE

    def test_missing_factory_means_fallback(self):
        machine = CaptureStateMachine(None, lambda u: None, recorder_factory=FakeRecorder)
        assert machine.fallback_mode
        assert machine.status is CaptureStatus.IDLE

    @pytest.mark.asyncio
    async def test_empty_recording_submits_nothing(self, clock):
        h = Harness(clock, factory=unavailable_factory, recorder=FakeRecorder(payload=b""))
        await h.machine.start()
        await h.machine.stop()
        assert h.submitted == []

    @pytest.mark.asyncio
    async def test_microphone_denied(self, clock):
        h = Harness(clock, factory=unavailable_factory, recorder=FakeRecorder(fail_open=True))
        with pytest.raises(CaptureError, match="Microphone access denied"):
            await h.machine.start()
        assert h.machine.status is CaptureStatus.IDLE

    @pytest.mark.asyncio
    async def test_abort_discards_audio(self, clock):
        recorder = FakeRecorder()
        h = Harness(clock, factory=unavailable_factory, recorder=recorder)
        await h.machine.start()
        h.machine.abort()
        assert recorder.calls == ["open", "abort"]
        assert h.submitted == []


class TestLocale:
    @pytest.mark.asyncio
    async def test_locale_change_rebuilds_recognizer(self, harness):
        first = harness.recognizer
        harness.machine.set_locale("ko-KR")
        assert first.calls == ["abort"]
        assert harness.recognizer.locale == "ko-KR"
        assert len(harness.factory.built) == 2

    @pytest.mark.asyncio
    async def test_locale_change_refused_while_active(self, harness):
        await harness.machine.start()
        with pytest.raises(CaptureError):
            harness.machine.set_locale("es-ES")
        assert harness.recognizer.locale == "en-US"
