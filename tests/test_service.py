"""Tests for the message bus and the summary service."""

import asyncio

import pytest

from melt_tube.messaging import Command, CommandType, Event, EventType, MessageBus
from melt_tube.service import SummaryService
from melt_tube.settings import MissingApiKey, Settings
from melt_tube.sources.youtube import TranscriptUnavailable
from melt_tube.summarize.client import HttpResponse, SummaryClient
from melt_tube.summarize.errors import EmptyTranscript
from melt_tube.summarize.job import JobStatus

from .conftest import FakeHttp, echo_responder, is_merge_call, make_transcript, openai_reply


async def wait_until(predicate, attempts: int = 500) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.001)
    raise AssertionError("condition never became true")


def make_service(http: FakeHttp, settings: Settings, fetch=None, loader=None) -> tuple[MessageBus, SummaryService, list[Event]]:
    async def default_fetch(source: str) -> str:
        return make_transcript(3)

    bus = MessageBus()
    events: list[Event] = []
    bus.subscribe(events.append)
    service = SummaryService(
        bus,
        SummaryClient(http),
        fetch_transcript=fetch or default_fetch,
        settings_loader=loader or (lambda: settings),
    )
    return bus, service, events


def of_job(events: list[Event], job_id: int) -> list[Event]:
    return [e for e in events if e.job_id == job_id]


class TestMessageBus:
    """Tests for MessageBus."""

    @pytest.mark.asyncio
    async def test_sync_and_async_listeners(self) -> None:
        bus = MessageBus()
        seen: list[str] = []

        async def async_listener(event: Event) -> None:
            seen.append(f"async:{event.detail}")

        bus.subscribe(lambda e: seen.append(f"sync:{e.detail}"))
        bus.subscribe(async_listener)
        await bus.emit(Event.progress(1, "hello"))

        assert seen == ["sync:hello", "async:hello"]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self) -> None:
        bus = MessageBus()
        seen: list[Event] = []

        def broken(event: Event) -> None:
            raise RuntimeError("listener bug")

        bus.subscribe(broken)
        bus.subscribe(seen.append)
        await bus.emit(Event.error(3, "bad"))

        assert [e.message for e in seen] == ["bad"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self) -> None:
        bus = MessageBus()
        seen: list[Event] = []
        unsubscribe = bus.subscribe(seen.append)
        unsubscribe()
        unsubscribe()

        await bus.emit(Event.complete(1, "done"))
        assert seen == []

    @pytest.mark.asyncio
    async def test_dispatch_without_handler(self) -> None:
        with pytest.raises(ValueError, match="CANCEL"):
            await MessageBus().dispatch(Command(CommandType.CANCEL, job_id=1))


class TestSummaryService:
    """Tests for SummaryService."""

    @pytest.mark.asyncio
    async def test_start_summary_completes(self, settings: Settings) -> None:
        bus, service, events = make_service(FakeHttp(echo_responder), settings)

        handle = await bus.dispatch(Command(CommandType.START_SUMMARY, source="abc123def45"))
        summary = await handle.wait()

        assert summary == "# Summary\n\n- merged"
        assert handle.status is JobStatus.COMPLETE
        assert events[0].type is EventType.PROGRESS
        assert events[0].detail == "Retrieving transcript..."
        assert events[-1].type is EventType.COMPLETE
        assert events[-1].summary == summary
        assert all(e.job_id == handle.job_id for e in events)
        assert service.get(handle.job_id) is None

    @pytest.mark.asyncio
    async def test_fetcher_receives_source(self, settings: Settings) -> None:
        sources: list[str] = []

        async def fetch(source: str) -> str:
            sources.append(source)
            return make_transcript(2)

        bus, _, _ = make_service(FakeHttp(echo_responder), settings, fetch=fetch)
        handle = await bus.dispatch(Command(CommandType.START_SUMMARY, source="talk.txt"))
        await handle.wait()

        assert sources == ["talk.txt"]

    @pytest.mark.asyncio
    async def test_start_requires_source(self, settings: Settings) -> None:
        bus, _, _ = make_service(FakeHttp(echo_responder), settings)
        with pytest.raises(ValueError, match="source"):
            await bus.dispatch(Command(CommandType.START_SUMMARY))

    @pytest.mark.asyncio
    async def test_job_ids_are_unique(self, settings: Settings) -> None:
        _, service, _ = make_service(FakeHttp(echo_responder), settings)

        first = service.start(make_transcript(2), settings)
        second = service.start(make_transcript(2), settings)
        await asyncio.gather(first.wait(), second.wait())

        assert first.job_id != second.job_id

    @pytest.mark.asyncio
    async def test_cancel_mid_flight_is_silent(self, settings: Settings) -> None:
        gate = asyncio.Event()

        async def responder(url, headers, body):
            await gate.wait()
            return openai_reply("merged" if is_merge_call(body) else "ok")

        http = FakeHttp(responder)
        bus, service, events = make_service(http, settings)

        handle = await bus.dispatch(Command(CommandType.START_SUMMARY, source="abc123def45"))
        await wait_until(lambda: len(http.calls) > 0)
        seen = len(events)

        assert await bus.dispatch(Command(CommandType.CANCEL, job_id=handle.job_id)) is True
        gate.set()

        assert await handle.wait() is None
        assert handle.status is JobStatus.CANCELLED
        assert len(events) == seen
        assert not any(e.type in (EventType.COMPLETE, EventType.ERROR) for e in events)
        assert http.merge_calls == []

        # a later job is unaffected by the earlier cancellation
        later = await bus.dispatch(Command(CommandType.START_SUMMARY, source="abc123def45"))
        assert await later.wait() == "merged"
        assert of_job(events, later.job_id)[-1].type is EventType.COMPLETE

    @pytest.mark.asyncio
    async def test_cancel_while_fetching(self, settings: Settings) -> None:
        gate = asyncio.Event()

        async def slow_fetch(source: str) -> str:
            await gate.wait()
            return make_transcript(3)

        http = FakeHttp(echo_responder)
        bus, service, events = make_service(http, settings, fetch=slow_fetch)

        handle = await bus.dispatch(Command(CommandType.START_SUMMARY, source="abc123def45"))
        await wait_until(lambda: len(events) == 1)
        service.cancel(handle.job_id)
        gate.set()

        assert await handle.wait() is None
        assert http.calls == []
        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_cancel_unknown_job(self, settings: Settings) -> None:
        bus, _, _ = make_service(FakeHttp(echo_responder), settings)
        assert await bus.dispatch(Command(CommandType.CANCEL, job_id=99)) is False

    @pytest.mark.asyncio
    async def test_cancel_requires_job_id(self, settings: Settings) -> None:
        bus, _, _ = make_service(FakeHttp(echo_responder), settings)
        with pytest.raises(ValueError, match="job_id"):
            await bus.dispatch(Command(CommandType.CANCEL))

    @pytest.mark.asyncio
    async def test_chunk_failure_emits_error(self, settings: Settings) -> None:
        def responder(url, headers, body):
            return HttpResponse(status=429, body="quota exceeded")

        bus, _, events = make_service(FakeHttp(responder), settings)
        handle = await bus.dispatch(Command(CommandType.START_SUMMARY, source="abc123def45"))

        assert await handle.wait() is None
        assert handle.status is JobStatus.FAILED
        assert events[-1].type is EventType.ERROR
        assert events[-1].message.startswith("API error for chunk")
        assert events[-1].message.endswith("429 - quota exceeded")
        assert not any(e.type is EventType.COMPLETE for e in events)

    @pytest.mark.asyncio
    async def test_transcript_unavailable_emits_error(self, settings: Settings) -> None:
        async def fetch(source: str) -> str:
            raise TranscriptUnavailable("No transcript available.")

        http = FakeHttp(echo_responder)
        bus, _, events = make_service(http, settings, fetch=fetch)
        handle = await bus.dispatch(Command(CommandType.START_SUMMARY, source="abc123def45"))
        await handle.wait()

        assert events[-1] == Event.error(handle.job_id, "No transcript available.")
        assert http.calls == []

    @pytest.mark.asyncio
    async def test_missing_key_emits_error(self, settings: Settings) -> None:
        def loader() -> Settings:
            raise MissingApiKey("API key not configured.")

        bus, _, events = make_service(FakeHttp(echo_responder), settings, loader=loader)
        handle = await bus.dispatch(Command(CommandType.START_SUMMARY, source="abc123def45"))
        await handle.wait()

        assert [e.type for e in events] == [EventType.ERROR]
        assert events[0].message == "API key not configured."

    @pytest.mark.asyncio
    async def test_empty_transcript_from_source_emits_error(self, settings: Settings) -> None:
        async def fetch(source: str) -> str:
            return "  "

        bus, _, events = make_service(FakeHttp(echo_responder), settings, fetch=fetch)
        handle = await bus.dispatch(Command(CommandType.START_SUMMARY, source="abc123def45"))
        await handle.wait()

        assert events[-1].type is EventType.ERROR
        assert "empty" in events[-1].message

    @pytest.mark.asyncio
    async def test_start_rejects_blank_transcript(self, settings: Settings) -> None:
        _, service, events = make_service(FakeHttp(echo_responder), settings)

        with pytest.raises(EmptyTranscript):
            service.start("", settings)
        assert events == []
