"""Tests for structured operation events."""

import logging

import pytest

from app.client.events import EventEmitter, OperationEvent, logging_sink


class TestEventEmitter:
    @pytest.mark.asyncio
    async def test_success_event(self):
        seen: list[OperationEvent] = []
        emitter = EventEmitter(sinks=[seen.append])

        async with emitter.operation("profile.upsert", user_id="u1") as event:
            event["credits"] = 25

        assert len(seen) == 1
        assert seen[0].operation == "profile.upsert"
        assert seen[0].outcome == "success"
        assert seen[0].fields == {"user_id": "u1", "credits": 25}
        assert seen[0].duration_ms >= 0
        assert len(seen[0].correlation_id) == 12

    @pytest.mark.asyncio
    async def test_handled_failure(self):
        seen: list[OperationEvent] = []
        emitter = EventEmitter(sinks=[seen.append])

        async with emitter.operation("profile.upsert") as event:
            event["failed"] = True

        assert seen[0].outcome == "failure"
        assert "failed" not in seen[0].fields

    @pytest.mark.asyncio
    async def test_exception_reported_and_raised(self):
        seen: list[OperationEvent] = []
        emitter = EventEmitter(sinks=[seen.append])

        with pytest.raises(RuntimeError):
            async with emitter.operation("recording.transcribe"):
                raise RuntimeError("boom")

        assert seen[0].outcome == "failure"
        assert seen[0].fields["error"] == "boom"

    @pytest.mark.asyncio
    async def test_broken_sink_does_not_break_others(self, caplog):
        seen: list[OperationEvent] = []

        def broken(event: OperationEvent) -> None:
            raise ValueError("sink down")

        emitter = EventEmitter(sinks=[broken])
        emitter.add_sink(seen.append)
        async with emitter.operation("session.initialize"):
            pass

        assert len(seen) == 1
        assert "Event sink failed" in caplog.text

    def test_logging_sink_levels(self, caplog):
        with caplog.at_level(logging.INFO, logger="idea_saver.events"):
            logging_sink(OperationEvent("a", "success", 1.0, "c1"))
            logging_sink(OperationEvent("b", "failure", 1.0, "c2"))

        levels = [r.levelno for r in caplog.records]
        assert levels == [logging.INFO, logging.WARNING]
