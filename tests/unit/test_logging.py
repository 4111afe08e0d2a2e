"""Unit tests for structured logging configuration."""

import io
import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from src.observability import (
    configure_logging,
    configure_logging_from_settings,
    get_logger,
    session_context,
)
from src.ranking.metrics import InsertionMetrics
from src.ranking.models import Category
from src.ranking.session import RankingSession
from src.settings import AppSettings
from tests.helpers.builders import build_state, make_candidate
from tests.helpers.oracles import ScriptedOracle


@pytest.fixture
def log_stream() -> Iterator[io.StringIO]:
    """Capture JSON logs, restoring structlog defaults afterwards."""
    stream = io.StringIO()
    configure_logging(level=logging.INFO, output=stream, json_format=True)
    yield stream
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


def _events(stream: io.StringIO) -> list[dict[str, object]]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.mark.unit
    def test_json_lines_with_level_and_timestamp(
        self, log_stream: io.StringIO
    ) -> None:
        """Each event is one JSON object with level and timestamp."""
        get_logger().info("hello", answer=42)

        (event,) = _events(log_stream)
        assert event["event"] == "hello"
        assert event["answer"] == 42
        assert event["level"] == "info"
        assert "timestamp" in event

    @pytest.mark.unit
    def test_level_filtering(self) -> None:
        """Events below the configured level are dropped."""
        stream = io.StringIO()
        configure_logging(level=logging.WARNING, output=stream)
        try:
            get_logger().info("quiet")
            get_logger().warning("loud")
        finally:
            structlog.reset_defaults()

        assert [e["event"] for e in _events(stream)] == ["loud"]

    @pytest.mark.unit
    def test_ranking_events_are_structured(self, log_stream: io.StringIO) -> None:
        """Store operations log their outcome with a component tag."""
        build_state({Category.LIKED: ["a"]})

        inserted = [e for e in _events(log_stream) if e["event"] == "item_inserted"]
        assert inserted == [
            {
                "event": "item_inserted",
                "component": "ranking",
                "category": "liked",
                "item_id": "a",
                "position": 0,
                "category_size": 1,
                "total_count": 1,
                "global_rank": 1,
                "level": "info",
                "timestamp": inserted[0]["timestamp"],
            }
        ]


class TestConfigureLoggingFromSettings:
    """Tests for configuring logging from environment settings."""

    @pytest.mark.unit
    def test_level_and_format_come_from_settings(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """LOG_LEVEL filters events and LOG_JSON=true renders JSON lines."""
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("LOG_JSON", "true")
        settings = AppSettings(_env_file=None)  # type: ignore[call-arg]
        stream = io.StringIO()

        configure_logging_from_settings(settings, output=stream)
        try:
            get_logger().info("quiet")
            get_logger().warning("loud", reason="test")
        finally:
            structlog.reset_defaults()

        (event,) = _events(stream)
        assert event["event"] == "loud"
        assert event["reason"] == "test"

    @pytest.mark.unit
    def test_console_format_when_json_disabled(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """LOG_JSON=false switches to console rendering."""
        monkeypatch.setenv("LOG_LEVEL", "info")
        monkeypatch.setenv("LOG_JSON", "false")
        settings = AppSettings(_env_file=None)  # type: ignore[call-arg]
        stream = io.StringIO()

        configure_logging_from_settings(settings, output=stream)
        try:
            get_logger().info("plain_event")
        finally:
            structlog.reset_defaults()

        output = stream.getvalue()
        assert "plain_event" in output
        assert not output.lstrip().startswith("{")


class TestSessionContext:
    """Tests for tagging events with the ranking owner."""

    @pytest.mark.unit
    def test_owner_is_scoped_to_the_block(self, log_stream: io.StringIO) -> None:
        """Events inside the block carry user_id; events after it do not."""
        with session_context("user-1"):
            get_logger().info("with_user")
        get_logger().info("without_user")

        with_user, without_user = _events(log_stream)
        assert with_user["user_id"] == "user-1"
        assert "user_id" not in without_user

    @pytest.mark.unit
    def test_nested_blocks_restore_outer_owner(
        self, log_stream: io.StringIO
    ) -> None:
        """Leaving an inner block restores the outer owner."""
        with session_context("outer"):
            with session_context("inner"):
                get_logger().info("inner_event")
            get_logger().info("outer_event")

        inner, outer = _events(log_stream)
        assert inner["user_id"] == "inner"
        assert outer["user_id"] == "outer"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_session_tags_store_events(self, log_stream: io.StringIO) -> None:
        """Store events emitted during rank_item carry the session owner."""
        session = RankingSession("user-7", metrics=InsertionMetrics())

        await session.rank_item(
            make_candidate("a"), Category.LIKED, ScriptedOracle([])
        )
        get_logger().info("after_session")

        events = _events(log_stream)
        inserted = [e for e in events if e["event"] == "item_inserted"]
        assert [e["user_id"] for e in inserted] == ["user-7"]
        assert "user_id" not in events[-1]

    @pytest.mark.unit
    def test_interactive_commit_is_tagged(self, log_stream: io.StringIO) -> None:
        """Interactive start and commit events carry the session owner."""
        session = RankingSession("user-8", metrics=InsertionMetrics())

        machine = session.begin_interactive(make_candidate("a"), Category.LIKED)
        session.commit_interactive(machine)

        tagged = {
            e["event"]: e.get("user_id")
            for e in _events(log_stream)
            if e["event"] in {"interactive_insertion_started", "item_inserted"}
        }
        assert tagged == {
            "interactive_insertion_started": "user-8",
            "item_inserted": "user-8",
        }
