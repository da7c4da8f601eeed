import logging
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from journey import Journey, ValidationError
from journey.config.provider import STORAGE_MEMORY, JourneyConfig
from journey.main import apply_log_level, build_storage, build_transport
from journey.modules.storage import InMemoryStorage, StorageModule
from journey.modules.transport import IngestClient

CONFIG = JourneyConfig(account_id="accid", app_id="appid", version="3.1", is_release=True)


@pytest.fixture
def journey(mock_storage, mock_transport, clock, ids):
    return Journey(
        CONFIG,
        storage=mock_storage,
        transport=mock_transport,
        clock=clock,
        id_generator=ids,
    )


@pytest.mark.asyncio
async def test_initialize_uses_configured_identity(journey, mock_transport):
    await journey.initialize()

    header = mock_transport.post_session_header.call_args[0][0]
    assert header.account_id == "accid"
    assert header.app_id == "appid"
    assert header.app_version == "3.1"
    assert header.is_release is True
    assert header.start == datetime(2022, 1, 1, tzinfo=UTC)


@pytest.mark.asyncio
async def test_initialize_arguments_override_config(journey, mock_transport):
    await journey.initialize(app_id="otherapp", version="4.0", is_release=False)

    header = mock_transport.post_session_header.call_args[0][0]
    assert header.account_id == "accid"
    assert header.app_id == "otherapp"
    assert header.app_version == "4.0"
    assert header.is_release is False


@pytest.mark.asyncio
async def test_initialize_without_identity_is_rejected(mock_storage, mock_transport):
    journey = Journey(JourneyConfig(), storage=mock_storage, transport=mock_transport)

    with pytest.raises(ValidationError):
        await journey.initialize()


@pytest.mark.asyncio
async def test_operations_delegate_to_session_module(journey, mock_transport):
    await journey.initialize()
    await journey.report_event("navigate", True)
    await journey.report_event("navigate", True)
    await journey.report_error("error_fetching_data")
    await journey.report_crash("crash")
    await journey.report_stage_transition(2, "engagement")
    await journey.flush_events()

    session = journey.sessions.current_session
    assert session.event_sequence == ["(navigate)", "error_fetching_data", "crash"]
    assert session.event_tally == {"navigate": 2, "error_fetching_data": 1, "crash": 1}
    assert session.has_error is True
    assert session.has_crash is True
    assert session.current_stage.name == "engagement"
    assert session.flushed_baseline == session.event_tally
    mock_transport.post_session_flush.assert_called_once()


@pytest.mark.asyncio
async def test_close_leaves_injected_collaborators_alone(mock_storage, mock_transport):
    async with Journey(CONFIG, storage=mock_storage, transport=mock_transport):
        pass

    mock_storage.disconnect.assert_not_called()
    mock_transport.aclose.assert_not_called()


@pytest.mark.asyncio
async def test_close_releases_owned_collaborators():
    journey = Journey(CONFIG)
    transport = journey.sessions.transport

    assert isinstance(journey.sessions.storage, StorageModule)
    assert isinstance(transport, IngestClient)

    async with journey:
        pass

    assert transport._client.is_closed


@pytest.mark.asyncio
async def test_config_provider_is_used_when_no_config_given(mock_storage, mock_transport):
    provider = MagicMock()
    provider.get_journey_config.return_value = CONFIG

    journey = Journey(storage=mock_storage, transport=mock_transport, config_provider=provider)

    assert journey.config is CONFIG


def test_build_storage_selects_backend(caplog):
    redis_config = JourneyConfig(redis_url="redis://cache:6379/0", session_key="k")
    storage = build_storage(redis_config)
    assert isinstance(storage, StorageModule)
    assert storage.url == "redis://cache:6379/0"
    assert storage.key == "k"

    assert isinstance(build_storage(JourneyConfig()), StorageModule)
    assert "No durable session store" not in caplog.text

    with caplog.at_level(logging.WARNING, logger="journey"):
        storage = build_storage(JourneyConfig(storage=STORAGE_MEMORY))

    assert isinstance(storage, InMemoryStorage)
    assert "No durable session store configured" in caplog.text


@pytest.mark.asyncio
async def test_build_transport_uses_configured_url():
    transport = build_transport(JourneyConfig(ingest_url="http://127.0.0.1:8070/"))

    assert transport.base_url == "http://127.0.0.1:8070"
    await transport.aclose()


def test_log_level_applies_to_journey_loggers(mock_storage, mock_transport):
    journey_logger = logging.getLogger("journey")
    previous = journey_logger.level
    try:
        Journey(JourneyConfig(log_level="DEBUG"), storage=mock_storage, transport=mock_transport)
        assert journey_logger.level == logging.DEBUG
    finally:
        journey_logger.setLevel(previous)


def test_unknown_log_level_falls_back_to_info(caplog, mock_storage, mock_transport):
    with caplog.at_level(logging.WARNING, logger="journey"):
        Journey(JourneyConfig(log_level="TRACE"), storage=mock_storage, transport=mock_transport)

        assert logging.getLogger("journey").level == logging.INFO

    assert "Unknown log level 'TRACE', using INFO" in caplog.text


def test_host_log_level_variable_does_not_break_startup(monkeypatch, mock_storage, mock_transport):
    monkeypatch.setenv("LOG_LEVEL", "trace")
    monkeypatch.setenv("JOURNEY_LOG_LEVEL", "verbose")
    journey_logger = logging.getLogger("journey")
    previous = journey_logger.level
    try:
        journey = Journey(storage=mock_storage, transport=mock_transport)
        assert journey.config.log_level == "VERBOSE"
        assert journey_logger.level == logging.INFO
    finally:
        journey_logger.setLevel(previous)


def test_apply_log_level_accepts_any_case():
    journey_logger = logging.getLogger("journey")
    previous = journey_logger.level
    try:
        apply_log_level("warning")
        assert journey_logger.level == logging.WARNING
    finally:
        journey_logger.setLevel(previous)


class FakeRedisServer:
    """Key-value store shared by every client built from a URL."""

    def __init__(self):
        self.values = {}

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value):
        self.values[key] = value

    async def aclose(self):
        pass


@pytest.mark.asyncio
async def test_default_store_carries_sessions_across_runs(monkeypatch, mock_transport, clock):
    server = FakeRedisServer()
    monkeypatch.setattr("redis.asyncio.from_url", lambda url, **kwargs: server)

    async with Journey(CONFIG, transport=mock_transport, clock=clock) as first_run:
        await first_run.initialize()
        await first_run.report_stage_transition(3, "checkout")
        first_id = first_run.sessions.current_session.session_id

    async with Journey(CONFIG, transport=mock_transport, clock=clock) as second_run:
        await second_run.initialize()
        current = second_run.sessions.current_session

    assert current.first_launch is False
    assert current.current_stage.name == "checkout"
    reported = mock_transport.post_session.call_args[0][0]
    assert reported.session_id == first_id
    header = mock_transport.post_session_header.call_args[0][0]
    assert header.first_launch is False
    assert header.previous_stage.stage_number == 3
