import logging
import math
import re
from typing import Any, Optional

from ...errors import ValidationError
from .calendar import is_same_day, is_same_hour, is_same_month, is_same_year
from .domain import (
    MAX_SEQUENCE_LENGTH,
    build_flush,
    build_header,
    build_stage,
    build_tail,
)
from .interfaces import (
    Clock,
    IdGenerator,
    SessionStorage,
    SessionTransport,
    SystemClock,
    UuidGenerator,
)
from .models import MAX_STAGE_NUMBER, MIN_STAGE_NUMBER, SessionTail

logger = logging.getLogger(__name__)

_LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")


def _coerce_stage(stage: Any) -> int:
    """Parse a stage number the way integer parsing of user input behaves."""
    value = None
    if isinstance(stage, bool):
        pass
    elif isinstance(stage, int):
        value = stage
    elif isinstance(stage, float) and math.isfinite(stage):
        value = int(stage)
    elif isinstance(stage, str):
        match = _LEADING_INTEGER.match(stage)
        if match:
            value = int(match.group(1))

    if not value:
        raise ValidationError("stage is mandatory, should be an integer")
    return value


class SessionModule:
    """
    Owns the one live session of this process.

    The host calls initialize() once at startup, then reports events and
    stage transitions as they happen. Every mutation is written through to
    storage so the next process run can report this session as finished.
    """

    def __init__(
        self,
        storage: SessionStorage,
        transport: SessionTransport,
        clock: Optional[Clock] = None,
        id_generator: Optional[IdGenerator] = None,
    ):
        """
        Initialize session module.

        Args:
            storage: Single-slot store for the last session tail
            transport: Client for the ingest endpoints
            clock: Current UTC instant provider (wall clock by default)
            id_generator: Session id provider (UUID4 by default)
        """
        self.storage = storage
        self.transport = transport
        self.clock = clock or SystemClock()
        self.id_generator = id_generator or UuidGenerator()

        self._current_session: Optional[SessionTail] = None
        self._initializing = False

    @property
    def current_session(self) -> Optional[SessionTail]:
        return self._current_session

    @property
    def is_initializing(self) -> bool:
        return self._initializing

    async def initialize(
        self,
        account_id: str,
        app_id: str,
        version: Optional[str] = "",
        is_release: Optional[bool] = False,
    ) -> None:
        """
        Start a new session. Effective once per process.

        Args:
            account_id: Journey account identifier
            app_id: Application identifier
            version: Application version (e.g. '1.2.3')
            is_release: Separates release (production) sessions from debug ones

        Raises:
            ValidationError: If account_id or app_id is empty. Nothing else
                escapes; storage and transport failures are only logged.
        """
        if self._initializing:
            logger.warning("Journey: Already initializing")
            return
        if self._current_session is not None:
            return

        self._initializing = True
        try:
            await self._start_session(account_id, app_id, version, is_release)
        finally:
            self._initializing = False

    async def _start_session(
        self,
        account_id: str,
        app_id: str,
        version: Optional[str],
        is_release: Optional[bool],
    ) -> None:
        if not account_id:
            raise ValidationError("accountId is mandatory")
        if not app_id:
            raise ValidationError("appId is mandatory")

        version = version or ""
        is_release = bool(is_release)

        try:
            header = build_header(
                account_id, app_id, version, is_release, self.clock.now, self.id_generator.new_id
            )
            session = build_tail(
                header.session_id,
                account_id,
                app_id,
                version,
                is_release,
                header.start,
                self.clock.now,
            )
            self._current_session = session
            logger.info(f"Journey: Started new session {session.session_id}")

            previous = await self.storage.load_last_session(
                self.clock.now, self.id_generator.new_id
            )

            if previous is None:
                header.first_launch = True
                session.first_launch = True

                header.first_launch_hour = True
                header.first_launch_day = True
                header.first_launch_month = True
                header.first_launch_year = True
                header.first_launch_version = True
            else:
                today = self.clock.now()
                last_start = previous.start

                if not is_same_hour(last_start, today):
                    header.first_launch_hour = True
                if not is_same_day(last_start, today):
                    header.first_launch_day = True
                if not is_same_month(last_start, today):
                    header.first_launch_month = True
                if not is_same_year(last_start, today):
                    header.first_launch_year = True
                if previous.app_version != version:
                    header.first_launch_version = True

                session.previous_stage = previous.current_stage
                session.current_stage = previous.current_stage
                header.previous_stage = previous.current_stage

                session.installation_since = previous.installation_since
                header.installation_since = previous.installation_since

                logger.info("Journey: Report the end of the previous session")
                try:
                    await self.transport.post_session(previous)
                except Exception as e:
                    logger.warning(f"Journey: Failed to report the end of the previous session: {e}")

            await self.storage.save_session(session)

            logger.info("Journey: Report the start of a new session")
            await self.transport.post_session_header(header)
        except Exception as e:
            logger.warning(f"Journey: Failed to initialize Journey: {e}")

    async def report_event(self, event_name: str, is_collapsible: bool = False) -> None:
        """
        Register an event in the current session.

        Events are distinguished by name, e.g. 'click_play' or 'use_search'.
        Never put personal data into an event name.

        Collapsible events appear in the sequence once per run of consecutive
        repeats, wrapped in brackets (e.g. '(scroll_to_next_album)'), but are
        still counted every time.
        """
        await self._record_event(event_name, is_collapsible=is_collapsible)

    async def report_error(self, event_name: str) -> None:
        """Register an error event; marks the session as having an error."""
        await self._record_event(event_name, is_error=True)

    async def report_crash(self, event_name: str) -> None:
        """Register a crash event; marks the session as having an error and a crash."""
        await self._record_event(event_name, is_error=True, is_crash=True)

    async def _record_event(
        self,
        event_name: str,
        is_collapsible: bool = False,
        is_error: bool = False,
        is_crash: bool = False,
    ) -> None:
        if not event_name:
            raise ValidationError("eventName is mandatory")

        session = self._current_session
        if session is None:
            logger.warning("Journey: Cannot update session. Journey has not been initialized.")
            return

        try:
            session.event_tally[event_name] = session.event_tally.get(event_name, 0) + 1

            if is_error:
                session.has_error = True
            if is_crash:
                session.has_crash = True

            sequence = session.event_sequence
            if len(sequence) < MAX_SEQUENCE_LENGTH:
                token = f"({event_name})" if is_collapsible else event_name
                # Only collapsible tokens fold into an identical predecessor
                if not (is_collapsible and sequence and sequence[-1] == token):
                    sequence.append(token)

            session.end = self.clock.now()

            await self.storage.save_session(session)
        except Exception as e:
            logger.warning(f"Journey: Cannot update session: {e}")

    async def report_stage_transition(self, stage: Any, stage_name: Optional[str] = "") -> None:
        """
        Move the session forward in the funnel.

        Args:
            stage: Ordinal stage number in [1..10]. Transitions only ratchet
                upwards; a stage not higher than the current one is ignored,
                so callers need not track the current stage.
            stage_name: Informational stage name

        Raises:
            ValidationError: If stage is not an integer in [1..10]
            PersistenceError: If the updated session could not be saved
        """
        try:
            stage_number = _coerce_stage(stage)
            if stage_number < MIN_STAGE_NUMBER or stage_number > MAX_STAGE_NUMBER:
                raise ValidationError(
                    f"Invalid value {stage_number} for stage, must be between "
                    f"{MIN_STAGE_NUMBER} and {MAX_STAGE_NUMBER}"
                )
        except ValidationError as e:
            logger.warning(f"Journey: Cannot report stage transition: {e}")
            raise

        stage_name = stage_name or ""

        session = self._current_session
        if session is None:
            logger.warning("Journey: Cannot update session. Journey has not been initialized.")
            return

        try:
            if session.current_stage.stage_number < stage_number:
                session.current_stage = build_stage(stage_number, stage_name, self.clock.now)

            session.end = self.clock.now()

            await self.storage.save_session(session)
        except Exception as e:
            logger.warning(f"Journey: Cannot update session: {e}")
            raise

    async def flush_events(self) -> None:
        """
        Report the tallies of the current session before it formally ends.

        Useful for users who open the app once and never come back, since the
        full session is only reported at the next start. Adds network traffic,
        so flush sparingly (e.g. after the first 30 seconds, or on exit).
        """
        session = self._current_session
        if session is None:
            logger.warning("Journey: Cannot flush session. Journey has not been initialized.")
            return

        flush = build_flush(session)

        logger.info("Journey: Flush the current session")
        try:
            await self.transport.post_session_flush(flush)
        except Exception as e:
            logger.warning(f"Journey: Cannot flush session: {e}")

        # Baseline advances whether or not the flush was delivered
        session.flushed_baseline = dict(session.event_tally)
        session.end = self.clock.now()

        try:
            await self.storage.save_session(session)
        except Exception as e:
            logger.warning(f"Journey: Cannot flush session: {e}")
