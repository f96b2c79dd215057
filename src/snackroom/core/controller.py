"""SessionController, the operator/visitor session state machine.

The controller owns the single active-session slot.  Every trigger
(operator and visitor commands, connection open/close, timer expiry and
payment confirmation) enters through :meth:`SessionController.dispatch`.

Transitions follow one rule: all state is mutated synchronously, before
the first ``await``.  Work that may suspend (voice token issuance) happens
before the mutation and its result is re-validated afterwards.
Notifications are sent only once the mutation is complete, so any
interleaving at those ``await`` points sees consistent state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from snackroom.config import OrchestratorConfig
from snackroom.core.dispatcher import NotificationDispatcher, SendFn
from snackroom.core.errors import (
    DuplicateTimerError,
    PaymentError,
    SnackroomError,
    StaleHandleError,
    VoiceProviderError,
)
from snackroom.core.state import OrchestratorState
from snackroom.core.timers import SessionTimers, TimerAction
from snackroom.models.commands import (
    Accept,
    Command,
    ConnectionClosed,
    ConnectionOpened,
    CreateCheckout,
    EndSession,
    JoinRoom,
    Leave,
    PaymentCompleted,
    RegisterIntent,
    SendMessage,
    TimerFired,
    TipIntent,
    VoiceJoinRequest,
)
from snackroom.models.enums import (
    EndReason,
    ParticipantRole,
    ParticipantStatus,
    TimerName,
    VisitorMode,
)
from snackroom.models.notifications import (
    ChatMessage,
    CheckoutReady,
    ErrorNotice,
    Notification,
    QueuePosition,
    QueueUpdate,
    SessionEnded,
    SessionStarted,
    SessionWarning,
    SystemMessage,
    TipConfirmed,
    TipIntentNotice,
    VisitorRegistered,
    VoiceJoinFailed,
    VoiceJoinReady,
)
from snackroom.models.participant import Participant
from snackroom.models.session import Session, VoiceInfo
from snackroom.providers.payment.base import CheckoutSession, PaymentProvider
from snackroom.providers.voice.base import VoiceRoomProvider
from snackroom.telemetry.base import Attr, Metric, SpanKind, TelemetryProvider
from snackroom.telemetry.noop import NoopTelemetryProvider

logger = logging.getLogger("snackroom.controller")

_GRACE_TIMERS = (TimerName.DISCONNECT_GRACE, TimerName.PAYING_GRACE)


@dataclass
class _EndedSession:
    """What the end transition removed, kept for the notifications that follow."""

    session: Session
    handle: str
    reason: EndReason


class SessionController:
    """Central state machine pairing the operator with one visitor at a time."""

    def __init__(
        self,
        config: OrchestratorConfig | None = None,
        *,
        state: OrchestratorState | None = None,
        dispatcher: NotificationDispatcher | None = None,
        voice: VoiceRoomProvider | None = None,
        payment: PaymentProvider | None = None,
        telemetry: TelemetryProvider | None = None,
    ) -> None:
        """Initialise the controller.

        Args:
            config: Timing configuration. Defaults to ``OrchestratorConfig()``.
            state: State to operate on. Defaults to a fresh ``OrchestratorState``.
            dispatcher: Notification fan-out. Defaults to a fresh
                ``NotificationDispatcher``.
            voice: Voice room provider. Voice sessions start without voice
                (flagged with ``voice_error``) when ``None``.
            payment: Payment provider. Tipping checkouts are refused when ``None``.
            telemetry: Telemetry provider. Defaults to ``NoopTelemetryProvider``.
        """
        self._config = config or OrchestratorConfig()
        self._state = state or OrchestratorState()
        self._dispatcher = dispatcher or NotificationDispatcher()
        self._voice = voice
        self._payment = payment
        self._telemetry = telemetry or NoopTelemetryProvider()
        self._timers = SessionTimers()

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def dispatcher(self) -> NotificationDispatcher:
        return self._dispatcher

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    # -- Transport-facing helpers ----------------------------------------------

    async def connect(
        self,
        handle: str,
        send_fn: SendFn,
        role: ParticipantRole = ParticipantRole.VISITOR,
    ) -> None:
        """Register a new connection and announce it to the state machine."""
        self._dispatcher.register_connection(handle, send_fn)
        await self.dispatch(handle, ConnectionOpened(role=role))

    async def disconnect(self, handle: str, reason: str | None = None) -> None:
        await self.dispatch(handle, ConnectionClosed(reason=reason))

    async def create_checkout(self, handle: str, amount: int) -> CheckoutSession:
        """Create a tip checkout for the visitor on *handle*.

        The visitor's durable id (or, failing that, its handle) travels as
        the correlation id so the completion webhook can find it again
        after a reconnect.

        Raises:
            PaymentError: Tipping is disabled or the provider failed.
            StaleHandleError: *handle* is not a live visitor.
        """
        if self._payment is None:
            raise PaymentError("tipping disabled")
        participant = self._state.participants.get(handle)
        if participant is None:
            raise StaleHandleError(f"Unknown visitor connection {handle}")

        with self._telemetry.span(
            SpanKind.PAYMENT_CHECKOUT,
            "payment.checkout",
            attributes={Attr.PROVIDER: self._payment.name, Attr.PAYMENT_AMOUNT: amount},
        ):
            return await self._payment.create_checkout(
                amount,
                room_tag=participant.room_tag,
                correlation_id=participant.durable_id or handle,
            )

    async def handle_payment_webhook(self, payload: bytes, signature: str | None = None) -> bool:
        """Verify and apply a payment provider webhook.

        Returns False when the signature is missing or rejected.  Payloads
        that do not describe a completed payment are accepted and ignored.
        """
        if self._payment is None:
            raise PaymentError("tipping disabled")
        if not self._payment.verify_signature(payload, signature or ""):
            logger.warning("Rejected payment webhook: missing or invalid signature")
            return False
        event = self._payment.parse_webhook(payload)
        if event is not None:
            await self.dispatch(None, event)
        return True

    async def close(self) -> None:
        """End any active session and release providers."""
        if self._state.session is not None:
            await self._end(EndReason.SHUTDOWN)
        for provider in (self._voice, self._payment):
            if provider is not None:
                await provider.close()
        self._telemetry.close()

    # -- Single entry point ----------------------------------------------------

    async def dispatch(self, handle: str | None, command: Command) -> None:
        """Apply one command or internal event.

        Errors never escape: stale references and provider failures turn
        into notices for *handle*, anything unexpected is logged.
        """
        healed = self._heal()
        if healed is not None:
            await self._announce_end(healed)
            await self.refresh_queue()

        try:
            await self._route(handle, command)
        except SnackroomError as exc:
            logger.warning("Command %s from %s failed: %s", command.type, handle, exc)
            await self._notify_error(handle, type(exc).__name__, str(exc))
        except Exception:
            logger.exception("Command %s from %s failed", command.type, handle)
            await self._notify_error(handle, "internal_error", "command failed")

    async def _route(self, handle: str | None, command: Command) -> None:
        match command:
            case ConnectionOpened():
                await self._on_connection_opened(self._require(handle), command)
            case ConnectionClosed():
                await self._on_connection_closed(self._require(handle))
            case TimerFired():
                await self._on_timer_fired(command)
            case PaymentCompleted():
                await self._on_payment_completed(command)
            case SendMessage():
                await self._on_send_message(self._require(handle), command)
            case Accept() | EndSession() | VoiceJoinRequest():
                await self._route_operator(self._require(handle), command)
            case JoinRoom() | RegisterIntent() | Leave() | TipIntent() | CreateCheckout():
                await self._route_visitor(self._require(handle), command)

    async def _route_operator(self, handle: str, command: Command) -> None:
        if not self._state.is_operator(handle):
            await self._notify_error(handle, "forbidden", f"{command.type} is an operator command")
            return
        match command:
            case Accept():
                await self._on_accept(command)
            case EndSession():
                await self._end(EndReason.OPERATOR_ENDED)
            case VoiceJoinRequest():
                await self._on_voice_join_request(handle)

    async def _route_visitor(self, handle: str, command: Command) -> None:
        if handle not in self._state.participants:
            await self._notify_error(handle, "forbidden", f"{command.type} is a visitor command")
            return
        match command:
            case JoinRoom():
                await self._on_join_room(handle, command)
            case RegisterIntent():
                await self._on_register(handle, command)
            case Leave():
                await self._on_leave(handle)
            case TipIntent():
                await self._on_tip_intent(handle, command)
            case CreateCheckout():
                checkout = await self.create_checkout(handle, command.amount)
                await self._dispatcher.send(
                    handle,
                    CheckoutReady(checkout_session_id=checkout.id, url=checkout.url),
                )

    @staticmethod
    def _require(handle: str | None) -> str:
        if handle is None:
            raise StaleHandleError("command requires a connection handle")
        return handle

    # -- Connections -----------------------------------------------------------

    async def _on_connection_opened(self, handle: str, event: ConnectionOpened) -> None:
        state = self._state
        if event.role == ParticipantRole.OPERATOR:
            previous = state.operator_handle
            state.operator_handle = handle
            self._dispatcher.join_room(self._config.operator_room_tag, handle)
            logger.info("Operator connected: %s", handle, extra={"previous": previous})

            await self.refresh_queue()
            session = state.session
            if session is not None:
                await self._dispatcher.send(
                    handle, self._session_started(session, for_operator=True, resumed=True)
                )
            return

        if handle not in state.participants:
            state.participants[handle] = Participant(handle=handle)
        logger.debug("Visitor connected: %s", handle)

    async def _on_connection_closed(self, handle: str) -> None:
        state = self._state
        self._dispatcher.unregister_connection(handle)

        if state.is_operator(handle):
            state.operator_handle = None
            logger.info("Operator disconnected: %s", handle)
            return

        participant = state.participants.get(handle)
        state.identities.unbind(handle)
        if participant is None:
            return

        state.queue.remove(handle)
        session = state.session
        if session is not None and session.connection_handle == handle:
            # The occupant keeps its record while a grace timer protects it.
            if participant.is_paying:
                self._schedule_grace(
                    session,
                    TimerName.PAYING_GRACE,
                    self._config.paying_grace_seconds,
                    EndReason.PAYING_DISCONNECT_TIMEOUT,
                )
            else:
                self._schedule_grace(
                    session,
                    TimerName.DISCONNECT_GRACE,
                    self._config.disconnect_grace_seconds,
                    EndReason.DISCONNECT_TIMEOUT,
                )
            return

        # No grace before activation: the record goes immediately.
        del state.participants[handle]
        logger.debug("Visitor %s discarded", handle)
        await self.refresh_queue()

    def _schedule_grace(
        self,
        session: Session,
        name: TimerName,
        delay: float,
        reason: EndReason,
    ) -> None:
        if self._timers.is_live(session, name):
            return
        try:
            self._timers.schedule(session, name, delay, self._timer_action(session, name))
        except DuplicateTimerError:
            logger.exception("Grace timer %s already live for session %s", name, session.id)
            return
        logger.info(
            "Occupant disconnected, %s started (%.0fs)",
            name,
            delay,
            extra={"session_id": session.id, "on_expiry": reason.value},
        )

    # -- Visitor commands ------------------------------------------------------

    async def _on_join_room(self, handle: str, command: JoinRoom) -> None:
        participant = self._state.participants[handle]
        participant.room_tag = command.room_tag
        self._dispatcher.join_room(command.room_tag, handle)
        if command.durable_id:
            participant.durable_id = command.durable_id
            self._state.identities.bind(handle, command.durable_id)
        if await self._maybe_resume(handle):
            return
        await self._deliver_pending_end(handle)

    async def _on_register(self, handle: str, command: RegisterIntent) -> None:
        state = self._state
        if state.is_occupant(handle):
            await self._soft_notice(handle, "You are already in a session.")
            return

        participant = state.participants[handle]
        participant.durable_id = command.durable_id
        participant.mood = command.mood
        participant.mode = command.mode
        if command.room_tag:
            participant.room_tag = command.room_tag
            self._dispatcher.join_room(command.room_tag, handle)
        state.identities.bind(handle, command.durable_id)

        if await self._maybe_resume(handle):
            return
        await self._deliver_pending_end(handle)

        # A durable id waits in the queue once, under its newest handle.
        for queued in state.queue:
            other = state.participants.get(queued)
            if queued != handle and other is not None and other.durable_id == command.durable_id:
                state.queue.remove(queued)
                other.status = ParticipantStatus.CONNECTED

        participant.status = ParticipantStatus.WAITING
        participant.joined_at = datetime.now(UTC)
        state.queue.enqueue(handle)
        logger.info(
            "Visitor registered: %s",
            handle,
            extra={"durable_id": command.durable_id, "mood": command.mood, "mode": command.mode},
        )

        await self._send_operator(
            VisitorRegistered(
                handle=handle,
                mood=command.mood,
                mode=command.mode,
                joined_at=participant.joined_at,
            )
        )
        await self.refresh_queue()

    async def _on_leave(self, handle: str) -> None:
        state = self._state
        participant = state.participants[handle]
        state.queue.remove(handle)

        session = state.session
        if session is not None and session.connection_handle == handle:
            if participant.is_paying:
                # Leaving for the checkout page; the payment grace decides.
                self._schedule_grace(
                    session,
                    TimerName.PAYING_GRACE,
                    self._config.paying_grace_seconds,
                    EndReason.PAYING_DISCONNECT_TIMEOUT,
                )
                await self.refresh_queue()
                return
            await self._end(EndReason.VISITOR_LEFT)
            return

        participant.status = ParticipantStatus.CONNECTED
        logger.debug("Visitor %s left the queue", handle)
        await self.refresh_queue()

    async def _on_tip_intent(self, handle: str, command: TipIntent) -> None:
        if not self._state.is_occupant(handle):
            logger.debug("Ignoring tip intent from non-occupant %s", handle)
            await self._soft_notice(handle, "Tips are only possible during a session.")
            return
        self._state.participants[handle].is_paying = True
        logger.info("Occupant %s is paying", handle, extra={"amount": command.amount})
        await self._send_operator(TipIntentNotice(amount=command.amount))

    async def _on_send_message(self, handle: str, command: SendMessage) -> None:
        state = self._state
        if state.is_operator(handle):
            if state.session is None:
                logger.debug("Operator message dropped: no active session")
                return
            await self._dispatcher.send(
                state.session.connection_handle,
                ChatMessage(sender="operator", text=command.text),
            )
        elif state.is_occupant(handle):
            await self._send_operator(ChatMessage(sender="visitor", text=command.text))
        else:
            logger.debug("Message from %s dropped: not the occupant", handle)

    # -- Resume ----------------------------------------------------------------

    async def _maybe_resume(self, handle: str) -> bool:
        """Hand the active session to *handle* if it is the returning occupant.

        A handle matches when its durable id is the session's, or when it
        joined the session's own room tag without claiming another durable
        id.  The shared lobby tag never matches.
        """
        state = self._state
        session = state.session
        if session is None or session.connection_handle == handle:
            return False

        participant = state.participants[handle]
        by_identity = participant.durable_id == session.durable_id
        by_room = (
            participant.durable_id is None
            and participant.room_tag is not None
            and participant.room_tag == session.room_tag
            and session.room_tag != self._config.operator_room_tag
        )
        if not (by_identity or by_room):
            return False

        with self._telemetry.span(
            SpanKind.SESSION_RESUME,
            "session.resume",
            session_id=session.id,
            attributes={Attr.HANDLE: handle, Attr.DURABLE_ID: session.durable_id},
        ):
            old_handle = session.connection_handle
            previous = state.participants.get(old_handle)

            session.connection_handle = handle
            state.identities.bind(handle, session.durable_id)
            state.queue.remove(handle)
            participant.durable_id = session.durable_id
            participant.mood = session.mood
            participant.mode = session.mode
            participant.status = ParticipantStatus.ACTIVE
            if previous is not None:
                participant.is_paying = participant.is_paying or previous.is_paying
                if self._dispatcher.is_connected(old_handle):
                    previous.status = ParticipantStatus.CONNECTED
                else:
                    del state.participants[old_handle]
            self._timers.cancel(session, *_GRACE_TIMERS)

            logger.info(
                "Session resumed: %s -> %s",
                old_handle,
                handle,
                extra={"session_id": session.id},
            )

        await self._dispatcher.send(
            handle, self._session_started(session, for_operator=False, resumed=True)
        )
        await self._send_operator(SystemMessage(text="The guest is back.", kind="resumed"))
        return True

    async def _deliver_pending_end(self, handle: str) -> None:
        """Tell a returning identity that its session ended while it was away."""
        durable_id = self._state.participants[handle].durable_id
        if durable_id is None:
            return
        reason = self._state.pending_endings.pop(durable_id, None)
        if reason is None:
            return
        logger.info(
            "Delivering missed session end to %s",
            handle,
            extra={"durable_id": durable_id, "reason": reason.value},
        )
        await self._dispatcher.send(handle, SessionEnded(reason=reason))

    # -- Operator commands -----------------------------------------------------

    async def _on_accept(self, command: Accept) -> None:
        state = self._state
        durable_id = state.identities.resolve(command.handle)
        if durable_id is None:
            await self._reject_stale(command.handle)
            return

        if state.session is not None and state.session.durable_id == durable_id:
            await self._soft_notice(state.operator_handle, "That guest is already in session.")
            return

        candidate = self._acceptable_handle(durable_id)
        if candidate is None:
            await self._reject_stale(command.handle)
            return

        with self._telemetry.span(
            SpanKind.SESSION_ACCEPT,
            "session.accept",
            attributes={Attr.HANDLE: candidate, Attr.DURABLE_ID: durable_id},
        ) as span:
            participant = state.participants[candidate]
            voice_info: VoiceInfo | None = None
            voice_error: str | None = None
            if participant.mode == VisitorMode.VOICE:
                voice_info, voice_error = await self._issue_voice_tokens()
                span.attributes[Attr.VOICE_DEGRADED] = voice_error is not None

                # Tokens took a suspension point; the world may have moved.
                candidate = self._acceptable_handle(durable_id)
                if candidate is None:
                    await self._reject_stale(command.handle)
                    return
                if state.session is not None and state.session.durable_id == durable_id:
                    return
                participant = state.participants[candidate]

            switched = self._close_session(EndReason.SWITCHED)
            session = self._open_session(durable_id, candidate, participant, voice_info, voice_error)
            span.attributes[Attr.SESSION_ID] = session.id

        if switched is not None:
            await self._announce_end(switched)
        await self._dispatcher.send(
            candidate, self._session_started(session, for_operator=False, resumed=False)
        )
        await self._send_operator(self._session_started(session, for_operator=True, resumed=False))
        await self.refresh_queue()

    def _acceptable_handle(self, durable_id: str) -> str | None:
        """Latest live, queued handle for *durable_id*, if there is one."""
        state = self._state
        latest = state.identities.latest_handle(durable_id)
        if latest is None or latest not in state.participants:
            return None
        if not self._dispatcher.is_connected(latest) or latest not in state.queue:
            return None
        return latest

    async def _issue_voice_tokens(self) -> tuple[VoiceInfo | None, str | None]:
        if self._voice is None:
            return None, "voice unavailable"
        with self._telemetry.span(
            SpanKind.VOICE_TOKEN,
            "voice.issue_tokens",
            attributes={Attr.PROVIDER: self._voice.name},
        ) as span:
            try:
                return await self._voice.issue_session_tokens(), None
            except VoiceProviderError as exc:
                span.attributes[Attr.VOICE_DEGRADED] = True
                logger.warning("Voice token issuance failed, starting without voice: %s", exc)
                return None, str(exc)

    def _open_session(
        self,
        durable_id: str,
        handle: str,
        participant: Participant,
        voice_info: VoiceInfo | None,
        voice_error: str | None,
    ) -> Session:
        state = self._state
        state.queue.remove(handle)
        participant.status = ParticipantStatus.ACTIVE
        session = Session(
            durable_id=durable_id,
            connection_handle=handle,
            mood=participant.mood,
            mode=participant.mode,
            room_tag=participant.room_tag,
            max_duration_ms=self._config.session_max_ms,
            voice_info=voice_info,
            voice_error=voice_error,
        )
        state.session = session

        started = session.started_at
        self._timers.schedule_at(
            session,
            TimerName.EXPIRY,
            session.deadline,
            self._timer_action(session, TimerName.EXPIRY),
        )
        self._timers.schedule_at(
            session,
            TimerName.WARNING,
            started + timedelta(seconds=self._config.warning_delay_seconds),
            self._timer_action(session, TimerName.WARNING),
        )
        logger.info(
            "Session started with %s",
            handle,
            extra={"session_id": session.id, "durable_id": durable_id, "mode": session.mode},
        )
        return session

    async def _on_voice_join_request(self, handle: str) -> None:
        session = self._state.session
        if session is None or session.voice_info is None:
            await self._dispatcher.send(handle, VoiceJoinFailed(message="No voice room for this session."))
            return
        creds = session.voice_info.for_operator()
        await self._dispatcher.send(
            handle,
            VoiceJoinReady(
                handle=session.connection_handle,
                room_url=creds.room_url,
                token=creds.token,
                resumed=True,
            ),
        )

    # -- Timers ----------------------------------------------------------------

    def _timer_action(self, session: Session, name: TimerName) -> TimerAction:
        session_id = session.id

        async def _fire() -> None:
            await self.dispatch(None, TimerFired(name=name, session_id=session_id))

        return _fire

    async def _on_timer_fired(self, event: TimerFired) -> None:
        session = self._state.session
        if session is None or session.id != event.session_id:
            logger.debug("Timer %s fired for a session that already ended", event.name)
            return

        with self._telemetry.span(
            SpanKind.TIMER_FIRED,
            f"timer.{event.name}",
            session_id=session.id,
            attributes={Attr.TIMER_NAME: event.name},
        ):
            match event.name:
                case TimerName.WARNING:
                    remaining = max(
                        0, int((session.deadline - datetime.now(UTC)).total_seconds() * 1000)
                    )
                    warning = SessionWarning(remaining_ms=remaining)
                    await self._dispatcher.send(session.connection_handle, warning)
                    await self._send_operator(warning)
                case TimerName.EXPIRY:
                    await self._end(EndReason.TIMEOUT)
                case TimerName.DISCONNECT_GRACE:
                    await self._end(EndReason.DISCONNECT_TIMEOUT)
                case TimerName.PAYING_GRACE:
                    await self._end(EndReason.PAYING_DISCONNECT_TIMEOUT)

    # -- Payment side channel --------------------------------------------------

    async def _on_payment_completed(self, event: PaymentCompleted) -> None:
        state = self._state
        if event.correlation_id:
            for participant in state.participants.values():
                if event.correlation_id in (participant.handle, participant.durable_id):
                    participant.is_paying = False
        logger.info(
            "Tip completed",
            extra={"checkout_session_id": event.checkout_session_id, "amount": event.amount},
        )

        if event.room_tag:
            amount = f" ({event.amount})" if event.amount is not None else ""
            await self._dispatcher.to_room(
                event.room_tag,
                SystemMessage(text=f"Thank you for the tip!{amount}", kind="tip_paid", amount=event.amount),
            )
        await self._send_operator(
            TipConfirmed(amount=event.amount, checkout_session_id=event.checkout_session_id)
        )

    # -- End -------------------------------------------------------------------

    async def end_session(self, reason: EndReason) -> bool:
        """End the active session. Returns False if there was none."""
        return await self._end(reason)

    async def _end(self, reason: EndReason) -> bool:
        ended = self._close_session(reason)
        if ended is None:
            return False
        await self._announce_end(ended)
        await self.refresh_queue()
        return True

    def _close_session(self, reason: EndReason) -> _EndedSession | None:
        """Clear the session slot. Idempotent; returns None when idle."""
        state = self._state
        session = state.session
        if session is None:
            return None

        with self._telemetry.span(
            SpanKind.SESSION_END,
            "session.end",
            session_id=session.id,
            attributes={Attr.REASON: reason.value},
        ):
            self._timers.cancel_all(session)
            handle = session.connection_handle
            participant = state.participants.get(handle)
            if participant is not None:
                participant.status = ParticipantStatus.FINISHED
                if not self._dispatcher.is_connected(handle):
                    del state.participants[handle]
            if not self._dispatcher.is_connected(handle):
                # Delivered on the identity's next join or register.
                state.pending_endings[session.durable_id] = reason
            state.session = None

            duration = session.elapsed_ms()
            self._telemetry.record_metric(
                Metric.SESSION_DURATION_MS,
                duration,
                unit="ms",
                attributes={Attr.REASON: reason.value},
            )
        logger.info(
            "Session ended: %s",
            reason,
            extra={"session_id": session.id, "handle": handle, "duration_ms": duration},
        )
        return _EndedSession(session=session, handle=handle, reason=reason)

    async def _announce_end(self, ended: _EndedSession) -> None:
        notice = SessionEnded(reason=ended.reason)
        await self._dispatcher.send(ended.handle, notice)
        await self._send_operator(notice)

    def _heal(self) -> _EndedSession | None:
        """Force an end when the session points at a vanished occupant."""
        session = self._state.session
        if session is None:
            return None
        occupant = self._state.occupant()
        if occupant is not None and occupant.status == ParticipantStatus.ACTIVE:
            return None
        logger.error(
            "Active session %s has no active occupant, resetting",
            session.id,
            extra={"handle": session.connection_handle},
        )
        return self._close_session(EndReason.STATE_RESET)

    # -- Notifications ---------------------------------------------------------

    async def refresh_queue(self) -> None:
        """Prune the queue, send it to the operator and positions to visitors."""
        snapshot = self._state.queue.snapshot()
        size = len(snapshot)
        self._telemetry.record_metric(Metric.QUEUE_SIZE, size)
        logger.debug("Queue refresh: %d waiting", size)

        await self._send_operator(QueueUpdate(queue=snapshot))
        for position, entry in enumerate(snapshot, start=1):
            await self._dispatcher.send(entry.handle, QueuePosition(position=position, size=size))

    def _session_started(self, session: Session, *, for_operator: bool, resumed: bool) -> SessionStarted:
        voice = None
        if session.voice_info is not None:
            voice = (
                session.voice_info.for_operator()
                if for_operator
                else session.voice_info.for_visitor()
            )
        return SessionStarted(
            handle=session.connection_handle,
            mood=session.mood,
            mode=session.mode,
            room_tag=session.room_tag,
            started_at=session.started_at,
            max_duration_ms=session.max_duration_ms,
            resumed=resumed,
            voice_info=voice,
            voice_error=session.voice_error,
        )

    async def _send_operator(self, message: Notification) -> bool:
        return await self._dispatcher.send(self._state.operator_handle, message)

    async def _soft_notice(self, handle: str | None, text: str) -> None:
        await self._dispatcher.send(handle, SystemMessage(text=text, kind="notice"))

    async def _reject_stale(self, handle: str) -> None:
        logger.info("Accept for %s rejected: visitor is gone", handle)
        await self._soft_notice(self._state.operator_handle, "That guest has already left.")
        await self.refresh_queue()

    async def _notify_error(self, handle: str | None, code: str, message: str) -> None:
        await self._dispatcher.send(handle, ErrorNotice(code=code, message=message))

