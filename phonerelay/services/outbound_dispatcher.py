# phonerelay/services/outbound_dispatcher.py
# -*- coding: utf-8 -*-
"""
Outbound Dispatcher
Consumes "call contact" and "SMS contact" intents off a work queue and issues
the provider requests outside the HTTP request that produced them. Also sends
forwarded copies of inbound SMS, which the SMS webhook calls synchronously.

Every outcome is observability-only: provider failures are logged and written
to the event ledger, never raised back to a caller.
"""
import logging
import queue
import threading
import uuid
from dataclasses import dataclass, field

from flask import current_app

from phonerelay.database.models.webhook_event import (
    DIRECTION_OUTBOUND, EVENT_TYPE_SMS, EVENT_TYPE_SMS_FORWARD, EVENT_TYPE_VOICE,
    STATUS_ERROR, STATUS_SENT,
)
from phonerelay.services.contact_service import ContactService
from phonerelay.services.event_log_service import EventLogService, WebhookEventDraft
from phonerelay.services.response_synthesizer import ResponseSynthesizer
from phonerelay.services.settings_service import SettingsService


log = logging.getLogger(__name__)

EXTENSION_KEY = 'outbound_dispatcher'


def _new_intent_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class CallContactIntent:
    """Place a call from the user's inbound number to a contact, bridged to the user's target."""
    user_id: int
    contact_id: int
    intent_id: str = field(default_factory=_new_intent_id)


@dataclass(frozen=True)
class SmsContactIntent:
    """Send `body` from the user's inbound number to a contact."""
    user_id: int
    contact_id: int
    body: str
    intent_id: str = field(default_factory=_new_intent_id)


_STOP = object()


def get_dispatcher() -> 'OutboundDispatcher':
    """The dispatcher bound to the current application."""
    return current_app.extensions[EXTENSION_KEY]


class OutboundDispatcher:
    """
    Work queue plus consumer for outbound intents.

    Delivery is at-least-once: a handler may see the same intent twice (e.g. a
    crash between the provider call and task_done), so handlers check the ledger
    for an earlier 'sent' row with the same intent_id before calling out.
    """

    def __init__(self, provider, app=None):
        self.provider = provider
        self._queue = queue.Queue()
        self._worker = None
        self._app = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self._app = app
        app.extensions[EXTENSION_KEY] = self
        if app.config.get('OUTBOUND_WORKER_ENABLED'):
            self.start()

    # --- Queue management ---

    def submit(self, intent) -> str:
        """Queues an intent and returns immediately with its id."""
        self._queue.put(intent)
        log.info(f"Queued {type(intent).__name__} {intent.intent_id} (user: {intent.user_id}, contact: {intent.contact_id}).")
        return intent.intent_id

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self):
        if self._worker is not None and self._worker.is_alive():
            return
        self._worker = threading.Thread(target=self._run, name='outbound-dispatcher', daemon=True)
        self._worker.start()
        log.info("Outbound dispatcher worker started.")

    def stop(self, timeout=None):
        if self._worker is None:
            return
        self._queue.put(_STOP)
        self._worker.join(timeout)
        self._worker = None
        log.info("Outbound dispatcher worker stopped.")

    def _run(self):
        while True:
            intent = self._queue.get()
            try:
                if intent is _STOP:
                    return
                with self._app.app_context():
                    self.handle(intent)
            except Exception as e:
                log.exception(f"Unhandled error dispatching {intent!r}: {e}")
            finally:
                self._queue.task_done()

    def process_pending(self) -> int:
        """
        Handles every queued intent in the calling thread, using the current app
        context. Used when the worker thread is disabled (tests, one-off scripts).

        Returns:
            int: Number of intents handled.
        """
        handled = 0
        while True:
            try:
                intent = self._queue.get_nowait()
            except queue.Empty:
                return handled
            try:
                if intent is not _STOP:
                    self.handle(intent)
                    handled += 1
            finally:
                self._queue.task_done()

    # --- Handlers ---

    def handle(self, intent):
        if isinstance(intent, CallContactIntent):
            self.handle_call(intent)
        elif isinstance(intent, SmsContactIntent):
            self.handle_sms(intent)
        else:
            log.error(f"Unknown outbound intent type: {type(intent).__name__}")

    def _resolve(self, intent, action):
        """Loads (configuration, contact) for an intent, or None when it cannot proceed."""
        if EventLogService.has_sent_intent(intent.intent_id):
            log.info(f"{action} intent {intent.intent_id} already sent; skipping redelivery.")
            return None

        configuration = SettingsService.get_configuration(intent.user_id)
        if configuration is None or not configuration.inbound_number:
            log.warning(f"{action} requested but no telephony configuration for user {intent.user_id}")
            return None

        contact = ContactService.get_contact(intent.contact_id, user_id=intent.user_id)
        if contact is None:
            log.warning(f"{action} requested for contact {intent.contact_id} not owned by user {intent.user_id}; dropping.")
            return None
        return configuration, contact

    def handle_call(self, intent: CallContactIntent):
        resolved = self._resolve(intent, 'Call')
        if resolved is None:
            return
        configuration, contact = resolved

        draft = WebhookEventDraft(
            user_id=intent.user_id,
            type=EVENT_TYPE_VOICE,
            direction=DIRECTION_OUTBOUND,
            from_number=configuration.inbound_number,
            to_number=contact.phone_number,
            intent_id=intent.intent_id,
        )
        try:
            twiml = str(ResponseSynthesizer.build_outbound_call_response(configuration))
            draft.call_sid = self.provider.place_call(
                to=contact.phone_number, from_=configuration.inbound_number, twiml=twiml
            )
        except Exception as e:
            log.error(
                f"Failed to initiate call: {e} "
                f"(user: {intent.user_id}, contact: {contact.id}, direction: outbound, intent: {intent.intent_id})"
            )
            draft.content = f"Failed to place call: {e}"
            self._append_quietly(draft, STATUS_ERROR)
            return

        log.info(
            f"Call initiated: sid {draft.call_sid} (user: {intent.user_id}, contact: {contact.id}, "
            f"to: {contact.phone_number}, from: {configuration.inbound_number})"
        )
        self._append_quietly(draft, STATUS_SENT)

    def handle_sms(self, intent: SmsContactIntent):
        resolved = self._resolve(intent, 'SMS')
        if resolved is None:
            return
        configuration, contact = resolved

        draft = WebhookEventDraft(
            user_id=intent.user_id,
            type=EVENT_TYPE_SMS,
            direction=DIRECTION_OUTBOUND,
            from_number=configuration.inbound_number,
            to_number=contact.phone_number,
            content=intent.body,
            intent_id=intent.intent_id,
        )
        try:
            draft.message_sid = self.provider.send_message(
                to=contact.phone_number, from_=configuration.inbound_number, body=intent.body
            )
        except Exception as e:
            log.error(
                f"Failed to send SMS: {e} "
                f"(user: {intent.user_id}, contact: {contact.id}, direction: outbound, intent: {intent.intent_id})"
            )
            draft.provider_payload = {'error': str(e)}
            self._append_quietly(draft, STATUS_ERROR)
            return

        log.info(
            f"SMS sent: sid {draft.message_sid} (user: {intent.user_id}, contact: {contact.id}, "
            f"to: {contact.phone_number}, from: {configuration.inbound_number}, length: {len(intent.body)})"
        )
        self._append_quietly(draft, STATUS_SENT)

    def forward_sms(self, user_id: int, original_sender: str, body: str, forward_to: str):
        """
        Sends a copy of an inbound SMS to the owner's phone from the system sender.

        Runs synchronously inside the SMS webhook. Always writes one sms_forward
        row whose content is the forwarded text, in 'sent' or 'error' status, and
        never raises.

        Returns:
            int or None: ID of the sms_forward row, None if it could not be written.
        """
        forwarded_message = f"Forwarded from {original_sender}: {body}"
        sender = self.provider.system_sender
        draft = WebhookEventDraft(
            user_id=user_id,
            type=EVENT_TYPE_SMS_FORWARD,
            direction=DIRECTION_OUTBOUND,
            from_number=sender,
            to_number=forward_to,
            content=forwarded_message,
        )
        try:
            draft.message_sid = self.provider.send_message(to=forward_to, from_=sender, body=forwarded_message)
        except Exception as e:
            log.error(f"Failed to forward SMS: {e} (user: {user_id}, from: {original_sender}, to: {forward_to})")
            draft.provider_payload = {'error': f"Failed to forward message: {e}"}
            return self._append_quietly(draft, STATUS_ERROR)

        log.info(f"Forwarded SMS from {original_sender} to {forward_to} for user {user_id} (sid: {draft.message_sid}).")
        return self._append_quietly(draft, STATUS_SENT)

    @staticmethod
    def _append_quietly(draft: WebhookEventDraft, status: str):
        try:
            return EventLogService.append(draft, status)
        except Exception as e:
            log.error(f"Failed to record outbound {draft.type} event ({status}) for user {draft.user_id}: {e}", exc_info=True)
            return None
