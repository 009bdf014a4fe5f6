# phonerelay/services/webhook_service.py
# -*- coding: utf-8 -*-
"""
Inbound Webhook Service
Orchestrates provider callbacks for voice and SMS:

    resolve owner -> record 'received' -> synthesize -> 'processed' | 'error'

Both entry points always return a well-formed TwiML document. Nothing raised
while handling a callback escapes to the caller; the provider retries on any
non-200 response.
"""
from flask import current_app
from twilio.twiml.messaging_response import MessagingResponse
from twilio.twiml.voice_response import VoiceResponse

from phonerelay.database.models.webhook_event import (
    EVENT_TYPE_SMS, EVENT_TYPE_VOICE, STATUS_ERROR, STATUS_PROCESSED,
)
from phonerelay.services.event_log_service import EventLogService, WebhookEventDraft
from phonerelay.services.outbound_dispatcher import get_dispatcher
from phonerelay.services.response_synthesizer import ResponseSynthesizer
from phonerelay.services.routing_directory_service import RoutingDirectoryService


class InboundWebhookService:

    @staticmethod
    def handle_voice(payload: dict) -> VoiceResponse:
        """
        Handles an inbound voice callback (form fields `To`, `From`, `CallSid`).

        Unknown destination numbers get the spoken not-configured message and no
        ledger row. For a resolved number the 'received' row is written before the
        reply is built; any later failure moves the call to 'error' and the caller
        hears the generic apology.
        """
        to_number = payload.get('To')
        from_number = payload.get('From')
        call_sid = payload.get('CallSid')

        try:
            configuration = RoutingDirectoryService.resolve(to_number)
        except Exception as e:
            current_app.logger.error(f"Voice webhook routing failed (sid: {call_sid}, to: {to_number}): {e}")
            return ResponseSynthesizer.build_error_response()

        if configuration is None:
            current_app.logger.info(f"Voice call {call_sid} to unconfigured number {to_number}; rejecting.")
            return ResponseSynthesizer.build_voice_response(None)

        user_id = configuration.user_id
        draft = WebhookEventDraft(
            user_id=user_id,
            type=EVENT_TYPE_VOICE,
            from_number=from_number,
            to_number=to_number,
            call_sid=call_sid,
            provider_payload=dict(payload),
        )
        try:
            EventLogService.record(draft)
        except Exception as e:
            current_app.logger.error(f"Voice webhook could not record call {call_sid} for user {user_id}: {e}")
            return ResponseSynthesizer.build_error_response()

        try:
            response = ResponseSynthesizer.build_voice_response(configuration)
            EventLogService.transition(call_sid, user_id, STATUS_PROCESSED)
        except Exception as e:
            current_app.logger.error(f"Error processing voice webhook (sid: {call_sid}, user: {user_id}): {e}", exc_info=True)
            InboundWebhookService._record_failure(draft, e)
            return ResponseSynthesizer.build_error_response()

        current_app.logger.info(
            f"Voice call {call_sid} from {from_number} routed for user {user_id} via {configuration.call_action}."
        )
        return response

    @staticmethod
    def handle_sms(payload: dict) -> MessagingResponse:
        """
        Handles an inbound SMS callback (form fields `To`, `From`, `Body`, `MessageSid`).

        Always returns the empty acknowledgment. Messages to unknown numbers are
        dropped without a ledger row. When forwarding is enabled the copy is sent
        synchronously; its outcome is recorded as its own sms_forward row and does
        not change the acknowledgment.
        """
        to_number = payload.get('To')
        from_number = payload.get('From')
        body = payload.get('Body') or ''
        message_sid = payload.get('MessageSid')

        try:
            configuration = RoutingDirectoryService.resolve(to_number)
        except Exception as e:
            current_app.logger.error(f"SMS webhook routing failed (sid: {message_sid}, to: {to_number}): {e}")
            return ResponseSynthesizer.build_sms_response()

        if configuration is None:
            current_app.logger.info(f"SMS {message_sid} to unconfigured number {to_number}; dropping.")
            return ResponseSynthesizer.build_sms_response()

        user_id = configuration.user_id
        forward_to = configuration.sms_forward_destination
        draft = WebhookEventDraft(
            user_id=user_id,
            type=EVENT_TYPE_SMS,
            from_number=from_number,
            to_number=to_number,
            content=body,
            message_sid=message_sid,
            provider_payload=dict(payload),
        )
        try:
            EventLogService.record(draft)
        except Exception as e:
            current_app.logger.error(f"SMS webhook could not record message {message_sid} for user {user_id}: {e}")
            return ResponseSynthesizer.build_sms_response()

        try:
            if forward_to:
                get_dispatcher().forward_sms(
                    user_id=user_id,
                    original_sender=from_number,
                    body=body,
                    forward_to=forward_to,
                )
            EventLogService.transition(message_sid, user_id, STATUS_PROCESSED)
        except Exception as e:
            current_app.logger.error(f"Error processing SMS webhook (sid: {message_sid}, user: {user_id}): {e}", exc_info=True)
            InboundWebhookService._record_failure(draft, e)

        return ResponseSynthesizer.build_sms_response()

    @staticmethod
    def _record_failure(draft: WebhookEventDraft, error: Exception) -> None:
        """
        Moves the inbound row to 'error' and appends an error row carrying the
        exception message. Best effort: failures here are logged and dropped.
        """
        try:
            EventLogService.transition(draft.correlation_id, draft.user_id, STATUS_ERROR)
            EventLogService.append(WebhookEventDraft(
                user_id=draft.user_id,
                type=draft.type,
                from_number=draft.from_number,
                to_number=draft.to_number,
                content=str(error),
                call_sid=draft.call_sid,
                message_sid=draft.message_sid,
            ), STATUS_ERROR)
        except Exception as log_error:
            current_app.logger.error(
                f"Failed to record {draft.type} webhook error for user {draft.user_id} "
                f"(sid: {draft.correlation_id}): {log_error}"
            )
