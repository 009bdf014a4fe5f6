# phonerelay/api/routes/webhooks.py
# -*- coding: utf-8 -*-
"""
Provider-facing webhook routes (Twilio voice and SMS callbacks).
Unauthenticated. Every response is 200 with a TwiML body, including on
internal errors, so the provider never retries.
"""
from flask import Blueprint, Response, request, current_app

from phonerelay.services.response_synthesizer import ResponseSynthesizer
from phonerelay.services.webhook_service import InboundWebhookService

# Create Blueprint
webhooks_bp = Blueprint('webhooks', __name__)


def _twiml(document):
    return Response(str(document), status=200, mimetype='text/xml')


@webhooks_bp.route('/voice', methods=['POST'])
def voice():
    """Inbound call: returns the voice document for the dialed number."""
    payload = request.form.to_dict()
    current_app.logger.debug(f"Voice webhook received (sid: {payload.get('CallSid')}, to: {payload.get('To')})")
    try:
        document = InboundWebhookService.handle_voice(payload)
    except Exception as e:
        current_app.logger.exception(f"Unhandled error in voice webhook: {e}")
        document = ResponseSynthesizer.build_error_response()
    return _twiml(document)


@webhooks_bp.route('/sms', methods=['POST'])
def sms():
    """Inbound SMS: always an empty acknowledgment."""
    payload = request.form.to_dict()
    current_app.logger.debug(f"SMS webhook received (sid: {payload.get('MessageSid')}, to: {payload.get('To')})")
    try:
        document = InboundWebhookService.handle_sms(payload)
    except Exception as e:
        current_app.logger.exception(f"Unhandled error in SMS webhook: {e}")
        document = ResponseSynthesizer.build_sms_response()
    return _twiml(document)
