# tests/integration/api/test_webhooks_api.py
# -*- coding: utf-8 -*-
"""
Integration tests for the provider webhooks (/webhooks/voice, /webhooks/sms).
"""
import xml.etree.ElementTree as ET
import logging

import pytest

from phonerelay.database.models import WebhookEventModel
from phonerelay.services.event_log_service import EventLogService
from phonerelay.services.response_synthesizer import (
    ResponseSynthesizer, NOT_CONFIGURED_MESSAGE, NO_FORWARDING_MESSAGE, ERROR_MESSAGE,
)

log = logging.getLogger(__name__)

INBOUND = '+15550001111'
CALLER = '+15551234567'
OWNER_PHONE = '+15559876543'


def post_voice(client, to=INBOUND, from_=CALLER, call_sid='CA0001'):
    return client.post('/webhooks/voice', data={'To': to, 'From': from_, 'CallSid': call_sid})


def post_sms(client, to=INBOUND, from_=CALLER, body='hello', message_sid='SM0001'):
    return client.post('/webhooks/sms', data={'To': to, 'From': from_, 'Body': body, 'MessageSid': message_sid})


def parse(response):
    return ET.fromstring(response.data)


def all_events(session):
    return session.query(WebhookEventModel).order_by(WebhookEventModel.id).all()


# --- Voice ---

@pytest.mark.parametrize('to_number', ['+15559990000', '+15550001112', ''])
def test_voice_unconfigured_number_speaks_rejection_without_logging(client, session, user, make_configuration, to_number):
    """
    GIVEN a configured number and a call to some other number
    WHEN POST /webhooks/voice
    THEN 200 text/xml with the not-configured message, and no ledger row.
    """
    make_configuration(user.id, inbound_number=INBOUND, forward_to_phone=OWNER_PHONE)

    response = post_voice(client, to=to_number)

    assert response.status_code == 200
    assert response.mimetype == 'text/xml'
    root = parse(response)
    assert root.tag == 'Response'
    assert root.find('Say').text == NOT_CONFIGURED_MESSAGE
    assert root.find('Dial') is None
    assert all_events(session) == []


def test_voice_dial_phone_forwards_with_timeout(client, session, user, make_configuration):
    """
    GIVEN dial_phone with a forwarding number
    WHEN a call arrives
    THEN the document dials that number with a 30 second timeout and the row ends 'processed'.
    """
    make_configuration(user.id, forward_to_phone=OWNER_PHONE)

    response = post_voice(client, call_sid='CA1000')

    assert response.status_code == 200
    dial = parse(response).find('Dial')
    assert dial is not None
    assert dial.get('timeout') == '30'
    assert dial.find('Number').text == OWNER_PHONE

    events = all_events(session)
    assert len(events) == 1
    event = events[0]
    assert event.type == 'voice'
    assert event.direction == 'inbound'
    assert event.status == 'processed'
    assert event.call_sid == 'CA1000'
    assert event.from_number == CALLER
    assert event.to_number == INBOUND
    assert event.user_id == user.id
    assert event.provider_payload == {'To': INBOUND, 'From': CALLER, 'CallSid': 'CA1000'}


def test_voice_greeting_is_spoken_before_dial(client, user, make_configuration):
    make_configuration(user.id, forward_to_phone=OWNER_PHONE, custom_greeting="Thanks for calling Ada.")

    root = parse(post_voice(client))

    tags = [child.tag for child in root]
    assert tags == ['Say', 'Dial']
    assert root[0].text == "Thanks for calling Ada."


def test_voice_dial_phone_without_number_speaks_no_forwarding(client, session, user, make_configuration):
    make_configuration(user.id, forward_to_phone=None, custom_greeting="Hi.")

    root = parse(post_voice(client))

    assert [child.text for child in root.findall('Say')] == ["Hi.", NO_FORWARDING_MESSAGE]
    assert root.find('Dial') is None
    assert all_events(session)[0].status == 'processed'


def test_voice_dial_sip_embeds_credentials_preserving_port_and_path(client, user, make_configuration):
    """
    GIVEN dial_sip with endpoint sip:host:5060/ctx and full credentials
    WHEN a call arrives
    THEN the SIP target is sip:user:pass@host:5060/ctx.
    """
    make_configuration(
        user.id, call_action='dial_sip',
        sip_endpoint='sip:host:5060/ctx', sip_username='user', sip_password='pass',
    )

    dial = parse(post_voice(client)).find('Dial')

    assert dial.get('timeout') == '30'
    assert dial.find('Sip').text == 'sip:user:pass@host:5060/ctx'


def test_voice_dial_sip_without_credentials_uses_endpoint_unchanged(client, user, make_configuration):
    make_configuration(user.id, call_action='dial_sip', sip_endpoint='sip:desk@pbx.example.com:5080')

    dial = parse(post_voice(client)).find('Dial')

    assert dial.find('Sip').text == 'sip:desk@pbx.example.com:5080'


def test_voice_dial_sip_with_username_only_ignores_credentials(client, session, user, make_configuration):
    """
    GIVEN a stored dial_sip row holding a username but no password (written before validation existed)
    WHEN a call arrives
    THEN the endpoint is dialed unmodified.
    """
    configuration = make_configuration(user.id, call_action='dial_sip', sip_endpoint='sip:host:5060/ctx')
    configuration.sip_username = 'user'
    session.commit()

    dial = parse(post_voice(client)).find('Dial')

    assert dial.find('Sip').text == 'sip:host:5060/ctx'


def test_voice_dial_sip_without_endpoint_speaks_no_forwarding(client, user, make_configuration):
    make_configuration(user.id, call_action='dial_sip', sip_endpoint=None)

    root = parse(post_voice(client))

    assert root.find('Say').text == NO_FORWARDING_MESSAGE


def test_voice_synthesis_failure_returns_apology_and_logs_error(client, session, user, make_configuration, monkeypatch):
    """
    GIVEN a resolved number and a synthesizer that raises
    WHEN a call arrives
    THEN 200 with the generic apology; the received row moves to 'error' and an error row carries the message.
    """
    make_configuration(user.id, forward_to_phone=OWNER_PHONE)

    def explode(configuration):
        raise RuntimeError("synthesizer exploded")
    monkeypatch.setattr(ResponseSynthesizer, 'build_voice_response', staticmethod(explode))

    response = post_voice(client, call_sid='CA2000')

    assert response.status_code == 200
    assert parse(response).find('Say').text == ERROR_MESSAGE

    events = all_events(session)
    assert events, "the received row must exist even though synthesis failed"
    assert {e.status for e in events} == {'error'}
    assert any(e.content == "synthesizer exploded" for e in events)
    assert all(e.call_sid == 'CA2000' for e in events)


def test_voice_error_logging_failure_is_swallowed(client, session, user, make_configuration, monkeypatch):
    make_configuration(user.id, forward_to_phone=OWNER_PHONE)

    def explode(*args, **kwargs):
        raise RuntimeError("boom")
    monkeypatch.setattr(ResponseSynthesizer, 'build_voice_response', staticmethod(explode))
    monkeypatch.setattr(EventLogService, 'append', staticmethod(explode))

    response = post_voice(client)

    assert response.status_code == 200
    assert parse(response).find('Say').text == ERROR_MESSAGE
    # Only the 'received' row (already moved to error) survives
    assert [e.status for e in all_events(session)] == ['error']


def test_voice_routing_failure_still_returns_document(client, user, monkeypatch):
    from phonerelay.services.routing_directory_service import RoutingDirectoryService

    def explode(number):
        raise RuntimeError("database unavailable")
    monkeypatch.setattr(RoutingDirectoryService, 'resolve', staticmethod(explode))

    response = post_voice(client)

    assert response.status_code == 200
    assert parse(response).find('Say').text == ERROR_MESSAGE


def test_voice_retried_delivery_adds_row_and_keeps_state(client, session, user, make_configuration):
    """Provider retries with the same CallSid produce another row; both end 'processed'."""
    make_configuration(user.id, forward_to_phone=OWNER_PHONE)

    post_voice(client, call_sid='CA3000')
    post_voice(client, call_sid='CA3000')

    events = all_events(session)
    assert len(events) == 2
    assert {e.status for e in events} == {'processed'}


def test_voice_successful_retry_keeps_earlier_error_rows(client, session, user, make_configuration, monkeypatch):
    """
    GIVEN a call whose first delivery failed during synthesis
    WHEN the provider retries the same CallSid and it succeeds
    THEN the error rows from the failed attempt stay 'error' and only the new row is 'processed'.
    """
    make_configuration(user.id, forward_to_phone=OWNER_PHONE)
    build_voice_response = ResponseSynthesizer.build_voice_response

    def explode(configuration):
        raise RuntimeError("synthesizer exploded")
    monkeypatch.setattr(ResponseSynthesizer, 'build_voice_response', staticmethod(explode))
    post_voice(client, call_sid='CA3100')

    monkeypatch.setattr(ResponseSynthesizer, 'build_voice_response', staticmethod(build_voice_response))
    response = post_voice(client, call_sid='CA3100')

    assert parse(response).find('Dial') is not None
    session.expire_all()
    rows = [(e.status, e.content) for e in all_events(session)]
    assert rows == [('error', None), ('error', 'synthesizer exploded'), ('processed', None)]


# --- SMS ---

def test_sms_unconfigured_number_returns_empty_ack_without_logging(client, session, user):
    response = post_sms(client, to='+15559990000')

    assert response.status_code == 200
    assert response.mimetype == 'text/xml'
    root = parse(response)
    assert root.tag == 'Response'
    assert len(root) == 0
    assert all_events(session) == []


def test_sms_without_forwarding_records_processed_row(client, session, fake_provider, user, make_configuration):
    make_configuration(user.id, forward_to_phone=OWNER_PHONE, sms_forwarding_enabled=False)

    response = post_sms(client, body='are you there?', message_sid='SM1000')

    assert response.status_code == 200
    assert len(parse(response)) == 0
    events = all_events(session)
    assert len(events) == 1
    assert events[0].type == 'sms'
    assert events[0].status == 'processed'
    assert events[0].content == 'are you there?'
    assert events[0].message_sid == 'SM1000'
    assert fake_provider.messages == []


def test_sms_forwarding_end_to_end(client, session, fake_provider, user, make_configuration):
    """
    GIVEN forwarding enabled to +15559876543
    WHEN an SMS 'hello' arrives from +15551234567
    THEN the inbound row is 'processed', an sms_forward row is 'sent' with the prefixed body,
         the copy goes out from the system sender, and the reply is an empty acknowledgment.
    """
    make_configuration(user.id, forward_to_phone=OWNER_PHONE, sms_forwarding_enabled=True)

    response = post_sms(client, from_='+15551234567', body='hello', message_sid='SM2000')

    assert response.status_code == 200
    assert len(parse(response)) == 0

    inbound = session.query(WebhookEventModel).filter_by(type='sms').all()
    forwards = session.query(WebhookEventModel).filter_by(type='sms_forward').all()
    assert len(inbound) == 1
    assert inbound[0].status == 'processed'
    assert len(forwards) == 1
    forward = forwards[0]
    assert forward.status == 'sent'
    assert forward.content == "Forwarded from +15551234567: hello"
    assert forward.direction == 'outbound'
    assert forward.to_number == OWNER_PHONE
    assert forward.from_number == fake_provider.system_sender

    assert fake_provider.messages == [{
        'to': OWNER_PHONE,
        'from_': fake_provider.system_sender,
        'body': "Forwarded from +15551234567: hello",
    }]
    assert forward.message_sid is not None


def test_sms_forwarding_failure_does_not_change_ack(client, session, failing_provider, user, make_configuration):
    """
    GIVEN forwarding enabled and a provider that rejects the copy
    WHEN an SMS arrives
    THEN the acknowledgment is still empty, the inbound row is 'processed'
         and the sms_forward row is 'error' with the forwarded text.
    """
    make_configuration(user.id, forward_to_phone=OWNER_PHONE, sms_forwarding_enabled=True)

    response = post_sms(client, from_='+15551234567', body='hello')

    assert response.status_code == 200
    assert len(parse(response)) == 0
    inbound = session.query(WebhookEventModel).filter_by(type='sms').one()
    forward = session.query(WebhookEventModel).filter_by(type='sms_forward').one()
    assert inbound.status == 'processed'
    assert forward.status == 'error'
    assert forward.content == "Forwarded from +15551234567: hello"
    assert 'Failed to forward message' in forward.provider_payload['error']


def test_sms_forwarding_enabled_without_destination_does_not_send(client, session, fake_provider, user, make_configuration):
    make_configuration(user.id, forward_to_phone=None, sms_forwarding_enabled=True)

    post_sms(client)

    assert fake_provider.messages == []
    assert [e.type for e in all_events(session)] == ['sms']


def test_sms_processing_failure_still_acknowledges(client, session, user, make_configuration, monkeypatch):
    make_configuration(user.id, forward_to_phone=OWNER_PHONE)
    original_transition = EventLogService.transition

    def failing_transition(correlation_id, user_id, new_status):
        if new_status == 'processed':
            raise RuntimeError("ledger update failed")
        return original_transition(correlation_id, user_id, new_status)
    monkeypatch.setattr(EventLogService, 'transition', staticmethod(failing_transition))

    response = post_sms(client, message_sid='SM3000')

    assert response.status_code == 200
    assert len(parse(response)) == 0
    events = all_events(session)
    assert {e.status for e in events} == {'error'}
    assert any(e.content == "ledger update failed" for e in events)


def test_webhooks_do_not_require_authentication(client, user, make_configuration):
    make_configuration(user.id, forward_to_phone=OWNER_PHONE)

    assert post_voice(client).status_code == 200
    assert post_sms(client).status_code == 200
