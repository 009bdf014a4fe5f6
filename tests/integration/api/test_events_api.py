# tests/integration/api/test_events_api.py
# -*- coding: utf-8 -*-
"""
Integration tests for the event ledger read API (/api/events) and the dashboard.
"""
import json

import pytest

from phonerelay.services.event_log_service import EventLogService, WebhookEventDraft


@pytest.fixture
def seeded_events(user, make_user):
    """Five events for `user` (oldest first) and one for somebody else."""
    drafts = [
        (WebhookEventDraft(user.id, 'voice', '+15551230001', '+15550001111', call_sid='CA01'), 'processed'),
        (WebhookEventDraft(user.id, 'sms', '+15551230002', '+15550001111', content='pizza tonight?', message_sid='SM01'), 'processed'),
        (WebhookEventDraft(user.id, 'sms_forward', '+15550000000', '+15559876543', content='Forwarded from +15551230002: pizza tonight?', direction='outbound'), 'sent'),
        (WebhookEventDraft(user.id, 'voice', '+15551230003', '+15550001111', call_sid='CA02'), 'error'),
        (WebhookEventDraft(user.id, 'sms', '+15551230004', '+15550001111', content='hello', message_sid='SM02'), 'received'),
    ]
    ids = [EventLogService.append(draft, status) for draft, status in drafts]
    other = make_user(username='other_owner')
    EventLogService.append(WebhookEventDraft(other.id, 'voice', '+15551239999', '+15550002222', call_sid='CA99'), 'processed')
    return ids


def test_events_newest_first_and_scoped_to_user(logged_in_client, seeded_events):
    response = logged_in_client.get('/api/events')

    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['total'] == 5
    assert data['perPage'] == 20
    assert [item['id'] for item in data['items']] == list(reversed(seeded_events))


def test_events_filters(logged_in_client, seeded_events):
    voice = json.loads(logged_in_client.get('/api/events?type=voice').data)
    errors = json.loads(logged_in_client.get('/api/events?status=error').data)
    search = json.loads(logged_in_client.get('/api/events?search=pizza').data)

    assert voice['total'] == 2
    assert {item['type'] for item in voice['items']} == {'voice'}
    assert [item['callSid'] for item in errors['items']] == ['CA02']
    assert {item['type'] for item in search['items']} == {'sms', 'sms_forward'}


def test_events_reject_unknown_filters(logged_in_client):
    assert logged_in_client.get('/api/events?type=fax').status_code == 400
    assert logged_in_client.get('/api/events?status=lost').status_code == 400


def test_events_pagination(logged_in_client, seeded_events):
    data = json.loads(logged_in_client.get('/api/events?per_page=2&page=3').data)

    assert data['pages'] == 3
    assert [item['id'] for item in data['items']] == [seeded_events[0]]


def test_event_detail_includes_payload(logged_in_client, user):
    event_id = EventLogService.record(WebhookEventDraft(
        user.id, 'voice', '+15551230001', '+15550001111', call_sid='CA77',
        provider_payload={'CallSid': 'CA77', 'CallStatus': 'ringing'},
    ))

    data = json.loads(logged_in_client.get(f'/api/events/{event_id}').data)

    assert data['providerPayload'] == {'CallSid': 'CA77', 'CallStatus': 'ringing'}
    assert data['status'] == 'received'


def test_event_detail_of_other_user_is_not_found(logged_in_client, make_user):
    other = make_user(username='other_owner')
    event_id = EventLogService.append(WebhookEventDraft(other.id, 'voice', call_sid='CA55'), 'processed')

    assert logged_in_client.get(f'/api/events/{event_id}').status_code == 404


def test_dashboard_summary(logged_in_client, seeded_events, user, make_configuration):
    make_configuration(user.id, inbound_number='+15550001111')

    response = logged_in_client.get('/api/dashboard')

    assert response.status_code == 200
    data = json.loads(response.data)
    assert data['totalCalls'] == 2
    assert data['totalSms'] == 3
    assert data['totalErrors'] == 1
    assert data['telephonyConfigured'] is True
    assert [item['id'] for item in data['recentActivity']] == list(reversed(seeded_events))


def test_dashboard_without_configuration(logged_in_client):
    data = json.loads(logged_in_client.get('/api/dashboard').data)

    assert data['telephonyConfigured'] is False
    assert data['totalCalls'] == 0
    assert data['recentActivity'] == []
