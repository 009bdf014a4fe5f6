# tests/integration/services/test_settings_service.py
# -*- coding: utf-8 -*-
"""Tests for saving telephony configurations and the credential column."""
import pytest
from sqlalchemy import text

from phonerelay.database.models import TelephonyConfigurationModel
from phonerelay.database.models.telephony_configuration import SipTarget
from phonerelay.services.settings_service import SettingsService
from phonerelay.utils.exceptions import ConflictError, ResourceNotFound, ValidationError


def test_partial_credentials_rejected_and_nothing_staged(session, user):
    with pytest.raises(ValidationError) as exc_info:
        SettingsService.save_configuration(
            user.id, call_action='dial_sip', inbound_number='+15550001111',
            sip_endpoint='sip:host', sip_username='desk',
        )

    assert set(exc_info.value.errors) == {'sipUsername', 'sipPassword'}
    session.commit()
    assert session.query(TelephonyConfigurationModel).count() == 0


def test_sip_password_is_encrypted_at_rest(session, user, make_configuration):
    configuration = make_configuration(
        user.id, call_action='dial_sip', sip_endpoint='sip:host', sip_username='desk', sip_password='s3cret',
    )

    raw = session.execute(
        text("SELECT sip_password FROM telephony_configurations WHERE id = :id"), {'id': configuration.id}
    ).scalar()
    assert raw and raw != 's3cret'
    assert 's3cret' not in raw

    session.expire_all()
    stored = session.get(TelephonyConfigurationModel, configuration.id)
    assert stored.sip_password == 's3cret'
    assert stored.forwarding_target == SipTarget(endpoint='sip:host', username='desk', password='s3cret')


def test_repr_never_contains_credentials(session, user, make_configuration):
    configuration = make_configuration(
        user.id, call_action='dial_sip', sip_endpoint='sip:host', sip_username='desk', sip_password='s3cret',
    )

    assert 's3cret' not in repr(configuration)


def test_inbound_number_conflict(session, user, make_user, make_configuration):
    make_configuration(user.id, inbound_number='+15550001111')
    other = make_user(username='other_owner')

    with pytest.raises(ConflictError):
        SettingsService.save_configuration(other.id, call_action='dial_phone', inbound_number='+15550001111')


def test_resaving_own_number_is_not_a_conflict(session, user, make_configuration):
    make_configuration(user.id, inbound_number='+15550001111')

    configuration = SettingsService.save_configuration(user.id, call_action='dial_phone', inbound_number='+15550001111',
                                                       custom_greeting='Hi')

    assert configuration.custom_greeting == 'Hi'


def test_delete_configuration(session, user, make_configuration):
    make_configuration(user.id)

    SettingsService.delete_configuration(user.id)
    session.commit()

    assert SettingsService.get_configuration(user.id) is None
    with pytest.raises(ResourceNotFound):
        SettingsService.delete_configuration(user.id)


def test_delete_all_configurations(session, user, make_user, make_configuration):
    make_configuration(user.id, inbound_number='+15550001111')
    make_configuration(make_user(username='other_owner').id, inbound_number='+15550002222')

    assert SettingsService.delete_all_configurations() == 2
    session.commit()
    assert SettingsService.get_all_configurations() == []
