# tests/unit/test_forwarding_target.py
# -*- coding: utf-8 -*-
"""Unit tests for the forwarding target variants and their single validating factory."""
import pytest

from phonerelay.database.models.telephony_configuration import (
    PhoneTarget, SipTarget, build_forwarding_target,
)
from phonerelay.utils.exceptions import ValidationError


def test_dial_phone_builds_phone_target_and_ignores_sip_fields():
    target = build_forwarding_target('dial_phone', forward_to_phone='+15559876543',
                                     sip_endpoint='sip:host', sip_username='user')

    assert target == PhoneTarget('+15559876543')
    assert target.call_action == 'dial_phone'


def test_dial_sip_with_full_credentials():
    target = build_forwarding_target('dial_sip', sip_endpoint='sip:host', sip_username='user', sip_password='pass')

    assert target == SipTarget('sip:host', 'user', 'pass')
    assert target.has_credentials
    assert target.call_action == 'dial_sip'


def test_dial_sip_without_credentials():
    target = build_forwarding_target('dial_sip', sip_endpoint='sip:host', sip_username='', sip_password=None)

    assert target == SipTarget('sip:host', None, None)
    assert not target.has_credentials


@pytest.mark.parametrize('username, password', [('user', None), (None, 'pass'), ('user', '')])
def test_dial_sip_partial_credentials_rejected(username, password):
    with pytest.raises(ValidationError) as exc_info:
        build_forwarding_target('dial_sip', sip_endpoint='sip:host', sip_username=username, sip_password=password)

    assert set(exc_info.value.errors) == {'sipUsername', 'sipPassword'}
    assert exc_info.value.status_code == 400


def test_unknown_call_action_rejected():
    with pytest.raises(ValidationError) as exc_info:
        build_forwarding_target('dial_fax')

    assert 'callAction' in exc_info.value.errors


def test_targets_are_immutable():
    target = PhoneTarget('+15559876543')

    with pytest.raises(AttributeError):
        target.number = '+15550000000'
