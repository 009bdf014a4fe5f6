# phonerelay/services/telephony_provider.py
# -*- coding: utf-8 -*-
"""
Telephony provider client (Twilio REST API).

Constructed per application in create_app() and handed to the outbound
dispatcher, so tests can substitute a fake with the same two methods.
"""
import logging

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from phonerelay.utils.exceptions import ProviderConfigurationError, ProviderError


log = logging.getLogger(__name__)


class TwilioProvider:
    """Places calls and sends messages through Twilio using account credentials from config."""

    def __init__(self, account_sid=None, auth_token=None, from_number=None):
        self.account_sid = account_sid
        self.auth_token = auth_token
        # System-level sender used for forwarded SMS
        self.from_number = from_number
        self._client = None

    @classmethod
    def from_config(cls, config):
        return cls(
            account_sid=config.get('TWILIO_ACCOUNT_SID'),
            auth_token=config.get('TWILIO_AUTH_TOKEN'),
            from_number=config.get('TWILIO_FROM_NUMBER'),
        )

    @property
    def missing_credentials(self) -> list:
        names = {
            'TWILIO_ACCOUNT_SID': self.account_sid,
            'TWILIO_AUTH_TOKEN': self.auth_token,
            'TWILIO_FROM_NUMBER': self.from_number,
        }
        return [name for name, value in names.items() if not value]

    @property
    def system_sender(self) -> str | None:
        return self.from_number

    def _get_client(self) -> Client:
        missing = self.missing_credentials
        if missing:
            raise ProviderConfigurationError(f"Twilio credentials not configured: {', '.join(missing)}")
        if self._client is None:
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    def place_call(self, to: str, from_: str, twiml: str) -> str:
        """
        Starts an outbound call whose behaviour is given inline as TwiML.

        Returns:
            str: The provider call SID.

        Raises:
            ProviderConfigurationError: Credentials missing; nothing is sent.
            ProviderError: Twilio rejected the request.
        """
        client = self._get_client()
        try:
            call = client.calls.create(to=to, from_=from_, twiml=twiml)
        except TwilioException as e:
            log.error(f"Twilio call create failed (to: {to}, from: {from_}): {e}")
            raise ProviderError(f"Failed to place call: {e}")
        log.info(f"Twilio call {call.sid} created (to: {to}, from: {from_}).")
        return call.sid

    def send_message(self, to: str, from_: str, body: str) -> str:
        """
        Sends an SMS with a literal body.

        Returns:
            str: The provider message SID.

        Raises:
            ProviderConfigurationError: Credentials missing; nothing is sent.
            ProviderError: Twilio rejected the request.
        """
        client = self._get_client()
        try:
            message = client.messages.create(to=to, from_=from_, body=body)
        except TwilioException as e:
            log.error(f"Twilio message create failed (to: {to}, from: {from_}): {e}")
            raise ProviderError(f"Failed to send message: {e}")
        log.info(f"Twilio message {message.sid} created (to: {to}, from: {from_}, length: {len(body)}).")
        return message.sid
