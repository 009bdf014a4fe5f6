# phonerelay/database/types.py
# -*- coding: utf-8 -*-
"""Custom column types."""

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from flask import current_app
from sqlalchemy.types import Text, TypeDecorator


def get_fernet() -> Fernet:
    """
    Builds the Fernet cipher for credentials at rest.

    Uses SIP_CREDENTIAL_KEY when configured (a urlsafe base64 32-byte key, as
    produced by Fernet.generate_key()). Otherwise a key is derived from SECRET_KEY
    so development setups work without extra configuration.
    """
    key = current_app.config.get('SIP_CREDENTIAL_KEY')
    if key:
        return Fernet(key.encode() if isinstance(key, str) else key)
    secret = current_app.config['SECRET_KEY'].encode()
    return Fernet(base64.urlsafe_b64encode(hashlib.sha256(secret).digest()))


class EncryptedString(TypeDecorator):
    """
    String column encrypted with Fernet before it reaches the database.
    Python code only ever sees plaintext; the table only ever holds ciphertext.
    """
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return get_fernet().encrypt(value.encode('utf-8')).decode('ascii')

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        try:
            return get_fernet().decrypt(value.encode('ascii')).decode('utf-8')
        except InvalidToken:
            # Key rotated or row written by something else; never leak ciphertext upward
            current_app.logger.error("Unable to decrypt stored credential; treating it as unset.")
            return None
