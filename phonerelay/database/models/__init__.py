# phonerelay/database/models/__init__.py
# -*- coding: utf-8 -*-
"""
Models Package Initialization.

Exposes model classes for easier importing throughout the application,
e.g., `from phonerelay.database.models import UserModel`.
"""

from .user import UserModel
from .telephony_configuration import TelephonyConfigurationModel
from .webhook_event import WebhookEventModel
from .contact import ContactModel

__all__ = [
    'UserModel',
    'TelephonyConfigurationModel',
    'WebhookEventModel',
    'ContactModel',
]
