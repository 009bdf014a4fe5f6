# phonerelay/services/routing_directory_service.py
# -*- coding: utf-8 -*-
"""
Routing Directory Service
Maps an inbound destination number to the owning user's telephony configuration.
This service is read-only and DOES NOT modify the database state.
"""
import logging

from phonerelay.database.models.telephony_configuration import TelephonyConfigurationModel
from phonerelay.extensions import db
from phonerelay.utils.exceptions import ServiceError


log = logging.getLogger(__name__)


class RoutingDirectoryService:

    @staticmethod
    def resolve(inbound_number: str | None) -> TelephonyConfigurationModel | None:
        """
        Looks up the configuration claiming `inbound_number`.

        Exact match on the unique inbound_number column. Numbers are compared as
        stored, so configurations must hold the same E.164 form the provider sends.

        Args:
            inbound_number (str): The `To` number from the provider callback.

        Returns:
            TelephonyConfigurationModel or None: None means the number is not
            configured, which is a routine outcome and not an error.

        Raises:
             ServiceError: If an unexpected database error occurs during lookup.
        """
        if not inbound_number:
            log.warning("Routing lookup attempted with empty inbound number.")
            return None

        try:
            configuration = db.session.query(TelephonyConfigurationModel)\
                                      .filter(TelephonyConfigurationModel.inbound_number == inbound_number)\
                                      .one_or_none()
        except Exception as e:
            log.exception(f"Unexpected error during routing lookup for '{inbound_number}': {e}")
            raise ServiceError(f"Unexpected database error during routing lookup: {e}")

        if configuration is None:
            log.info(f"Routing miss: inbound number '{inbound_number}' is not configured.")
            return None

        log.debug(f"Inbound number '{inbound_number}' resolved to configuration {configuration.id} (User ID: {configuration.user_id}).")
        return configuration
