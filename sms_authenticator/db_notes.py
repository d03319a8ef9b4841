# SPDX-License-Identifier: GPL-3.0-only
"""Session notes persisted with peewee."""

from typing import Optional

from base_logger import get_logger
from sms_authenticator.db_models import AuthNote

logger = get_logger(__name__)


class DatabaseAuthNotes:
    """Notes persisted in the ``auth_notes`` table, one row per flow and key."""

    def __init__(self, flow_id: str):
        self.flow_id = flow_id

    def _where(self, key: str):
        return (AuthNote.flow_id == self.flow_id) & (AuthNote.name == key)

    def set_note(self, key: str, value: str) -> None:
        AuthNote.replace(flow_id=self.flow_id, name=key, value=value).execute()

    def get_note(self, key: str) -> Optional[str]:
        note = AuthNote.get_or_none(self._where(key))
        return note.value if note else None

    def remove_note(self, key: str) -> None:
        AuthNote.delete().where(self._where(key)).execute()

    def clear(self) -> int:
        """Delete every note of the flow, e.g. when the host ends it."""
        deleted = AuthNote.delete().where(AuthNote.flow_id == self.flow_id).execute()
        logger.debug("Cleared %d notes for flow %s", deleted, self.flow_id)
        return deleted
