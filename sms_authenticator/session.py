# SPDX-License-Identifier: GPL-3.0-only
"""Session note stores.

The host owns the notes of a flow and passes the store into every call.
``MemoryAuthNotes`` keeps them in-process; ``db_notes.DatabaseAuthNotes``
keeps them in a peewee table.
"""

from typing import Dict, Optional, Protocol


class AuthNotes(Protocol):
    """Key/value notes scoped to one authentication flow."""

    def set_note(self, key: str, value: str) -> None: ...

    def get_note(self, key: str) -> Optional[str]: ...

    def remove_note(self, key: str) -> None: ...


class MemoryAuthNotes:
    """Notes kept in a dictionary for the lifetime of the object."""

    def __init__(self, notes: Optional[Dict[str, str]] = None):
        self._notes = dict(notes or {})

    def set_note(self, key: str, value: str) -> None:
        self._notes[key] = value

    def get_note(self, key: str) -> Optional[str]:
        return self._notes.get(key)

    def remove_note(self, key: str) -> None:
        self._notes.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._notes
