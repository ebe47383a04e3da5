"""
Contains the ``Store`` class, the service interface used by front ends. Every method is a coroutine which returns a
result rather than raising.

Write operations return a dictionary with a ``success`` key. On failure, the dictionary also contains ``error``. Read
operations return the data directly, or an empty/default value on failure.
"""
from __future__ import annotations

from typing import List

from notedesk import helpers
from notedesk.backups import BackupManager, BackupPolicy
from notedesk.events.controller import EventController
from notedesk.helpers import StoreContext
from notedesk.notes.controller import NoteController


class Store:
    """
    Stores notes, folders and calendar events in a data folder.
    """

    def __init__(self, context: StoreContext | None = None, backup_policy: BackupPolicy | None = None):
        """
        Create a new store. The data folder is created if needed.

        :param context: the store context. Defaults to the default data location.
        :param backup_policy: decides which writes are backed up.
        """
        self.context: StoreContext = context if context is not None else helpers.default_context()
        self.context.ensure()
        self.backups: BackupManager = BackupManager(self.context, backup_policy)
        self.notes: NoteController = NoteController(self.context, self.backups)
        self.events: EventController = EventController(self.context, self.backups)

    @staticmethod
    def _result(success: bool, data: object, key: str | None = None) -> dict:
        if not success:
            return {'success': False, 'error': data}
        result = {'success': True}
        if key is not None:
            result[key] = data
        return result

    async def save_note(self, note: dict) -> dict:
        """
        Save a note.

        :param note: a mapping with ``title`` and, optionally, ``content``, ``folder`` and ``created``.
        :return: ``{'success': True, 'file_path': ...}`` or ``{'success': False, 'error': ...}``.
        """
        success, data = self.notes.save_note(note)
        return Store._result(success, data, 'file_path')

    async def delete_note(self, title: str) -> dict:
        """
        Delete a note.

        :param title: the note's title.
        :return: ``{'success': True}`` or ``{'success': False, 'error': ...}``.
        """
        success, data = self.notes.delete_note(title)
        return Store._result(success, data)

    async def move_note(self, title: str, target_folder: str) -> dict:
        """
        Move a note to another folder.

        :param title: the note's title.
        :param target_folder: the folder to move the note to.
        :return: ``{'success': True, 'note': ...}`` or ``{'success': False, 'error': ...}``.
        """
        success, data = self.notes.move_note(title, target_folder)
        return Store._result(success, data, 'note')

    async def list_notes(self) -> List[dict]:
        """
        :return: every note, most recently modified first.
        """
        return self.notes.list_notes()

    async def get_folders(self) -> List[str]:
        """
        :return: the list of folders, always including ``General``.
        """
        return self.notes.get_folders()

    async def add_folder(self, name: str) -> dict:
        """
        Add a folder.

        :param name: the new folder's name.
        :return: ``{'success': True, 'folders': [...]}`` or ``{'success': False, 'error': ...}``.
        """
        success, data = self.notes.add_folder(name)
        return Store._result(success, data, 'folders')

    async def delete_folder(self, name: str) -> dict:
        """
        Delete a folder, moving its notes to ``General``.

        :param name: the folder's name.
        :return: ``{'success': True, 'folders': [...]}`` or ``{'success': False, 'error': ...}``.
        """
        success, data = self.notes.delete_folder(name)
        return Store._result(success, data, 'folders')

    async def rename_folder(self, old_name: str, new_name: str) -> dict:
        """
        Rename a folder.

        :param old_name: the folder's current name.
        :param new_name: the folder's new name.
        :return: ``{'success': True, 'folders': [...]}`` or ``{'success': False, 'error': ...}``.
        """
        success, data = self.notes.rename_folder(old_name, new_name)
        return Store._result(success, data, 'folders')

    async def get_events(self) -> List[dict]:
        """
        :return: the stored calendar events.
        """
        return self.events.get_events()

    async def save_events(self, events: List[dict]) -> dict:
        """
        Replace the stored calendar events.

        :param events: list of event records.
        :return: ``{'success': True}`` or ``{'success': False, 'error': ...}``.
        """
        success, data = self.events.save_events(events)
        return Store._result(success, data)

    async def import_calendar_file(self, path: str) -> dict:
        """
        Import an iCalendar file, replacing the stored events.

        :param path: the file to import.
        :return: ``{'success': True, 'imported_count': ..., 'events': [...]}`` or
            ``{'success': False, 'error': ...}``.
        """
        success, data = self.events.import_calendar_file(path)
        if not success:
            return Store._result(success, data)
        return {'success': True, 'imported_count': len(data), 'events': data}
