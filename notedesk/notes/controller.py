"""
This is the note controller. It contains all methods required to store notes and manage note folders. These are called
by the ``Store``, but can be called separately if imported.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from notedesk import helpers
from notedesk.backups import BackupManager
from notedesk.helpers import DateUtil, StoreContext
from notedesk.notes.model.note import Note
from notedesk.notes.model.notefolder import FolderRegistry


class NoteController:
    """
    Contains the note and folder operations. Every method reports failure through its return value rather than by
    raising.
    """

    def __init__(self, context: StoreContext, backups: BackupManager):
        """
        Create a new note controller.

        :param context: the store context.
        :param backups: used to back up saved and deleted notes.
        """
        self.context: StoreContext = context
        self.backups: BackupManager = backups
        self.folders: FolderRegistry = FolderRegistry(context)

    def _note_path(self, title: str) -> Path:
        return self.context.notes_dir / Note.file_name(title)

    def _note_files(self) -> List[Path]:
        if not self.context.notes_dir.is_dir():
            return []
        try:
            return sorted(p for p in self.context.notes_dir.iterdir() if p.suffix == '.json' and p.is_file())
        except OSError as e:
            logging.critical('Failed to read notes folder {}: {}'.format(self.context.notes_dir, e))
            return []

    def save_note(self, note: object) -> tuple[bool, str]:
        """
        Save a note, stamping its modification date. The creation date is kept if given.

        :param note: a mapping with ``title`` and, optionally, ``content``, ``folder`` and ``created``.

        :returns:

            -success (:py:class:`bool`) - true if the note is saved.

            -data (:py:class:`str`) - error message on failure, or path of the note's record file.

        """
        if not isinstance(note, dict) or not isinstance(note.get('title'), str) or not note['title'].strip():
            error = 'Invalid note data'
            logging.critical(error)
            return False, error

        now = self.context.now()
        to_save = Note(
            title=note['title'].strip(),
            content=note.get('content') or '',
            folder=note.get('folder') or helpers.GENERAL_FOLDER,
            created=note.get('created') or now,
            last_modified=now)

        success, data = to_save.save(self.context.notes_dir)
        if not success:
            logging.critical('Failed to save note {}: {}'.format(to_save.title, data))
            return False, data

        self.backups.maybe_backup(to_save.to_dict(), BackupManager.CATEGORY_NOTE)
        return True, data

    def delete_note(self, title: object) -> tuple[bool, str]:
        """
        Delete a note. A backup of the note is always taken first. If the record is not valid JSON, its raw text is
        backed up instead. If the file cannot be read at all, the note is not deleted.

        :param title: the note's title.

        :returns:

            -success (:py:class:`bool`) - true if the note is deleted.

            -data (:py:class:`str`) - error message on failure, or success message.

        """
        if not isinstance(title, str) or not title:
            return False, 'Invalid note title'

        path = self._note_path(title)
        if not path.exists():
            return False, 'Note not found'

        try:
            record = helpers.read_json(path)
        except ValueError as e:
            logging.warning('Note {} is not valid JSON, backing up raw text: {}'.format(title, e))
            try:
                record = {'title': title, 'raw': path.read_text(encoding='utf-8', errors='replace')}
            except OSError as read_error:
                error = 'Failed to read note {} for backup: {}'.format(title, read_error)
                logging.critical(error)
                return False, error
        except OSError as e:
            error = 'Failed to read note {} for backup: {}'.format(title, e)
            logging.critical(error)
            return False, error
        self.backups.create_backup(record, BackupManager.CATEGORY_DELETED_NOTE)

        try:
            path.unlink()
        except OSError as e:
            error = 'Failed to delete note {}: {}'.format(title, e)
            logging.critical(error)
            return False, error
        debug_msg = 'Note deleted: {}'.format(title)
        logging.debug(debug_msg)
        return True, debug_msg

    def move_note(self, title: object, target_folder: object) -> tuple[bool, str] | tuple[bool, dict]:
        """
        Move a note to another folder.

        :param title: the note's title.
        :param target_folder: the folder to move the note to.

        :returns:

            -success (:py:class:`bool`) - true if the note is moved.

            -data (:py:class:`str` | :py:class:`dict`) - error message on failure, or the updated note record.

        """
        if not isinstance(title, str) or not title:
            return False, 'Invalid note title'
        if not isinstance(target_folder, str) or not target_folder:
            return False, 'Invalid target folder'

        path = self._note_path(title)
        if not path.exists():
            return False, 'Note not found'

        try:
            record = helpers.read_json(path)
            if not isinstance(record, dict):
                return False, 'Invalid note record {}'.format(path.name)
            record['folder'] = target_folder
            record['lastModified'] = self.context.now()
            helpers.write_json(path, record)
        except (OSError, ValueError, TypeError) as e:
            error = 'Failed to move note {}: {}'.format(title, e)
            logging.critical(error)
            return False, error
        logging.debug('Note {} moved to {}'.format(title, target_folder))
        return True, record

    def load_notes(self) -> List[Note]:
        """
        Load every note. Records which cannot be read are logged and skipped.

        :return: the notes, most recently modified first.
        """
        now = self.context.now()
        notes = []
        for path in self._note_files():
            success, data = Note.create_from_file(path, now)
            if not success:
                logging.warning(data)
                continue
            notes.append(data)

        def sort_key(n: Note) -> float:
            parsed = DateUtil.from_iso(n.last_modified)
            return parsed.timestamp() if parsed else float('-inf')

        notes.sort(key=sort_key, reverse=True)
        return notes

    def list_notes(self) -> List[dict]:
        """
        List every note.

        :return: the note records, most recently modified first, or an empty list on failure.
        """
        return [note.to_dict() for note in self.load_notes()]

    def _reassign_notes(self, from_folder: str, to_folder: str) -> tuple[int, List[str]]:
        """
        Move every note in ``from_folder`` to ``to_folder``. Notes which cannot be updated are logged and skipped, so the
        cascade may be partially applied.

        :param from_folder: the folder to move notes out of.
        :param to_folder: the folder to move notes to.

        :returns:

            - updated (:py:class:`int`) - number of notes moved.
            - failed (:py:class:`List[str]`) - files which could not be updated.

        """
        updated = 0
        failed = []
        for path in self._note_files():
            try:
                record = helpers.read_json(path)
                if not isinstance(record, dict):
                    continue
                if (record.get('folder') or helpers.GENERAL_FOLDER) != from_folder:
                    continue
                record['folder'] = to_folder
                record['lastModified'] = self.context.now()
                helpers.write_json(path, record)
                updated += 1
            except (OSError, ValueError, TypeError) as e:
                logging.warning('Failed to update note {}: {}'.format(path.name, e))
                failed.append(path.name)
        return updated, failed

    def get_folders(self) -> List[str]:
        """
        :return: the list of folders, always including ``General``.
        """
        return self.folders.load()

    def add_folder(self, name: object) -> tuple[bool, str] | tuple[bool, List[str]]:
        """
        Add a folder.

        :param name: the new folder's name.

        :returns:

            -success (:py:class:`bool`) - true if the folder is added.

            -data (:py:class:`str` | :py:class:`List[str]`) - error message on failure, or the updated folder list.

        """
        success, data = self.folders.add(name)
        if not success:
            logging.critical('Failed to add folder {}: {}'.format(name, data))
        return success, data

    def delete_folder(self, name: object) -> tuple[bool, str] | tuple[bool, List[str]]:
        """
        Delete a folder. Notes in the folder are moved to ``General``.

        :param name: the folder's name.

        :returns:

            -success (:py:class:`bool`) - true if the folder is deleted.

            -data (:py:class:`str` | :py:class:`List[str]`) - error message on failure, or the updated folder list.

        """
        if not isinstance(name, str) or not name.strip():
            return False, 'Invalid folder name'
        trimmed = name.strip()
        if trimmed == helpers.GENERAL_FOLDER:
            return False, 'Cannot delete General folder'
        if trimmed not in self.folders.load():
            return False, 'Folder not found'

        updated, failed = self._reassign_notes(trimmed, helpers.GENERAL_FOLDER)
        success, data = self.folders.remove(trimmed)
        if not success:
            logging.critical('Failed to delete folder {}: {}'.format(trimmed, data))
            return False, data
        logging.debug('Folder {} deleted. Notes moved to General: {} | Failed: {}'.format(
            trimmed, updated, ','.join(failed) if failed else 'None'))
        return True, data

    def rename_folder(self, old_name: object, new_name: object) -> tuple[bool, str] | tuple[bool, List[str]]:
        """
        Rename a folder, and move its notes to the renamed folder.

        :param old_name: the folder's current name.
        :param new_name: the folder's new name.

        :returns:

            -success (:py:class:`bool`) - true if the folder is renamed.

            -data (:py:class:`str` | :py:class:`List[str]`) - error message on failure, or the updated folder list.

        """
        if not isinstance(old_name, str) or not old_name.strip():
            return False, 'Invalid old folder name'
        if not isinstance(new_name, str) or not new_name.strip():
            return False, 'Invalid new folder name'
        trimmed_old = old_name.strip()
        trimmed_new = new_name.strip()

        if trimmed_old == helpers.GENERAL_FOLDER:
            return False, 'Cannot rename General folder'
        if trimmed_old == trimmed_new:
            return False, 'New folder name is the same as old'

        success, data = FolderRegistry.validate_name(trimmed_new)
        if not success:
            return False, data

        success, data = self.folders.rename(trimmed_old, trimmed_new)
        if not success:
            logging.critical('Failed to rename folder {}: {}'.format(trimmed_old, data))
            return False, data

        updated, failed = self._reassign_notes(trimmed_old, trimmed_new)
        logging.debug('Folder {} renamed to {}. Notes updated: {} | Failed: {}'.format(
            trimmed_old, trimmed_new, updated, ','.join(failed) if failed else 'None'))
        return True, data
