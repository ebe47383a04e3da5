"""
Contains the ``Note`` class, which represents a note stored as a JSON record.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from notedesk import helpers


class Note:
    """
    Represents a note. The note's title is its identity, and is used to derive the name of the file it is stored in.
    """

    #: Maximum length of the key derived from a title.
    MAX_KEY_LENGTH: int = 100
    #: Key used when a title has no usable characters.
    DEFAULT_KEY: str = 'untitled'

    _WHITESPACE = re.compile(r'\s+')

    def __init__(self,
                 title: str,
                 content: str = '',
                 folder: str = helpers.GENERAL_FOLDER,
                 created: str | None = None,
                 last_modified: str | None = None,
                 extra: dict | None = None):
        """
        Create a new note.

        :param title: the title of the note.
        :param content: the body of the note as rich text markup.
        :param folder: the folder containing this note.
        :param created: ISO timestamp of when the note was created.
        :param last_modified: ISO timestamp of when the note was last modified.
        :param extra: any other attributes found in the stored record, kept as-is.
        """
        self.title: str = title
        self.content: str = content
        self.folder: str = folder
        self.created: str | None = created
        self.last_modified: str | None = last_modified
        self.extra: dict = extra if extra is not None else {}

    @staticmethod
    def derive_key(title: str) -> str:
        """
        Derive the storage key for a title. The title is trimmed, forbidden and control characters are removed, runs of
        whitespace become underscores, and the result is lower-cased and truncated to ``MAX_KEY_LENGTH`` characters.

        Deriving the key of a key gives the same key.

        :param title: the note title.
        :return: the key, used as the file name stem.
        """
        if not isinstance(title, str):
            return Note.DEFAULT_KEY
        key = helpers.FORBIDDEN_CHARS.sub('', title.strip())
        key = Note._WHITESPACE.sub('_', key.strip())
        key = key.lower()[:Note.MAX_KEY_LENGTH]
        return key or Note.DEFAULT_KEY

    @staticmethod
    def file_name(title: str) -> str:
        """
        :param title: the note title.
        :return: the name of the file storing the note with this title.
        """
        return Note.derive_key(title) + '.json'

    @staticmethod
    def create_from_dict(data: object, now: str) -> Note | None:
        """
        Creates a Note instance from a stored record. Missing folders default to ``General``, and a missing creation
        date defaults to the modification date or ``now``.

        :param data: the decoded record.
        :param now: the current ISO timestamp.
        :return: a Note instance, or None if ``data`` is not an object with a string title.
        """
        if not isinstance(data, dict) or not isinstance(data.get('title'), str):
            return None
        extra = {k: v for k, v in data.items() if k not in ('title', 'content', 'folder', 'created', 'lastModified')}
        last_modified = data.get('lastModified')
        return Note(
            title=data['title'],
            content=data.get('content', ''),
            folder=data.get('folder') or helpers.GENERAL_FOLDER,
            created=data.get('created') or last_modified or now,
            last_modified=last_modified,
            extra=extra)

    @staticmethod
    def create_from_file(path: Path, now: str) -> tuple[bool, Note] | tuple[bool, str]:
        """
        Loads a Note from a record file.

        :param path: the record file.
        :param now: the current ISO timestamp.

        :returns:

            -success (:py:class:`bool`) - true if the record is read and valid.

            -data (:py:class:`Note` | :py:class:`str`) - the note, or an error message on failure.

        """
        try:
            data = helpers.read_json(path)
        except (OSError, ValueError) as e:
            return False, 'Failed to load note {}: {}'.format(path.name, e)
        note = Note.create_from_dict(data, now)
        if note is None:
            return False, 'Invalid note record {}'.format(path.name)
        return True, note

    def to_dict(self) -> dict:
        """
        :return: the stored representation of this note.
        """
        record = dict(self.extra)
        record.update({
            'title': self.title,
            'content': self.content,
            'folder': self.folder,
            'created': self.created,
        })
        if self.last_modified is not None:
            record['lastModified'] = self.last_modified
        return record

    def save(self, notes_dir: Path) -> tuple[bool, str]:
        """
        Writes this note to its record file.

        :param notes_dir: the folder containing note records.

        :returns:

            -success (:py:class:`bool`) - true if the note is written.

            -data (:py:class:`str`) - error message on failure, or path of the record file.

        """
        record = self.to_dict()
        path = notes_dir / Note.file_name(self.title)
        try:
            size = helpers.json_size(record)
            if size > helpers.MAX_NOTE_BYTES:
                return False, 'Note content too large (max 10MB)'
            helpers.write_json(path, record)
        except (OSError, TypeError, ValueError) as e:
            return False, 'Failed to write note {}: {}'.format(self.title, e)
        logging.debug('Note written: {} ({} bytes)'.format(path, size))
        return True, str(path)

    @property
    def content_markdown(self) -> str:
        """
        :return: the body of this note converted to Markdown.
        """
        return helpers.html_to_markdown(self.content or '')

    def __str__(self):
        return self.title

    def __repr__(self):
        return self.title
