"""
This is a helper file shared by the note, folder and calendar stores.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import markdown2
from decouple import config
from markdownify import markdownify as md

DATA_LOCATION: Path = Path(config('NOTEDESK_DATA_DIR', default=str(Path.home() / '.notedesk')))  #: Location where
# application data is stored.
BACKUP_PROBABILITY: float = config('NOTEDESK_BACKUP_PROBABILITY', default=0.1, cast=float)  #: Chance that a write is
# also backed up.
LOG_LEVEL: str = config('NOTEDESK_LOG_LEVEL', default='info')

#: Name of the folder which always exists and cannot be deleted or renamed.
GENERAL_FOLDER: str = 'General'
#: Maximum size of a serialised note, in bytes.
MAX_NOTE_BYTES: int = 10 * 1024 * 1024
#: Maximum size of a calendar file which can be imported, in bytes.
MAX_CALENDAR_FILE_BYTES: int = 5 * 1024 * 1024
#: Characters which may not appear in note keys or folder names.
FORBIDDEN_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def get_uuid() -> str:
    """
    Generates a UUID.

    :return: a UUID.
    """
    return str(uuid.uuid4())


def html_to_markdown(html: str) -> str:
    """
    Converts HTML to Markdown using the `Markdownify <https://pypi.org/project/markdownify/>`_ library.

    :param html: the HTML to convert to Markdown.

    :return: the Markdown version of the HTML given.
    """
    return md(html, heading_style='ATX', newline_style='SPACES').strip()


def markdown_to_html(text: str) -> str:
    """
    Converts Markdown to HTML using the `markdown2 <https://pypi.org/project/markdown2/>`_ library.

    :param text: the Markdown text to convert to HTMl.

    :return: the HTML version of the Markdown given.
    """
    return markdown2.markdown(text, extras={
        'breaks': {'on_newline': True, 'on_backslash': True},
        'cuddled-lists': None
    })


def read_json(path: Path) -> object:
    """
    Reads a JSON document.

    :param path: the file to read.
    :return: the decoded document.
    :raises ValueError: if the document is not valid JSON, or is nested too deeply to decode.
    """
    with open(path, encoding='utf-8') as fp:
        try:
            return json.load(fp)
        except RecursionError as e:
            raise ValueError('{} is nested too deeply to decode'.format(path)) from e


def write_json(path: Path, data: object) -> None:
    """
    Writes a JSON document with two-space indentation, creating the parent folder if needed. The document is
    serialised before the file is opened, so a document which cannot be serialised leaves the file untouched.

    :param path: the file to write.
    :param data: the document to write.
    """
    text = json.dumps(data, indent=2, ensure_ascii=False)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as fp:
        fp.write(text)


def json_size(data: object) -> int:
    """
    Get the size of a document once serialised as JSON.

    :param data: the document to measure.
    :return: size in bytes of the UTF-8 encoded JSON.
    """
    return len(json.dumps(data, ensure_ascii=False).encode('utf-8'))


class StoreContext:
    """
    Bundles the locations used by the store. Each instance is independent, so several stores can work on different
    data folders at the same time.
    """

    def __init__(self, root: Path, clock: Callable[[], datetime] | None = None):
        """
        Create a new context.

        :param root: the data folder. Notes, folders, events and backups are all kept under this folder.
        :param clock: returns the current UTC time. Defaults to the system clock.
        """
        self.root: Path = Path(root)
        self.notes_dir: Path = self.root / 'notes'
        self.folders_file: Path = self.root / 'folders.json'
        self.calendar_file: Path = self.root / 'calendar.json'
        self.backup_dir: Path = self.root / 'backups'
        self.clock: Callable[[], datetime] = clock if clock is not None else DateUtil.utc_now

    def now(self) -> str:
        """
        Get the current time as an ISO timestamp.

        :return: the current time, e.g. ``2024-06-15T14:30:00.000Z``.
        """
        return DateUtil.to_iso(self.clock())

    def ensure(self) -> None:
        """
        Creates the data folders, and seeds the folder list and event collection if they do not exist.
        """
        self.notes_dir.mkdir(parents=True, exist_ok=True)
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        if not self.folders_file.exists():
            write_json(self.folders_file, [GENERAL_FOLDER])
        if not self.calendar_file.exists():
            write_json(self.calendar_file, [])

    def __str__(self):
        return str(self.root)


def default_context() -> StoreContext:
    """
    Get a context for the default data location, ``NOTEDESK_DATA_DIR`` or ``~/.notedesk``.

    :return: the default store context.
    """
    return StoreContext(DATA_LOCATION)


def logs_folder(root: Path) -> Path:
    """
    Get the location of the ``logs`` folder within a data folder.

    :param root: the data folder.
    :return: path to the ``logs`` folder.
    """
    folder = Path(root) / 'logs'
    folder.mkdir(parents=True, exist_ok=True)
    return folder


class DateUtil:
    """
    Utility class for converting between the timestamp formats used in stored records.
    """

    ISO_DATETIME = "%Y-%m-%dT%H:%M:%S"
    DISPLAY_DATETIME = "%Y-%m-%d %H:%M"

    @staticmethod
    def utc_now() -> datetime:
        """
        Get the current time in UTC.

        :return: an aware datetime.
        """
        return datetime.now(timezone.utc)

    @staticmethod
    def to_iso(obj: datetime) -> str:
        """
        Convert a datetime to an ISO timestamp with millisecond precision.

        :param obj: the datetime to convert. Naive datetimes are taken to be UTC.
        :return: the timestamp, e.g. ``2024-06-15T14:30:00.000Z``.
        """
        if obj.tzinfo is None:
            obj = obj.replace(tzinfo=timezone.utc)
        obj = obj.astimezone(timezone.utc)
        return obj.strftime(DateUtil.ISO_DATETIME) + '.{:03d}Z'.format(obj.microsecond // 1000)

    @staticmethod
    def from_iso(value: str) -> datetime | bool:
        """
        Parse an ISO timestamp.

        :param value: the timestamp to parse. A trailing ``Z`` is accepted.
        :return: an aware datetime, or False if ``value`` could not be parsed.
        """
        if not isinstance(value, str) or not value:
            return False
        try:
            parsed = datetime.fromisoformat(value[:-1] + '+00:00' if value.endswith('Z') else value)
        except ValueError:
            return False
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    @staticmethod
    def backup_stamp(obj: datetime) -> str:
        """
        Convert a datetime to a timestamp which can be used in a file name and sorts chronologically.

        :param obj: the datetime to convert.
        :return: the timestamp, e.g. ``2024-06-15T14-30-00-123456Z``.
        """
        if obj.tzinfo is None:
            obj = obj.replace(tzinfo=timezone.utc)
        obj = obj.astimezone(timezone.utc)
        return obj.strftime("%Y-%m-%dT%H-%M-%S") + '-{:06d}Z'.format(obj.microsecond)

    @staticmethod
    def display(value: str) -> str:
        """
        Format an ISO timestamp for display.

        :param value: the timestamp to format.
        :return: the formatted timestamp, or ``value`` unchanged if it cannot be parsed.
        """
        parsed = DateUtil.from_iso(value)
        if not parsed:
            logging.debug('Could not format timestamp {}'.format(value))
            return value
        return parsed.strftime(DateUtil.DISPLAY_DATETIME)
