"""
This is the calendar controller. It contains all methods required to store calendar events and import iCalendar files.
These are called by the ``Store``, but can be called separately if imported.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from notedesk import helpers
from notedesk.backups import BackupManager
from notedesk.events.model.event import CalendarEvent
from notedesk.events.model.icsparser import IcsParser
from notedesk.helpers import StoreContext


class EventController:
    """
    Contains the calendar operations. The event collection is stored as a single document, ``calendar.json``.
    """

    def __init__(self, context: StoreContext, backups: BackupManager, parser: IcsParser | None = None):
        """
        Create a new event controller.

        :param context: the store context.
        :param backups: used to back up the event collection.
        :param parser: the parser used to import iCalendar files.
        """
        self.context: StoreContext = context
        self.backups: BackupManager = backups
        self.parser: IcsParser = parser if parser is not None else IcsParser()

    def get_events(self) -> List[dict]:
        """
        Get the stored events. Malformed records are dropped.

        :return: the event records, or an empty list if the collection cannot be read.
        """
        try:
            if not self.context.calendar_file.exists():
                helpers.write_json(self.context.calendar_file, [])
                return []
            events = helpers.read_json(self.context.calendar_file)
        except (OSError, ValueError) as e:
            logging.critical('Failed to load events: {}'.format(e))
            return []
        if not isinstance(events, list):
            logging.warning('Event collection is not an array, ignoring.')
            return []
        return CalendarEvent.filter_valid(events)

    def save_events(self, events: object) -> tuple[bool, str]:
        """
        Replace the stored events. Malformed records are dropped rather than failing the save.

        :param events: list of event records.

        :returns:

            -success (:py:class:`bool`) - true if the events are saved.

            -data (:py:class:`str`) - error message on failure, or success message.

        """
        if not isinstance(events, list):
            return False, 'Invalid events data'

        valid = CalendarEvent.filter_valid(events)
        try:
            helpers.write_json(self.context.calendar_file, valid)
        except (OSError, TypeError, ValueError) as e:
            error = 'Failed to save events: {}'.format(e)
            logging.critical(error)
            return False, error

        self.backups.maybe_backup(valid, BackupManager.CATEGORY_CALENDAR)
        debug_msg = 'Saved {} events ({} dropped)'.format(len(valid), len(events) - len(valid))
        logging.debug(debug_msg)
        return True, debug_msg

    def import_calendar_file(self, path: object) -> tuple[bool, str] | tuple[bool, List[dict]]:
        """
        Import an iCalendar file. The imported events replace the stored events.

        :param path: the file to import.

        :returns:

            -success (:py:class:`bool`) - true if at least one event is imported.

            -data (:py:class:`str` | :py:class:`List[dict]`) - error message on failure, or the imported event records.

        """
        if not isinstance(path, (str, Path)) or not str(path):
            return False, 'No file selected'
        ics_file = Path(path)

        try:
            if not ics_file.is_file():
                return False, 'File not found: {}'.format(ics_file)
            if ics_file.stat().st_size > helpers.MAX_CALENDAR_FILE_BYTES:
                return False, 'File too large (max 5MB)'
            with open(ics_file, encoding='utf-8', errors='replace') as fp:
                content = fp.read()
        except OSError as e:
            error = 'Failed to read calendar file {}: {}'.format(ics_file, e)
            logging.critical(error)
            return False, error

        events = [event.to_dict() for event in self.parser.parse(content)]
        if not events:
            return False, 'No valid events found in file'

        try:
            helpers.write_json(self.context.calendar_file, events)
        except (OSError, TypeError, ValueError) as e:
            error = 'Failed to save imported events: {}'.format(e)
            logging.critical(error)
            return False, error

        logging.debug('Imported {} events from {}'.format(len(events), ics_file))
        return True, events
