"""
Contains the ``IcsParser`` class, which reads events from iCalendar (``.ics``) files.

The parser only looks at ``VEVENT`` blocks and the ``UID``, ``SUMMARY``, ``DTSTART`` and ``DTEND`` properties. It is
tolerant of malformed input: events which cannot be read are skipped.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List

from notedesk import helpers
from notedesk.events.model.event import CalendarEvent


class IcsProperty:
    """
    A property line from an event block, e.g. ``DTSTART;VALUE=DATE:20240101``.
    """

    def __init__(self, value: str, params: str):
        """
        :param value: everything after the first colon.
        :param params: everything before the first colon, including the property name.
        """
        self.value: str = value
        self.params: str = params

    def __repr__(self):
        return '{}:{}'.format(self.params, self.value)


class IcsParser:
    """
    Converts the text of an iCalendar file into a list of ``CalendarEvent``.
    """

    BEGIN_EVENT = 'BEGIN:VEVENT'
    END_EVENT = 'END:VEVENT'

    DATE = re.compile(r'\d{8}')
    DATETIME = re.compile(r'(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})(Z?)')
    DATE_MARKER = 'VALUE=DATE'

    def __init__(self, uid_factory: Callable[[], str] | None = None):
        """
        Create a new parser.

        :param uid_factory: creates an ID for events which have no ``UID``. Each call must return a new ID.
        """
        self.uid_factory: Callable[[], str] = (
            uid_factory if uid_factory is not None else lambda: 'imported-{}'.format(helpers.get_uuid()))

    @staticmethod
    def unfold(content: str) -> List[str]:
        """
        Splits content into logical lines. Lines starting with a space or tab continue the previous line.

        :param content: the raw file content.
        :return: the unfolded lines.
        """
        lines = content.replace('\r\n', '\n').replace('\r', '\n').split('\n')
        unfolded = []
        for line in lines:
            if line[:1] in (' ', '\t') and unfolded:
                unfolded[-1] += line[1:]
            else:
                unfolded.append(line.strip())
        return unfolded

    @staticmethod
    def parse_property(line: str) -> tuple[str, IcsProperty] | None:
        """
        Parse a property line.

        :param line: an unfolded line from inside an event block.
        :return: the upper-cased property name and the property, or None if the line has no property name.
        """
        colon = line.find(':')
        if colon <= 0:
            return None
        params = line[:colon]
        key = params.split(';')[0].upper()
        return key, IcsProperty(line[colon + 1:], params)

    @staticmethod
    def parse_datetime(value: str, params: str) -> tuple[str, bool] | None:
        """
        Parse a date or date/time value. Dates (``YYYYMMDD``, or any value marked ``VALUE=DATE``) become ``YYYY-MM-DD``.
        Date/times (``YYYYMMDDTHHMMSS`` with an optional ``Z``) become ``YYYY-MM-DDTHH:MM:SS``, keeping the ``Z``.

        :param value: the property value.
        :param params: the property's parameter string.

        :returns:

            - datetime (:py:class:`str`) - the converted value.
            - all_day (:py:class:`bool`) - True if the value is a date.

            or None if the value cannot be parsed.

        """
        if not value:
            return None

        if IcsParser.DATE_MARKER in params or IcsParser.DATE.fullmatch(value):
            if not IcsParser.DATE.fullmatch(value):
                return None
            return '{}-{}-{}'.format(value[0:4], value[4:6], value[6:8]), True

        match = IcsParser.DATETIME.fullmatch(value)
        if match is None:
            return None
        year, month, day, hour, minute, second, utc = match.groups()
        return '{}-{}-{}T{}:{}:{}{}'.format(year, month, day, hour, minute, second, utc), False

    def create_event(self, properties: Dict[str, IcsProperty]) -> CalendarEvent | None:
        """
        Creates a CalendarEvent from the properties of an event block.

        :param properties: the properties of the block, keyed by upper-cased name.
        :return: the event, or None if the block has no readable ``DTSTART``.
        """
        dtstart = properties.get('DTSTART')
        if dtstart is None:
            return None
        start = IcsParser.parse_datetime(dtstart.value, dtstart.params)
        if start is None:
            logging.debug('Skipping event with unreadable start {}'.format(dtstart))
            return None

        end = None
        dtend = properties.get('DTEND')
        if dtend is not None:
            end = IcsParser.parse_datetime(dtend.value, dtend.params)

        summary = properties.get('SUMMARY')
        uid = properties.get('UID')
        return CalendarEvent(
            uid=uid.value if uid is not None and uid.value else self.uid_factory(),
            title=summary.value if summary is not None and summary.value else CalendarEvent.DEFAULT_TITLE,
            start=start[0],
            end=end[0] if end is not None else None,
            all_day=start[1])

    def parse(self, content: str) -> List[CalendarEvent]:
        """
        Read every event in an iCalendar document. Blocks which are never closed are discarded, as are events without a
        readable start.

        :param content: the text of the iCalendar document.
        :return: the events found, in document order. Empty if the document cannot be parsed.
        """
        try:
            events = []
            current = None
            for line in IcsParser.unfold(content):
                if not line:
                    continue
                if line == IcsParser.BEGIN_EVENT:
                    current = {}
                elif line == IcsParser.END_EVENT and current is not None:
                    event = self.create_event(current)
                    if event is not None:
                        events.append(event)
                    current = None
                elif current is not None:
                    parsed = IcsParser.parse_property(line)
                    if parsed is not None:
                        key, prop = parsed
                        current[key] = prop
            return events
        except (AttributeError, TypeError, ValueError) as e:
            logging.critical('Failed to parse calendar: {}'.format(e))
            return []
