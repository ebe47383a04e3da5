"""
Contains the ``CalendarEvent`` class, which represents an event in the calendar.
"""

from __future__ import annotations

from typing import List


class CalendarEvent:
    """
    Represents a calendar event. Start and end are kept as strings: either a date (``YYYY-MM-DD``) for all-day events,
    or a date and time (``YYYY-MM-DDTHH:MM:SS``, optionally followed by ``Z``).
    """

    #: Maximum length of an event title.
    MAX_TITLE_LENGTH: int = 200
    #: Title used when an event has none.
    DEFAULT_TITLE: str = 'Untitled Event'

    def __init__(self,
                 uid: str,
                 title: str,
                 start: str,
                 end: str | None = None,
                 all_day: bool = False):
        """
        Create a new event.

        :param uid: the unique ID of this event.
        :param title: the title of this event. Truncated to ``MAX_TITLE_LENGTH`` characters.
        :param start: the start date or date/time.
        :param end: the end date or date/time, if any.
        :param all_day: True if this event lasts all day.
        """
        self.uid: str = uid
        self.title: str = title[:CalendarEvent.MAX_TITLE_LENGTH]
        self.start: str = start
        self.end: str | None = end
        self.all_day: bool = all_day

    @staticmethod
    def is_valid_record(record: object) -> bool:
        """
        Check whether a stored event record can be used.

        :param record: the decoded record.
        :return: True if the record has a string ``id``, a string ``title`` and a non-empty ``start``.
        """
        return (isinstance(record, dict)
                and isinstance(record.get('id'), str)
                and isinstance(record.get('title'), str)
                and bool(record.get('start')))

    @staticmethod
    def filter_valid(records: List[object]) -> List[dict]:
        """
        :param records: decoded event records.
        :return: the records which pass ``is_valid_record``, in order.
        """
        return [record for record in records if CalendarEvent.is_valid_record(record)]

    def to_dict(self) -> dict:
        """
        :return: the stored representation of this event. ``end`` is left out if the event has no end.
        """
        record = {
            'id': self.uid,
            'title': self.title,
            'start': self.start,
            'allDay': self.all_day,
        }
        if self.end is not None:
            record['end'] = self.end
        return record

    def __str__(self):
        return self.title

    def __repr__(self):
        return self.title
