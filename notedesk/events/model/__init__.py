"""
This is the model of the calendar part of NoteDesk. Here, you'll find the following:

- ``event.py`` - Contains the ``CalendarEvent`` class which represents an event in the calendar.
- ``icsparser.py`` - Contains the ``IcsParser`` class which reads events from iCalendar files.

"""

from . import event, icsparser

__all__ = ['event', 'icsparser', ]
