"""
This is the calendar part of NoteDesk. Here, you'll find the following:

- ``controller.py`` - Contains the ``EventController`` class, which stores calendar events and imports iCalendar files.
- ``model`` - The ``CalendarEvent`` and ``IcsParser`` classes.

"""

from . import model
from . import controller

__all__ = ['model', 'controller', ]
