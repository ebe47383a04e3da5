"""
This is the main package for NoteDesk.

- ``notes`` - notes and the folders containing them.
- ``events`` - calendar events and iCalendar import.
- ``store`` - the ``Store`` service used by front ends.
- ``backups`` - rolling backups of recent writes.
- ``cli`` - the NoteDesk command-line interface.
- ``helpers`` - helpers used by both notes and events.

"""

from . import helpers

__all__ = ['helpers', ]
