"""
This is the note-storage part of NoteDesk. Here, you'll find the following:

- ``controller.py`` - Contains the ``NoteController`` class, which saves, deletes, moves and lists notes, and manages
  note folders.
- ``model`` - The ``Note`` and ``FolderRegistry`` classes.

"""

from . import model
from . import controller

__all__ = ['model', 'controller', ]
