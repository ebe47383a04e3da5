"""
This is the model of the note-storage part of NoteDesk. Here, you'll find the following:

- ``note.py`` - Contains the ``Note`` class that represents a note stored as a JSON record.
- ``notefolder.py`` - Contains the ``FolderRegistry`` class which keeps the list of note folders.

"""

from . import note, notefolder

__all__ = ['note', 'notefolder', ]
