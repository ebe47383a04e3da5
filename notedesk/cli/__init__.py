"""
This is the command-line interface for NoteDesk.
"""
