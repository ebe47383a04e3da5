"""
Contains the ``FolderRegistry`` class, which keeps the list of note folders.
"""

from __future__ import annotations

import logging
from typing import List

from notedesk import helpers
from notedesk.helpers import StoreContext


class FolderRegistry:
    """
    The list of note folders, stored in ``folders.json``. The ``General`` folder is always present.
    """

    #: Maximum length of a folder name.
    MAX_NAME_LENGTH: int = 50

    def __init__(self, context: StoreContext):
        """
        Create a new folder registry.

        :param context: the store context containing the folder list.
        """
        self.context: StoreContext = context

    @staticmethod
    def validate_name(name: object) -> tuple[bool, str]:
        """
        Validate a folder name.

        :param name: the folder name.

        :returns:

            -success (:py:class:`bool`) - true if the name is valid.

            -data (:py:class:`str`) - error message on failure, or the trimmed name.

        """
        if not isinstance(name, str) or not name.strip():
            return False, 'Invalid folder name'
        trimmed = name.strip()
        if len(trimmed) > FolderRegistry.MAX_NAME_LENGTH:
            return False, 'Folder name too long (max {} characters)'.format(FolderRegistry.MAX_NAME_LENGTH)
        if helpers.FORBIDDEN_CHARS.search(trimmed):
            return False, 'Folder name contains invalid characters'
        return True, trimmed

    @staticmethod
    def is_duplicate(folders: List[str], name: str) -> bool:
        """
        :param folders: the existing folders.
        :param name: a trimmed folder name.
        :return: True if ``name`` matches an existing folder, ignoring case and surrounding whitespace.
        """
        wanted = name.lower()
        return any(f.strip().lower() == wanted for f in folders)

    def load(self) -> List[str]:
        """
        Load the folder list. If the list cannot be read, ``['General']`` is returned. If ``General`` is missing from
        the list, it is added at the front and the list is saved.

        :return: the list of folder names.
        """
        try:
            if not self.context.folders_file.exists():
                self.save([helpers.GENERAL_FOLDER])
                return [helpers.GENERAL_FOLDER]
            folders = helpers.read_json(self.context.folders_file)
        except (OSError, ValueError) as e:
            logging.critical('Failed to load folders: {}'.format(e))
            return [helpers.GENERAL_FOLDER]

        if not isinstance(folders, list):
            logging.warning('Folder list is not an array, using defaults.')
            return [helpers.GENERAL_FOLDER]
        folders = [f for f in folders if isinstance(f, str)]

        if helpers.GENERAL_FOLDER not in folders:
            folders.insert(0, helpers.GENERAL_FOLDER)
            try:
                self.save(folders)
            except OSError as e:
                logging.warning('Failed to restore General folder: {}'.format(e))
        return folders

    def save(self, folders: List[str]) -> None:
        """
        Save the folder list.

        :param folders: the list of folder names.
        """
        helpers.write_json(self.context.folders_file, folders)

    def add(self, name: object) -> tuple[bool, str] | tuple[bool, List[str]]:
        """
        Add a folder.

        :param name: the new folder's name.

        :returns:

            -success (:py:class:`bool`) - true if the folder is added.

            -data (:py:class:`str` | :py:class:`List[str]`) - error message on failure, or the updated folder list.

        """
        success, data = FolderRegistry.validate_name(name)
        if not success:
            return False, data
        trimmed = data

        folders = self.load()
        if FolderRegistry.is_duplicate(folders, trimmed):
            return False, 'Folder already exists'

        folders.append(trimmed)
        try:
            self.save(folders)
        except OSError as e:
            return False, 'Failed to save folders: {}'.format(e)
        return True, folders

    def remove(self, name: str) -> tuple[bool, str] | tuple[bool, List[str]]:
        """
        Remove a folder from the list. Notes in the folder are not touched.

        :param name: the trimmed folder name.

        :returns:

            -success (:py:class:`bool`) - true if the folder is removed.

            -data (:py:class:`str` | :py:class:`List[str]`) - error message on failure, or the updated folder list.

        """
        folders = [f for f in self.load() if f != name]
        try:
            self.save(folders)
        except OSError as e:
            return False, 'Failed to save folders: {}'.format(e)
        return True, folders

    def rename(self, old_name: str, new_name: str) -> tuple[bool, str] | tuple[bool, List[str]]:
        """
        Rename a folder in place, keeping its position in the list. Notes in the folder are not touched.

        :param old_name: the trimmed current name.
        :param new_name: the trimmed new name.

        :returns:

            -success (:py:class:`bool`) - true if the folder is renamed.

            -data (:py:class:`str` | :py:class:`List[str]`) - error message on failure, or the updated folder list.

        """
        folders = self.load()
        if FolderRegistry.is_duplicate(folders, new_name):
            return False, 'Folder already exists'
        if old_name not in folders:
            return False, 'Folder not found'

        folders[folders.index(old_name)] = new_name
        try:
            self.save(folders)
        except OSError as e:
            return False, 'Failed to save folders: {}'.format(e)
        return True, folders
