"""
Contains the ``BackupPolicy`` and ``BackupManager`` classes, which keep a rolling set of snapshots of recent writes.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import List

from notedesk import helpers
from notedesk.helpers import DateUtil, StoreContext


class BackupPolicy:
    """
    Decides whether a write should also be backed up. Only a sample of writes is backed up.
    """

    def __init__(self, probability: float = helpers.BACKUP_PROBABILITY, rng: random.Random | None = None):
        """
        Create a new backup policy.

        :param probability: chance, between 0 and 1, that a write is backed up. Use 1 to back up every write and 0 to
        back up none.
        :param rng: the random number generator to sample with.
        """
        self.probability: float = probability
        self.rng: random.Random = rng if rng is not None else random.Random()

    def should_backup(self) -> bool:
        """
        :return: True if the current write should be backed up.
        """
        if self.probability <= 0:
            return False
        return self.rng.random() < self.probability


class BackupManager:
    """
    Writes snapshots to the backup folder and prunes each category down to its most recent snapshots.
    """

    #: A snapshot of a saved note.
    CATEGORY_NOTE: str = 'note'
    #: A snapshot of a note taken just before it was deleted.
    CATEGORY_DELETED_NOTE: str = 'deleted-note'
    #: A snapshot of the event collection.
    CATEGORY_CALENDAR: str = 'calendar'
    #: Number of snapshots kept per category.
    KEEP: int = 10

    def __init__(self, context: StoreContext, policy: BackupPolicy | None = None):
        """
        Create a new backup manager.

        :param context: the store context containing the backup folder.
        :param policy: the policy used by ``maybe_backup``.
        """
        self.context: StoreContext = context
        self.policy: BackupPolicy = policy if policy is not None else BackupPolicy()

    def maybe_backup(self, data: object, category: str) -> tuple[bool, str] | tuple[bool, None]:
        """
        Backs up ``data`` if the backup policy selects this write.

        :param data: the document to back up.
        :param category: the backup category.

        :returns:

            -success (:py:class:`bool`) - false only if a backup was attempted and failed.

            -data (:py:class:`str` | None) - error message on failure, path of the backup, or None if skipped.

        """
        if not self.policy.should_backup():
            return True, None
        return self.create_backup(data, category)

    def create_backup(self, data: object, category: str) -> tuple[bool, str]:
        """
        Writes a snapshot of ``data`` and prunes old snapshots of the same category. Failures are logged, never raised.

        :param data: the document to back up.
        :param category: the backup category.

        :returns:

            -success (:py:class:`bool`) - true if the snapshot is written.

            -data (:py:class:`str`) - error message on failure, or path of the snapshot.

        """
        stamp = DateUtil.backup_stamp(self.context.clock())
        backup_path = self.context.backup_dir / '{}-{}.json'.format(category, stamp)
        try:
            helpers.write_json(backup_path, data)
            self.prune(category)
        except (OSError, TypeError, ValueError) as e:
            error = 'Backup failed for {}: {}'.format(category, e)
            logging.warning(error)
            return False, error
        logging.debug('Backup written: {}'.format(backup_path))
        return True, str(backup_path)

    def list_backups(self, category: str) -> List[Path]:
        """
        Get the snapshots of a category, newest first.

        :param category: the backup category.
        :return: list of snapshot files.
        """
        if not self.context.backup_dir.is_dir():
            return []
        prefix = category + '-'
        backups = [p for p in self.context.backup_dir.iterdir()
                   if p.name.startswith(prefix) and p.suffix == '.json' and p.name[len(prefix):len(prefix) + 1].isdigit()]
        return sorted(backups, key=lambda p: p.name, reverse=True)

    def prune(self, category: str) -> int:
        """
        Deletes all but the ``KEEP`` most recent snapshots of a category.

        :param category: the backup category.
        :return: number of snapshots deleted.
        """
        removed = 0
        for old_backup in self.list_backups(category)[BackupManager.KEEP:]:
            old_backup.unlink()
            removed += 1
        return removed
