import argparse
import asyncio
import copy
import json
import logging
import os
import pathlib
import sys
from datetime import datetime
from pathlib import Path

from notedesk import helpers
from notedesk.backups import BackupManager, BackupPolicy
from notedesk.helpers import DateUtil, StoreContext
from notedesk.notes.model.note import Note
from notedesk.store import Store


class NoteDeskCli:
    """
    Defines the functionality of the NoteDesk CLI.
    """

    SETTINGS = {
        'data_dir': str(helpers.DATA_LOCATION),
        'backup_probability': helpers.BACKUP_PROBABILITY,
    }

    #: Name given to the log file handler, so it can be found and closed.
    LOG_HANDLER_NAME = 'notedesk-log-file'

    def __init__(self, args):
        self.args = args
        self.settings = copy.deepcopy(NoteDeskCli.SETTINGS)
        self.logger = self.setup_logging()
        self.apply_settings()
        context = StoreContext(Path(self.settings['data_dir']))
        self.store = Store(context, BackupPolicy(float(self.settings['backup_probability'])))

    @staticmethod
    def __process_result(result: dict, error: str, code: int) -> dict:
        """
        Process the result of one of the store methods. If there is an error, this is logged and the CLI exits.

        :param result: the result returned by the store.
        :param error: The error message to display on failure.
        :param code: The exit code to use on error.
        :return: the result, if successful.
        """
        if not result['success']:
            logging.critical('{} {}'.format(error, result['error']))
            sys.exit(code)
        return result

    def run(self) -> None:
        """
        Runs the command given on the command line.
        """
        handler = getattr(self, '{}_{}'.format(self.args.command, self.args.action))
        handler()

    def notes_list(self) -> None:
        """
        Prints every note, most recently modified first.
        """
        notes = asyncio.run(self.store.list_notes())
        folder = getattr(self.args, 'folder', None)
        for note in notes:
            if folder and note['folder'] != folder:
                continue
            print('{:<40} {:<20} {}'.format(note['title'], note['folder'],
                                            DateUtil.display(note.get('lastModified', ''))))

    def notes_show(self) -> None:
        """
        Prints a note, converted to Markdown.
        """
        wanted = Note.derive_key(self.args.title)
        for record in asyncio.run(self.store.list_notes()):
            if Note.derive_key(record['title']) == wanted:
                note = Note.create_from_dict(record, self.store.context.now())
                print('# {}\n'.format(note.title))
                print(note.content_markdown)
                return
        logging.critical('Note not found: {}'.format(self.args.title))
        sys.exit(18)

    def notes_add(self) -> None:
        """
        Saves a note. The content is read from a Markdown file with ``--file``, or given as HTML with ``--content``.
        """
        content = self.args.content or ''
        if self.args.file:
            try:
                with open(self.args.file, encoding='utf-8') as fp:
                    content = helpers.markdown_to_html(fp.read())
            except OSError as e:
                logging.critical('Could not read {}: {}'.format(self.args.file, e))
                sys.exit(19)
        note = {'title': self.args.title, 'content': content, 'folder': self.args.folder}
        result = NoteDeskCli.__process_result(
            asyncio.run(self.store.save_note(note)),
            "Failed to save note.", 11)
        logging.info('Note saved to {}'.format(result['file_path']))

    def notes_delete(self) -> None:
        NoteDeskCli.__process_result(
            asyncio.run(self.store.delete_note(self.args.title)),
            "Failed to delete note.", 12)
        logging.info('Note deleted: {}'.format(self.args.title))

    def notes_move(self) -> None:
        NoteDeskCli.__process_result(
            asyncio.run(self.store.move_note(self.args.title, self.args.target_folder)),
            "Failed to move note.", 13)
        logging.info('Note {} moved to {}'.format(self.args.title, self.args.target_folder))

    def folders_list(self) -> None:
        for folder in asyncio.run(self.store.get_folders()):
            print(folder)

    def folders_add(self) -> None:
        NoteDeskCli.__process_result(
            asyncio.run(self.store.add_folder(self.args.name)),
            "Failed to add folder.", 14)
        logging.info('Folder added: {}'.format(self.args.name))

    def folders_delete(self) -> None:
        NoteDeskCli.__process_result(
            asyncio.run(self.store.delete_folder(self.args.name)),
            "Failed to delete folder.", 15)
        logging.info('Folder deleted: {}'.format(self.args.name))

    def folders_rename(self) -> None:
        NoteDeskCli.__process_result(
            asyncio.run(self.store.rename_folder(self.args.old_name, self.args.new_name)),
            "Failed to rename folder.", 16)
        logging.info('Folder {} renamed to {}'.format(self.args.old_name, self.args.new_name))

    def events_list(self) -> None:
        for event in asyncio.run(self.store.get_events()):
            when = event['start'] if not event.get('end') else '{} - {}'.format(event['start'], event['end'])
            print('{:<40} {}{}'.format(event['title'], when, ' (all day)' if event.get('allDay') else ''))

    def events_import(self) -> None:
        result = NoteDeskCli.__process_result(
            asyncio.run(self.store.import_calendar_file(self.args.file)),
            "Failed to import calendar.", 17)
        count = result['imported_count']
        logging.info('Successfully imported {} event{}'.format(count, 's' if count != 1 else ''))

    def backups_list(self) -> None:
        categories = [self.args.category] if self.args.category else [
            BackupManager.CATEGORY_NOTE, BackupManager.CATEGORY_DELETED_NOTE, BackupManager.CATEGORY_CALENDAR]
        for category in categories:
            for backup in self.store.backups.list_backups(category):
                print(backup.name)

    def apply_settings(self) -> None:
        """
        Load settings from the configuration file, This is normally in ~/.notedesk/conf.json, but may be overridden with
        the --config option. Any configuration options specified via command-line options will override the values in
        the configuration file.
        """

        # Load settings from file
        if 'config' in self.args:
            # Load settings from custom configuration file
            if os.path.exists(self.args.config):
                conf_file = self.args.config
                self.logger.info('Using custom config file: {}'.format(conf_file))
            else:
                self.logger.critical('Configuration file {} not found.'.format(self.args.config))
                sys.exit(2)
        else:
            # Load settings from default configuration file
            conf_file = Path(getattr(self.args, 'data_dir', self.settings['data_dir'])) / 'conf.json'
            self.logger.debug('Using default config file: {}'.format(conf_file))

        self.merge_settings(conf_file)

        # Override settings from command line arguments
        self.override_config()

        logging.debug("Settings in use: {}".format(json.dumps(self.settings, indent=2)))

    def merge_settings(self, conf_file: str) -> None:
        """
        Override any of the default settings of the NoteDesk CLI with settings found in a configuration file.
        """

        if os.path.exists(conf_file):
            with open(conf_file) as fp:
                try:
                    loaded_settings = json.loads(fp.read())
                except json.decoder.JSONDecodeError:
                    logging.critical("Your configuration file at {} is invalid. Please check syntax.".format(conf_file))
                    sys.exit(20)
            if not isinstance(loaded_settings, dict):
                logging.critical("Your configuration file at {} is invalid. Please check syntax.".format(conf_file))
                sys.exit(20)
            for key in self.settings.keys():
                if key in loaded_settings:
                    self.settings[key] = loaded_settings[key]

    def override_config(self) -> None:
        """
        Override any settings (default or from configuration file) which have been specified as command-line options.
        """

        vargs = vars(self.args)
        for key in self.settings.keys():
            if key in vargs:
                self.settings[key] = str(vargs[key]) if key == 'data_dir' else vargs[key]

    def setup_logging(self) -> logging.Logger:
        """
        Sets up the logging system.

        :return: the logging helper for the CLI.
        """

        if 'log_dir' in self.args:
            if os.access(self.args.log_dir, os.W_OK | os.X_OK):
                log_folder = Path(self.args.log_dir)
            else:
                print("Specified log directory {} is not accessible.".format(self.args.log_dir))
                sys.exit(1)
        else:
            log_folder = helpers.logs_folder(getattr(self.args, 'data_dir', self.settings['data_dir']))

        log_file = datetime.now().strftime("NoteDesk_%Y%m%d-%H%M%S") + '.log'
        log_levels = {
            'debug': logging.DEBUG,
            'info': logging.INFO,
            'warning': logging.WARNING,
            'critical': logging.CRITICAL
        }
        log_level = log_levels[self.args.log_level]

        logging.basicConfig(
            level=log_level,
            format='%(asctime)s %(levelname)s: %(message)s',
        )
        logging.getLogger().setLevel(log_level)
        NoteDeskCli.close_log_files()
        file_handler = logging.FileHandler(log_folder / log_file)
        file_handler.set_name(NoteDeskCli.LOG_HANDLER_NAME)
        logging.getLogger().addHandler(file_handler)
        return logging.getLogger()

    @staticmethod
    def close_log_files() -> None:
        """
        Detaches and closes the log file handler added by ``setup_logging``, if any.
        """
        root = logging.getLogger()
        for handler in [h for h in root.handlers if h.get_name() == NoteDeskCli.LOG_HANDLER_NAME]:
            root.removeHandler(handler)
            handler.close()


def build_parser() -> argparse.ArgumentParser:
    """
    Defines arguments accepted by the CLI.

    :return: the argument parser.
    """

    parser = argparse.ArgumentParser(
        prog="notedesk",
        description="Manage your NoteDesk notes, folders and calendar from the command line.",
    )

    # Cli-specific options
    parser.add_argument(
        "--data-dir",
        type=pathlib.Path,
        default=argparse.SUPPRESS,
        help="use to provide a path to the NoteDesk data folder.")
    parser.add_argument(
        "--config",
        type=pathlib.Path,
        default=argparse.SUPPRESS,
        help="use to provide a path to a custom configuration file.")
    parser.add_argument(
        "--log-dir",
        type=pathlib.Path,
        default=argparse.SUPPRESS,
        help="specify a custom directory to use for logging.")
    parser.add_argument(
        "--log-level",
        type=str,
        choices=['debug', 'info', 'critical', 'warning'],
        default=helpers.LOG_LEVEL,
        help="specify the logging level.")
    parser.add_argument(
        "--backup-probability",
        type=float,
        default=argparse.SUPPRESS,
        help="chance, between 0 and 1, that a write is also backed up.")

    commands = parser.add_subparsers(dest='command', required=True)

    notes = commands.add_parser('notes', help="manage notes.").add_subparsers(dest='action', required=True)
    notes_list = notes.add_parser('list', help="list notes, most recently modified first.")
    notes_list.add_argument("--folder", type=str, default=None, help="only list notes in this folder.")
    notes_show = notes.add_parser('show', help="print a note as Markdown.")
    notes_show.add_argument("title", type=str)
    notes_add = notes.add_parser('add', help="save a note.")
    notes_add.add_argument("title", type=str)
    notes_add.add_argument("--file", type=pathlib.Path, default=None, help="Markdown file with the note's content.")
    notes_add.add_argument("--content", type=str, default=None, help="the note's content as HTML.")
    notes_add.add_argument("--folder", type=str, default=helpers.GENERAL_FOLDER, help="the note's folder.")
    notes_delete = notes.add_parser('delete', help="delete a note.")
    notes_delete.add_argument("title", type=str)
    notes_move = notes.add_parser('move', help="move a note to another folder.")
    notes_move.add_argument("title", type=str)
    notes_move.add_argument("target_folder", type=str)

    folders = commands.add_parser('folders', help="manage note folders.").add_subparsers(dest='action', required=True)
    folders.add_parser('list', help="list folders.")
    folders_add = folders.add_parser('add', help="add a folder.")
    folders_add.add_argument("name", type=str)
    folders_delete = folders.add_parser('delete', help="delete a folder, moving its notes to General.")
    folders_delete.add_argument("name", type=str)
    folders_rename = folders.add_parser('rename', help="rename a folder.")
    folders_rename.add_argument("old_name", type=str)
    folders_rename.add_argument("new_name", type=str)

    events = commands.add_parser('events', help="manage calendar events.").add_subparsers(dest='action', required=True)
    events.add_parser('list', help="list calendar events.")
    events_import = events.add_parser('import', help="import an iCalendar file, replacing all events.")
    events_import.add_argument("file", type=pathlib.Path)

    backups = commands.add_parser('backups', help="inspect backups.").add_subparsers(dest='action', required=True)
    backups_list = backups.add_parser('list', help="list backups, newest first.")
    backups_list.add_argument("category", type=str, nargs='?', default=None,
                              choices=[BackupManager.CATEGORY_NOTE, BackupManager.CATEGORY_DELETED_NOTE,
                                       BackupManager.CATEGORY_CALENDAR])

    return parser


def main(argv=None):
    """
    Parses the command line and runs the requested command. The log file is closed when the command finishes.
    """
    try:
        NoteDeskCli(build_parser().parse_args(argv)).run()
    finally:
        NoteDeskCli.close_log_files()


if __name__ == "__main__":
    main()
