import json
import logging

import pytest

from notedesk.cli import ndcli


class TestCli:

    @staticmethod
    def __run(tmp_path, *args, config=None):
        argv = ['--data-dir', str(tmp_path / 'data'), '--log-dir', str(tmp_path),
                '--backup-probability', '0']
        if config is not None:
            argv += ['--config', str(config)]
        ndcli.main(argv + list(args))

    @staticmethod
    def __exit_code(tmp_path, *args, config=None) -> int:
        with pytest.raises(SystemExit) as e:
            TestCli.__run(tmp_path, *args, config=config)
        return e.value.code

    def test_notes(self, tmp_path, capsys):
        TestCli.__run(tmp_path, 'notes', 'add', 'Shopping List', '--content', '<p>Milk and <b>eggs</b></p>')
        assert (tmp_path / 'data' / 'notes' / 'shopping_list.json').is_file()

        TestCli.__run(tmp_path, 'notes', 'list')
        assert 'Shopping List' in capsys.readouterr().out

        TestCli.__run(tmp_path, 'notes', 'show', 'shopping list')
        out = capsys.readouterr().out
        assert '# Shopping List' in out
        assert 'Milk and **eggs**' in out

        TestCli.__run(tmp_path, 'folders', 'add', 'Home')
        TestCli.__run(tmp_path, 'notes', 'move', 'Shopping List', 'Home')
        TestCli.__run(tmp_path, 'notes', 'list', '--folder', 'General')
        assert 'Shopping List' not in capsys.readouterr().out

        TestCli.__run(tmp_path, 'notes', 'delete', 'Shopping List')
        assert not (tmp_path / 'data' / 'notes' / 'shopping_list.json').exists()

    def test_notes_from_markdown(self, tmp_path):
        source = tmp_path / 'todo.md'
        source.write_text('# Todo\n\n* Write **tests**\n')
        TestCli.__run(tmp_path, 'notes', 'add', 'Todo', '--file', str(source), '--folder', 'Work')

        record = json.loads((tmp_path / 'data' / 'notes' / 'todo.json').read_text())
        assert '<h1>Todo</h1>' in record['content']
        assert '<strong>tests</strong>' in record['content']
        assert record['folder'] == 'Work'

    def test_note_errors(self, tmp_path):
        assert TestCli.__exit_code(tmp_path, 'notes', 'show', 'Nothing') == 18
        assert TestCli.__exit_code(tmp_path, 'notes', 'delete', 'Nothing') == 12
        assert TestCli.__exit_code(tmp_path, 'notes', 'move', 'Nothing', 'Work') == 13
        assert TestCli.__exit_code(tmp_path, 'notes', 'add', '   ') == 11
        assert TestCli.__exit_code(tmp_path, 'notes', 'add', 'Todo', '--file', str(tmp_path / 'missing.md')) == 19

    def test_folders(self, tmp_path, capsys):
        TestCli.__run(tmp_path, 'folders', 'add', 'Work')
        TestCli.__run(tmp_path, 'folders', 'rename', 'Work', 'Office')
        TestCli.__run(tmp_path, 'folders', 'list')
        assert capsys.readouterr().out.split() == ['General', 'Office']

        assert TestCli.__exit_code(tmp_path, 'folders', 'add', 'office') == 14
        assert TestCli.__exit_code(tmp_path, 'folders', 'delete', 'General') == 15
        assert TestCli.__exit_code(tmp_path, 'folders', 'rename', 'General', 'Main') == 16

        TestCli.__run(tmp_path, 'folders', 'delete', 'Office')
        TestCli.__run(tmp_path, 'folders', 'list')
        assert capsys.readouterr().out.split() == ['General']

    def test_events(self, tmp_path, capsys):
        ics = tmp_path / 'trip.ics'
        ics.write_text('BEGIN:VEVENT\nUID:trip\nSUMMARY:Road trip\nDTSTART;VALUE=DATE:20240801\nEND:VEVENT\n')
        TestCli.__run(tmp_path, 'events', 'import', str(ics))
        TestCli.__run(tmp_path, 'events', 'list')
        out = capsys.readouterr().out
        assert 'Road trip' in out
        assert '2024-08-01 (all day)' in out

        assert TestCli.__exit_code(tmp_path, 'events', 'import', str(tmp_path / 'missing.ics')) == 17

    def test_backups(self, tmp_path, capsys):
        TestCli.__run(tmp_path, 'notes', 'add', 'Short lived')
        TestCli.__run(tmp_path, 'notes', 'delete', 'Short lived')
        capsys.readouterr()

        TestCli.__run(tmp_path, 'backups', 'list', 'deleted-note')
        lines = capsys.readouterr().out.split()
        assert len(lines) == 1
        assert lines[0].startswith('deleted-note-')

        TestCli.__run(tmp_path, 'backups', 'list', 'note')
        assert capsys.readouterr().out == ''

    def test_config_file(self, tmp_path):
        config = tmp_path / 'conf.json'
        config.write_text(json.dumps({'backup_probability': 1.0}))
        # Command-line options win over the configuration file
        TestCli.__run(tmp_path, 'notes', 'add', 'Configured', config=config)
        assert not list((tmp_path / 'data' / 'backups').glob('note-*.json'))

    def test_default_config_file(self, tmp_path):
        data_dir = tmp_path / 'data'
        data_dir.mkdir()
        (data_dir / 'conf.json').write_text(json.dumps({'backup_probability': 1.0}))
        ndcli.main(['--data-dir', str(data_dir), '--log-dir', str(tmp_path), 'notes', 'add', 'Configured'])
        assert len(list((data_dir / 'backups').glob('note-*.json'))) == 1

    def test_config_errors(self, tmp_path):
        assert TestCli.__exit_code(tmp_path, 'folders', 'list', config=tmp_path / 'missing.json') == 2

        config = tmp_path / 'conf.json'
        config.write_text('{"backup_probability": ')
        assert TestCli.__exit_code(tmp_path, 'folders', 'list', config=config) == 20

        config.write_text('[]')
        assert TestCli.__exit_code(tmp_path, 'folders', 'list', config=config) == 20

    def test_log_file_closed_after_each_run(self, tmp_path):
        def log_handlers():
            return [h for h in logging.getLogger().handlers if h.get_name() == ndcli.NoteDeskCli.LOG_HANDLER_NAME]

        TestCli.__run(tmp_path, 'folders', 'add', 'Work')
        TestCli.__run(tmp_path, 'folders', 'list')
        assert log_handlers() == []
        assert list(tmp_path.glob('NoteDesk_*.log'))

        assert TestCli.__exit_code(tmp_path, 'folders', 'add', 'work') == 14
        assert log_handlers() == []

    def test_inaccessible_log_dir(self, tmp_path):
        with pytest.raises(SystemExit) as e:
            ndcli.main(['--data-dir', str(tmp_path), '--log-dir', str(tmp_path / 'missing'), 'folders', 'list'])
        assert e.value.code == 1
