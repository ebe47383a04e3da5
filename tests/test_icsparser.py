import pathlib
from pathlib import Path

import pytest

from notedesk.events.model.event import CalendarEvent
from notedesk.events.model.icsparser import IcsParser


def _block(*lines: str) -> str:
    return '\n'.join(('BEGIN:VCALENDAR', 'BEGIN:VEVENT') + lines + ('END:VEVENT', 'END:VCALENDAR'))


class TestIcsParser:
    RES_DIR = Path()
    SAMPLE_ICS = ''

    @classmethod
    def setup_class(cls):
        TestIcsParser.RES_DIR = pathlib.Path(__file__).parent.resolve() / 'resources'
        with open(TestIcsParser.RES_DIR / 'sample.ics', newline='') as fp:
            TestIcsParser.SAMPLE_ICS = fp.read()

    def test_unfold(self):
        lines = IcsParser.unfold("SUMMARY:Hello\r\n  World\r\n\t again\rUID:1  \n")
        assert lines == ['SUMMARY:Hello World again', 'UID:1', '']

        # A continuation with nothing before it is kept as its own line
        assert IcsParser.unfold(" orphan") == ['orphan']

    def test_parse_property(self):
        key, prop = IcsParser.parse_property('dtstart;VALUE=DATE:20240101')
        assert key == 'DTSTART'
        assert prop.params == 'dtstart;VALUE=DATE'
        assert prop.value == '20240101'

        key, prop = IcsParser.parse_property('DESCRIPTION:Meet at 10:30')
        assert key == 'DESCRIPTION'
        assert prop.value == 'Meet at 10:30'

        assert IcsParser.parse_property('NO COLON HERE') is None
        assert IcsParser.parse_property(':no key') is None

    @pytest.mark.parametrize(
        ("value", "params", "expected"),
        [
            ("20240101", "DTSTART", ("2024-01-01", True)),
            ("20240101", "DTSTART;VALUE=DATE", ("2024-01-01", True)),
            ("20240615T143000Z", "DTSTART", ("2024-06-15T14:30:00Z", False)),
            ("20240615T143000", "DTSTART;TZID=Europe/Malta", ("2024-06-15T14:30:00", False)),
        ],
    )
    def test_parse_datetime(self, value, params, expected):
        assert IcsParser.parse_datetime(value, params) == expected

    @pytest.mark.parametrize(
        ("value", "params"),
        [
            ("", "DTSTART"),
            ("2024-01-01", "DTSTART"),
            ("20240615T1430Z", "DTSTART"),
            ("20240615T143000", "DTSTART;VALUE=DATE"),
            ("20240615T143000z", "DTSTART"),
            ("20240615T143000", "DTSTART;VALUE=DATE-TIME"),
        ],
    )
    def test_parse_datetime_rejects_invalid(self, value, params):
        assert IcsParser.parse_datetime(value, params) is None

    def test_parse_all_day_event(self):
        events = IcsParser().parse(_block('DTSTART:20240101', 'SUMMARY:Test'))
        assert len(events) == 1
        event = events[0]
        assert event.title == 'Test'
        assert event.start == '2024-01-01'
        assert event.all_day is True
        assert event.end is None
        assert 'end' not in event.to_dict()

    def test_parse_folded_summary(self):
        events = IcsParser().parse(_block('SUMMARY:Hello', '  World', 'DTSTART:20240101'))
        assert events[0].title == 'Hello World'

    def test_parse_drops_event_without_start(self):
        assert IcsParser().parse(_block('SUMMARY:Test')) == []
        assert IcsParser().parse(_block('SUMMARY:Test', 'DTSTART:tomorrow')) == []

    def test_parse_date_time_marker_treated_as_date(self):
        events = IcsParser().parse(_block('DTSTART;VALUE=DATE-TIME:20240615T143000', 'SUMMARY:X'))
        assert events == []

        events = IcsParser().parse(_block('DTSTART;VALUE=DATE-TIME:20240615', 'SUMMARY:X'))
        assert events[0].start == '2024-06-15'
        assert events[0].all_day is True

    def test_parse_end_failure_keeps_event(self):
        events = IcsParser().parse(_block('DTSTART:20240615T143000Z', 'DTEND:later'))
        assert len(events) == 1
        assert events[0].end is None
        assert events[0].all_day is False

    def test_parse_defaults(self):
        ids = iter(['generated-1', 'generated-2'])
        parser = IcsParser(uid_factory=lambda: next(ids))
        events = parser.parse(_block('DTSTART:20240101') + '\n' + _block('DTSTART:20240102', 'SUMMARY:'))
        assert [e.uid for e in events] == ['generated-1', 'generated-2']
        assert [e.title for e in events] == [CalendarEvent.DEFAULT_TITLE, CalendarEvent.DEFAULT_TITLE]

    def test_generated_ids_are_unique(self):
        content = '\n'.join(_block('DTSTART:20240101') for _ in range(50))
        events = IcsParser().parse(content)
        assert len(events) == 50
        assert len(set(e.uid for e in events)) == 50
        assert all(e.uid.startswith('imported-') for e in events)

    def test_title_truncated(self):
        events = IcsParser().parse(_block('DTSTART:20240101', 'SUMMARY:' + 'x' * 300))
        assert len(events[0].title) == CalendarEvent.MAX_TITLE_LENGTH

    def test_last_property_wins(self):
        events = IcsParser().parse(_block('DTSTART:20240101', 'SUMMARY:First', 'summary:Second', 'UID:a', 'UID:b'))
        assert events[0].title == 'Second'
        assert events[0].uid == 'b'

    def test_unbalanced_blocks(self):
        content = '\n'.join([
            'END:VEVENT',
            'SUMMARY:Outside',
            'BEGIN:VEVENT',
            'DTSTART:20240101',
            'SUMMARY:Discarded',
            'BEGIN:VEVENT',
            'DTSTART:20240202',
            'SUMMARY:Kept',
            'END:VEVENT',
            'BEGIN:VEVENT',
            'DTSTART:20240303',
            'SUMMARY:Never closed',
        ])
        events = IcsParser().parse(content)
        assert [e.title for e in events] == ['Kept']
        assert events[0].start == '2024-02-02'

    def test_parse_invalid_content(self):
        # noinspection PyTypeChecker
        assert IcsParser().parse(None) == []
        assert IcsParser().parse('') == []
        assert IcsParser().parse('not a calendar at all') == []

    def test_parse_sample_file(self):
        events = IcsParser().parse(TestIcsParser.SAMPLE_ICS)
        assert len(events) == 3

        new_year, standup, untitled = events
        assert new_year.to_dict() == {
            'id': 'new-year@example.com',
            'title': 'New Year',
            'start': '2024-01-01',
            'end': '2024-01-02',
            'allDay': True,
        }
        assert standup.uid == 'standup@example.com'
        assert standup.title == 'Team stand-up with a very long description of the agenda'
        assert standup.start == '2024-06-15T14:30:00Z'
        assert standup.end == '2024-06-15T15:00:00Z'
        assert standup.all_day is False

        assert untitled.title == CalendarEvent.DEFAULT_TITLE
        assert untitled.start == '2024-07-01T09:00:00'
        assert untitled.end is None
