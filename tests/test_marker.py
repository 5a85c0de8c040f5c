"""Tests for invisible in-page translation markers."""

import json
from types import SimpleNamespace

from transfilter.services.marker import (
    ENCODED_ONE,
    ENCODED_SEPARATOR,
    ENCODED_ZERO,
    MarkerSession,
    build_entry,
    contains_marker,
    decode_ids,
    encode_id,
)


def _entry(**overrides):
    entry = build_entry('<p>Hello</p>', 'gen', 'found', 5)
    entry.update(overrides)
    return entry


class TestEncoding:

    def test_encode_five(self):
        sep = ENCODED_SEPARATOR * 2
        assert encode_id(5) == f'{sep}{ENCODED_ONE}{ENCODED_ZERO}{ENCODED_ONE}{sep}'

    def test_round_trip(self):
        assert decode_ids(f'<p>Bonjour</p>{encode_id(5)}') == [5]

    def test_only_invisible_characters(self):
        assert set(encode_id(1234)) <= {ENCODED_ONE, ENCODED_ZERO, ENCODED_SEPARATOR}

    def test_several_markers_in_order(self):
        text = f'a{encode_id(2)} b{encode_id(1)}'
        assert decode_ids(text) == [2, 1]

    def test_single_separator_is_not_a_boundary(self):
        text = f'Emoji family{ENCODED_SEPARATOR}{ENCODED_ONE}{ENCODED_SEPARATOR} text'
        assert not contains_marker(text)
        assert decode_ids(text) == []

    def test_contains_marker(self):
        assert contains_marker(f'x{encode_id(3)}')
        assert not contains_marker('')
        assert not contains_marker(None)


class TestBuildEntry:

    def test_without_translation(self):
        entry = build_entry('raw', 'gen', None, 1)
        assert entry['translationid'] == ''
        assert entry['notranslation'] is True
        assert entry['staletranslation'] is False
        assert entry['goodtranslation'] is False

    def test_stale_translation(self):
        translation = SimpleNamespace(id=7, lastgeneratedhash='old')
        entry = build_entry('raw', 'gen', 'found', 1, translation)
        assert entry['translationid'] == 7
        assert entry['staletranslation'] is True
        assert entry['goodtranslation'] is False
        assert entry['notranslation'] is False

    def test_good_translation(self):
        translation = SimpleNamespace(id=7, lastgeneratedhash='gen')
        assert build_entry('raw', 'gen', 'found', 1, translation)['goodtranslation'] is True


class TestMarkerSession:

    def test_ids_start_at_one_and_increase(self):
        session = MarkerSession()
        assert session.register(_entry(rawtext='one')) == 1
        assert session.register(_entry(rawtext='two')) == 2

    def test_identical_entries_share_an_id(self):
        session = MarkerSession()
        assert session.register(_entry()) == session.register(_entry())
        assert len(session) == 1

    def test_context_change_gets_new_id(self):
        session = MarkerSession()
        first = session.register(_entry(contextid=5))
        second = session.register(_entry(contextid=6))
        assert first != second

    def test_sessions_are_isolated(self):
        first, second = MarkerSession(), MarkerSession()
        first.register(_entry(rawtext='a'))
        first.register(_entry(rawtext='b'))
        assert second.register(_entry(rawtext='c')) == 1
        assert second.get(2) is None

    def test_mark_appends_encoded_id(self):
        session = MarkerSession()
        session.register(_entry(rawtext='a'))
        marker = session.mark(_entry(rawtext='b'))
        assert decode_ids(marker) == [2]

    def test_payload_serialization(self):
        session = MarkerSession()
        session.register(_entry())

        payload = json.loads(session.to_json())

        assert list(payload) == ['1']
        assert payload['1']['rawtext'] == '<p>Hello</p>'
        assert payload['1']['inpagetranslationid'] == 1
        assert session.to_json() is session.to_json()

    def test_payload_includes_entries_registered_after_serialization(self):
        session = MarkerSession()
        session.register(_entry(rawtext='a'))
        first = session.to_json()

        session.register(_entry(rawtext='a'))
        assert session.to_json() is first

        session.register(_entry(rawtext='b'))
        payload = json.loads(session.to_json())
        assert list(payload) == ['1', '2']
        assert payload['2']['rawtext'] == 'b'
