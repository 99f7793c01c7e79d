import logging
from types import SimpleNamespace

import pytest

from berrybatch import group_by_key, match_by_key, path_accessor, BatchConfigurationError
from berrybatch.core.mappers import as_accessor


def test_grouping_keeps_fetch_order_and_fills_missing_keys():
    records = [{'fk': 1, 'v': 'a'}, {'fk': 2, 'v': 'b'}, {'fk': 1, 'v': 'c'}]
    groups = group_by_key(records, 'fk', [1, 2, 3])
    assert [[r['v'] for r in g] for g in groups] == [['a', 'c'], ['b'], []]


def test_grouping_returns_independent_lists():
    records = [{'fk': 1, 'v': 'a'}]
    first, second = group_by_key(records, 'fk', [1, 1])
    first.append('mutated')
    assert second == [{'fk': 1, 'v': 'a'}]


def test_grouping_skips_unreadable_records(caplog):
    records = [
        {'fk': 1, 'v': 'a'},
        {'v': 'no-fk'},
        {'fk': None, 'v': 'null-fk'},
        ValueError('row failed'),
        {'fk': 1, 'v': 'b'},
    ]
    with caplog.at_level(logging.WARNING, logger='berrybatch'):
        groups = group_by_key(records, 'fk', [1])
    assert [r['v'] for r in groups[0]] == ['a', 'b']
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 3
    assert 'row failed' in caplog.text


def test_dotted_paths_read_objects_and_mappings():
    rec_obj = SimpleNamespace(author=SimpleNamespace(id=7))
    rec_map = {'author': {'id': 7}}
    get = path_accessor('author.id')
    assert get(rec_obj) == 7
    assert get(rec_map) == 7
    assert group_by_key([rec_obj, rec_map], 'author.id', [7]) == [[rec_obj, rec_map]]


def test_callable_selectors_are_used_as_is():
    records = [SimpleNamespace(parent=3), SimpleNamespace(parent=4)]
    groups = group_by_key(records, lambda r: r.parent, [4, 3])
    assert groups == [[records[1]], [records[0]]]


def test_invalid_selectors_are_configuration_errors():
    with pytest.raises(BatchConfigurationError):
        as_accessor(42)
    with pytest.raises(BatchConfigurationError):
        path_accessor('')


def test_singleton_last_write_wins():
    records = [{'id': 1, 'v': 'x'}, {'id': 1, 'v': 'y'}]
    assert match_by_key(records, 'id', [1]) == [{'id': 1, 'v': 'y'}]


def test_singleton_returns_none_for_missing_keys_and_skips_errors():
    records = [{'id': 'a'}, RuntimeError('bad'), {'id': 'c'}]
    assert match_by_key(records, 'id', ['a', 'b', 'c']) == [{'id': 'a'}, None, {'id': 'c'}]


def test_singleton_matches_equal_opaque_keys():
    from tests.test_identity import OpaqueId

    rec = SimpleNamespace(key=OpaqueId('f00'))
    assert match_by_key([rec], 'key', [OpaqueId('f00'), OpaqueId('bar')]) == [rec, None]
