from datetime import date
from decimal import Decimal

import pytest

from weeklog.errors import NotFound, ValidationError
from weeklog.models import LogEntry
from weeklog.store import LogStore


@pytest.mark.parametrize('hours', ['0.25', '1', '3.0', '7.75', '12.5'])
def test_create_keeps_valid_hours(store, hours):
    entry = store.create('2024-06-03', 'PRJ-1', 'design', hours)

    assert entry in store.list()
    assert entry.hours == Decimal(hours)


def test_create_assigns_identity_and_prepends(store, monday):
    first = store.create(monday, 'PRJ-1', '', '1')
    second = store.create(monday, 'PRJ-2', '', '1')

    assert first.id != second.id
    assert second.created_at > first.created_at
    assert store.list() == (second, first)


def test_created_at_strictly_increases_on_a_stalled_clock(monday):
    store = LogStore(clock=lambda: 1000)
    a = store.create(monday, 'A', '', 1)
    b = store.create(monday, 'B', '', 1)
    assert b.created_at > a.created_at


def test_created_at_stays_ahead_of_loaded_entries(monday):
    loaded = LogEntry('old', 5000, monday, 'A', '', Decimal(1))
    store = LogStore([loaded], clock=lambda: 1000)
    assert store.create(monday, 'B', '', 1).created_at > 5000


@pytest.mark.parametrize('hours', [0, '-1', '0.1', '1.3', 'abc', None])
def test_create_rejects_invalid_hours_without_mutating(store, hours):
    notified = []
    store.subscribe(notified.append)

    with pytest.raises(ValidationError):
        store.create('2024-06-03', 'PRJ-1', '', hours)

    assert store.list() == ()
    assert notified == []


@pytest.mark.parametrize('date_value, code', [(None, 'PRJ-1'), ('2024-06-03', ''), ('2024-06-03', None)])
def test_create_requires_date_and_project(store, date_value, code):
    with pytest.raises(ValidationError):
        store.create(date_value, code, '', 1)


def test_create_treats_missing_description_as_empty(store, monday):
    assert store.create(monday, 'PRJ-1', None, 1).description == ''


def test_update_merges_fields_and_keeps_identity(store, monday):
    entry = store.create(monday, 'PRJ-1', 'design', '3')
    entry_id, created_at = entry.id, entry.created_at

    updated = store.update(entry_id, date='2024-06-04', project_code='PRJ-2', hours='2.5')

    assert updated is entry
    assert updated.id == entry_id
    assert updated.created_at == created_at
    assert updated.date == date(2024, 6, 4)
    assert updated.project_code == 'PRJ-2'
    assert updated.description == 'design'
    assert updated.hours == Decimal('2.5')


def test_update_with_negative_hours_leaves_entry_unchanged(store, monday):
    entry = store.create(monday, 'PRJ-1', 'design', '3.0')

    with pytest.raises(ValidationError):
        store.update(entry.id, hours=-1)

    assert store.get(entry.id).hours == Decimal('3.0')


def test_update_is_all_or_nothing(store, monday):
    entry = store.create(monday, 'PRJ-1', 'design', '3')

    with pytest.raises(ValidationError):
        store.update(entry.id, project_code='PRJ-9', hours='0.3')

    assert entry.project_code == 'PRJ-1'


def test_update_rejects_unknown_fields(store, monday):
    entry = store.create(monday, 'PRJ-1', '', 1)
    with pytest.raises(ValidationError):
        store.update(entry.id, id='other')


def test_update_missing_entry_raises_not_found(store):
    with pytest.raises(NotFound):
        store.update('missing', hours=1)


def test_delete_is_idempotent(store, monday):
    keep = store.create(monday, 'PRJ-1', '', 1)
    gone = store.create(monday, 'PRJ-2', '', 1)

    assert store.delete(gone.id) is True
    after_first = store.list()
    assert store.delete(gone.id) is False
    assert store.list() == after_first == (keep,)


def test_mutations_notify_listeners(store, monday):
    calls = []
    store.subscribe(lambda s: calls.append(len(s)))

    entry = store.create(monday, 'PRJ-1', '', 1)
    store.update(entry.id, description='x')
    store.delete(entry.id)
    store.delete(entry.id)

    assert calls == [1, 1, 0]


def test_duplicate_ids_are_rejected_on_load(monday):
    entry = LogEntry('same', 1, monday, 'A', '', Decimal(1))
    twin = LogEntry('same', 2, monday, 'B', '', Decimal(1))
    with pytest.raises(ValidationError):
        LogStore([entry, twin])


def test_duplicate_project_and_date_are_allowed_in_the_store(store, monday):
    store.create(monday, 'PRJ-1', '', 1)
    store.create(monday, 'PRJ-1', '', 2)
    assert len(store) == 2


def test_project_codes_are_distinct_and_sorted(store, monday):
    for code in ('b', 'a', 'b'):
        store.create(monday, code, '', 1)
    assert store.project_codes() == ['a', 'b']
