import json

import pytest

from clipshelf.models.clipboard_entry import ClipboardEntry, dump_entries
from clipshelf.services.history_service import HistoryStore
from clipshelf.services.persistence_service import PersistenceService
from clipshelf.services.settings_service import HISTORY_KEY, Settings


class CountingSettings(Settings):

    def __init__(self, store):
        super().__init__(store)
        self.writes = 0
        self.fail_writes = False

    @Settings.history_blob.setter
    def history_blob(self, blob):
        if self.fail_writes:
            raise OSError("disk full")
        self.writes += 1
        Settings.history_blob.fset(self, blob)


@pytest.fixture
def counting_settings(store):
    return CountingSettings(store)


@pytest.fixture
def gateway(counting_settings, scheduler):
    history = HistoryStore(counting_settings)
    service = PersistenceService(history, counting_settings, scheduler, delay=1.0, max_wait=5.0)
    service.attach()
    return service


def saved_contents(store):
    return [item["content"] for item in json.loads(store.get(HISTORY_KEY))]


def test_burst_of_mutations_collapses_into_one_write(gateway, counting_settings, scheduler, store):
    history = gateway._history
    for i in range(5):
        history.insert(str(i))
        scheduler.advance(0.5)

    assert counting_settings.writes == 0

    scheduler.advance(1.0)
    assert counting_settings.writes == 1
    assert saved_contents(store) == ["4", "3", "2", "1", "0"]


def test_each_mutation_restarts_the_delay(gateway, counting_settings, scheduler):
    history = gateway._history
    history.insert("a")
    scheduler.advance(0.9)
    history.insert("b")
    scheduler.advance(0.9)

    assert counting_settings.writes == 0
    scheduler.advance(0.2)
    assert counting_settings.writes == 1
    assert not gateway.save_pending


def test_continuous_mutations_cannot_starve_the_write(gateway, counting_settings, scheduler):
    history = gateway._history
    for i in range(60):
        history.insert(str(i))
        scheduler.advance(0.5)

    # One write per max_wait window at least.
    assert counting_settings.writes >= 5


def test_delete_schedules_a_save(gateway, counting_settings, scheduler, store):
    history = gateway._history
    entry = history.insert("a")
    history.insert("b")
    scheduler.advance(1.0)

    history.delete(entry.id)
    scheduler.advance(1.0)

    assert counting_settings.writes == 2
    assert saved_contents(store) == ["b"]


def test_serialized_format_is_id_and_content(gateway, scheduler, store):
    entry = gateway._history.insert("hello")
    scheduler.advance(1.0)

    assert json.loads(store.get(HISTORY_KEY)) == [{"id": entry.id, "content": "hello"}]


def test_roundtrip_preserves_order(store, scheduler, counting_settings):
    first = HistoryStore(counting_settings)
    writer = PersistenceService(first, counting_settings, scheduler)
    writer.attach()
    for text in ("one", "two", "three"):
        first.insert(text)
    writer.flush()

    second = HistoryStore(counting_settings)
    loaded = PersistenceService(second, counting_settings, scheduler).load()

    assert [e.content for e in loaded] == ["three", "two", "one"]
    assert [e.id for e in loaded] == [e.id for e in first.entries]


def test_load_trims_to_lowered_max_items_and_persists(store, counting_settings, scheduler):
    entries = [ClipboardEntry(content=str(i)) for i in range(10)]
    store.set(HISTORY_KEY, dump_entries(entries))
    counting_settings.max_items = 3

    history = HistoryStore(counting_settings)
    PersistenceService(history, counting_settings, scheduler).load()

    assert [e.content for e in history.entries] == ["0", "1", "2"]
    assert counting_settings.writes == 1
    assert saved_contents(store) == ["0", "1", "2"]


@pytest.mark.parametrize("blob", ["not json", "{}", '[{"content": 5}]', "[1, 2]"])
def test_corrupt_history_loads_as_empty(store, counting_settings, scheduler, blob):
    store.set(HISTORY_KEY, blob)
    history = HistoryStore(counting_settings)

    assert PersistenceService(history, counting_settings, scheduler).load() == []
    assert counting_settings.writes == 0


def test_missing_history_is_a_cold_start(counting_settings, scheduler):
    history = HistoryStore(counting_settings)

    assert PersistenceService(history, counting_settings, scheduler).load() == []
    assert counting_settings.writes == 0


def test_write_failure_is_swallowed_and_retried_on_next_mutation(
        gateway, counting_settings, scheduler, store):
    history = gateway._history
    counting_settings.fail_writes = True
    history.insert("a")
    scheduler.advance(1.0)
    assert store.get(HISTORY_KEY) is None

    counting_settings.fail_writes = False
    history.insert("b")
    scheduler.advance(1.0)
    assert saved_contents(store) == ["b", "a"]


def test_close_flushes_pending_save(gateway, counting_settings, store):
    gateway._history.insert("a")
    assert gateway.save_pending

    gateway.close()

    assert counting_settings.writes == 1
    assert saved_contents(store) == ["a"]
    gateway._history.insert("b")
    assert not gateway.save_pending


def test_flush_without_pending_save_does_nothing(gateway, counting_settings):
    assert gateway.flush() is False
    assert counting_settings.writes == 0


def test_history_written_elsewhere_replaces_the_local_one(gateway, counting_settings, scheduler, store):
    history = gateway._history
    history.insert("local")
    scheduler.advance(1.0)

    external = [ClipboardEntry(content="x"), ClipboardEntry(content="y")]
    store.set(HISTORY_KEY, dump_entries(external))
    counting_settings.refresh()

    assert history.entries == external
    assert not gateway.save_pending
    assert counting_settings.writes == 1


def test_own_saves_are_not_reloaded(gateway, counting_settings, scheduler):
    history = gateway._history
    history.insert("a")
    scheduler.advance(1.0)

    assert counting_settings.refresh() == []
    assert [e.content for e in history.entries] == ["a"]


def test_unreadable_external_history_is_ignored(gateway, counting_settings, scheduler, store):
    history = gateway._history
    history.insert("a")
    scheduler.advance(1.0)

    store.set(HISTORY_KEY, "garbage")
    counting_settings.refresh()

    assert [e.content for e in history.entries] == ["a"]


def test_close_stops_following_external_changes(gateway, counting_settings, store):
    gateway.close()
    store.set(HISTORY_KEY, dump_entries([ClipboardEntry(content="x")]))
    counting_settings.refresh()

    assert gateway._history.entries == []
