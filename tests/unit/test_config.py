"""Tests for the configuration store."""

import threading

from chatrelay.config import ConfigStore
from chatrelay.models import Configuration


class TestConfigStore:
    def test_starts_with_defaults(self):
        assert ConfigStore().get() == Configuration()

    def test_starts_with_given_value(self):
        initial = Configuration(provider_id="openai", model="gpt-4o")
        assert ConfigStore(initial).get() is initial

    def test_get_is_idempotent(self):
        store = ConfigStore()
        assert store.get() == store.get()

    def test_set_replaces_value(self):
        store = ConfigStore()
        new = Configuration(model="other", max_tokens=10)
        store.set(new)
        assert store.get() == new

    def test_update_changes_only_transformed_fields(self):
        store = ConfigStore()
        before = store.get()

        result = store.update(lambda config: config.with_changes(temperature=1.5))

        after = store.get()
        assert result == after
        assert after.temperature == 1.5
        assert after.provider_id == before.provider_id
        assert after.model == before.model
        assert after.max_tokens == before.max_tokens

    def test_no_validation(self):
        """The store accepts whatever it is given."""
        store = ConfigStore()
        store.set(Configuration(provider_id="nonexistent", temperature=9.0))
        assert store.get().provider_id == "nonexistent"

    def test_concurrent_updates_are_not_lost(self):
        store = ConfigStore(Configuration(max_tokens=0))
        threads_count = 8
        increments = 250

        def worker():
            for _ in range(increments):
                store.update(
                    lambda config: config.with_changes(max_tokens=config.max_tokens + 1)
                )

        threads = [threading.Thread(target=worker) for _ in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.get().max_tokens == threads_count * increments

    def test_transform_may_read_the_store(self):
        """A transform that calls get() must not block its own update."""
        store = ConfigStore()
        done = threading.Event()

        def worker():
            store.update(lambda config: store.get().with_changes(temperature=1.5))
            done.set()

        threading.Thread(target=worker, daemon=True).start()

        assert done.wait(2.0), "update() blocked when the transform read the store"
        assert store.get().temperature == 1.5
