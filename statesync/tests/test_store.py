import json
import threading

from statesync.checksum import cart_checksum, orders_checksum
from statesync.orchestrator import SyncOrchestrator
from statesync.store import LocalStateStore
from statesync.timestamps import EPOCH, parse_timestamp
from statesync.types import SyncAction, SyncEntity

from .fakes import EARLIER, LATER, FakeApi, make_snapshot


class TestEntityState:

    def test_never_written_is_epoch(self, store):
        state = store.get_entity_state(SyncEntity.CART)

        assert state.payload == []
        assert state.timestamp == EPOCH
        assert state.checksum == ''
        assert state.is_empty

    def test_profile_never_written_is_none(self, store):
        assert store.get_entity_state('profile').payload is None

    def test_save_computes_checksum(self, store, cart_lines):
        saved = store.save_entity_state(SyncEntity.CART, cart_lines, LATER)

        state = store.get_entity_state(SyncEntity.CART)
        assert state.payload == cart_lines
        assert state.timestamp == LATER
        assert state.checksum == saved.checksum == cart_checksum(cart_lines)

    def test_saved_empty_list_keeps_checksum(self, store):
        state = store.save_entity_state(SyncEntity.ORDERS, [], EPOCH)

        assert state.checksum == orders_checksum([])
        assert store.get_entity_state(SyncEntity.ORDERS).checksum == orders_checksum([])

    def test_profile_has_no_checksum(self, store):
        store.save_entity_state(SyncEntity.PROFILE, {'full_name': 'Ann'}, LATER)

        state = store.get_entity_state(SyncEntity.PROFILE)
        assert state.payload == {'full_name': 'Ann'}
        assert state.checksum == ''

    def test_local_writes_advance_timestamp(self, store, cart_lines):
        store.save_entity_state(SyncEntity.CART, cart_lines, '2099-01-01T00:00:00.000Z')

        state = store.save_entity_state(SyncEntity.CART, cart_lines[:1])

        assert state.timestamp == '2099-01-01T00:00:00.001Z'

    def test_first_local_write_uses_clock(self, store, cart_lines):
        state = store.save_entity_state(SyncEntity.CART, cart_lines)

        assert parse_timestamp(state.timestamp) > parse_timestamp(EPOCH)

    def test_clear_entity_resets_to_epoch(self, store, cart_lines):
        store.save_entity_state(SyncEntity.CART, cart_lines, LATER)

        store.clear_entity_state(SyncEntity.CART)

        state = store.get_entity_state(SyncEntity.CART)
        assert state.payload == []
        assert state.timestamp == EPOCH
        assert state.checksum == ''


class TestPersistence:

    def test_survives_restart(self, tmp_path, cart_lines):
        path = str(tmp_path / 'prefs.json')
        LocalStateStore(path).save_entity_state(SyncEntity.CART, cart_lines, LATER)

        state = LocalStateStore(path).get_entity_state(SyncEntity.CART)

        assert state.payload == cart_lines
        assert state.timestamp == LATER

    def test_key_layout(self, tmp_path, cart_lines):
        path = tmp_path / 'prefs.json'
        LocalStateStore(str(path)).save_entity_state(SyncEntity.CART, cart_lines, LATER)

        prefs = json.loads(path.read_text())

        assert set(prefs) == {'cart_items', 'cart_timestamp', 'cart_checksum'}
        assert json.loads(prefs['cart_items']) == cart_lines

    def test_unreadable_file_starts_empty(self, tmp_path):
        path = tmp_path / 'prefs.json'
        path.write_text('{not json')

        assert LocalStateStore(str(path)).get_entity_state(SyncEntity.CART).timestamp == EPOCH

    def test_corrupt_entry_reads_as_never_synced(self, tmp_path):
        path = tmp_path / 'prefs.json'
        path.write_text(json.dumps({
            'cart_items': '{"product_id": "P1"}',
            'cart_timestamp': LATER,
            'orders_items': '[]',
            'orders_timestamp': 'last tuesday',
        }))
        store = LocalStateStore(str(path))

        assert store.get_entity_state(SyncEntity.CART).is_empty
        assert store.get_entity_state(SyncEntity.ORDERS).timestamp == EPOCH

    def test_memory_only_store(self, cart_lines):
        store = LocalStateStore()

        store.save_entity_state(SyncEntity.CART, cart_lines, LATER)

        assert store.get_entity_state(SyncEntity.CART).payload == cart_lines

    def test_clear_all(self, tmp_path, cart_lines):
        path = str(tmp_path / 'prefs.json')
        store = LocalStateStore(path)
        store.save_entity_state(SyncEntity.CART, cart_lines, LATER)
        store.save_entity_state(SyncEntity.PROFILE, {'full_name': 'Ann'}, LATER)

        store.clear_all()

        assert all(state.is_empty for state in LocalStateStore(path).snapshot().values())


class TestListeners:

    def test_notified_per_entity(self, store, cart_lines):
        seen = []
        store.add_listener(seen.append)

        store.save_entity_state(SyncEntity.CART, cart_lines, LATER)
        store.clear_all()

        assert seen == [SyncEntity.CART, SyncEntity.CART, SyncEntity.ORDERS, SyncEntity.PROFILE]

    def test_failing_listener_does_not_break_write(self, store, cart_lines):
        def explode(entity):
            raise RuntimeError('boom')

        seen = []
        store.add_listener(explode)
        store.add_listener(seen.append)

        store.save_entity_state(SyncEntity.CART, cart_lines, LATER)

        assert seen == [SyncEntity.CART]
        assert store.get_entity_state(SyncEntity.CART).payload == cart_lines

    def test_removed_listener_not_called(self, store, cart_lines):
        seen = []
        store.add_listener(seen.append)
        store.remove_listener(seen.append)

        store.save_entity_state(SyncEntity.CART, cart_lines, LATER)

        assert seen == []


class PausingApi(FakeApi):
    """Holds every push until ``release`` is set."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.pushing = threading.Event()
        self.release = threading.Event()

    def resolve(self, entity, local_state, local_timestamp):
        self.pushing.set()
        self.release.wait(5)
        return super().resolve(entity, local_state, local_timestamp)


class TestConcurrentWrites:

    def test_ui_save_during_sync_push_lands_after_it(self, store, cart_lines):
        """A save racing a sync cycle waits for the cycle's write, then wins."""
        store.save_entity_state(SyncEntity.CART, cart_lines, LATER)
        api = PausingApi(make_snapshot(cart=[], cart_ts=EARLIER), push_timestamp='2099-01-01T00:00:00.000Z')
        edited = [{'product_id': 'P3', 'quantity': 4, 'price': 1.25}]
        summaries = []
        saved = []

        sync = threading.Thread(
            target=lambda: summaries.append(SyncOrchestrator(api, store).perform_full_sync())
        )
        ui = threading.Thread(
            target=lambda: saved.append(store.save_entity_state(SyncEntity.CART, edited))
        )

        sync.start()
        assert api.pushing.wait(5)
        ui.start()

        # The cycle holds the store lock for the whole push
        ui.join(0.2)
        assert ui.is_alive()
        assert saved == []

        api.release.set()
        sync.join(5)
        ui.join(5)

        assert summaries[0].actions[SyncEntity.CART] is SyncAction.LOCAL_WINS
        state = store.get_entity_state(SyncEntity.CART)
        assert state.payload == edited
        assert state.timestamp == '2099-01-01T00:00:00.001Z'
        assert state.checksum == cart_checksum(edited)
        assert saved[0] == state

    def test_concurrent_saves_are_linearizable(self, store, cart_lines):
        """Each save reads the stamp left by the previous one."""
        store.save_entity_state(SyncEntity.CART, cart_lines, '2099-01-01T00:00:00.000Z')

        def save_in_thread(quantity):
            store.save_entity_state(SyncEntity.CART, [{'product_id': 'P1', 'quantity': quantity, 'price': 10.0}])

        threads = [
            threading.Thread(target=save_in_thread, args=(quantity,))
            for quantity in range(1, 6)
        ]

        for thread in threads:
            thread.start()

        for thread in threads:
            thread.join()

        state = store.get_entity_state(SyncEntity.CART)
        assert state.timestamp == '2099-01-01T00:00:00.005Z'
        assert state.checksum == cart_checksum(state.payload)
