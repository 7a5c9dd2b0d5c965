import pytest

from statesync.checksum import cart_checksum
from statesync.resolution import ConflictResolver, decide_action
from statesync.timestamps import EPOCH
from statesync.types import EntityState, SyncAction, SyncEntity

from .fakes import EARLIER, LATER, FakeApi, server_state


# =============================================================================
# decide_action
# =============================================================================

class TestDecideAction:

    def test_local_newer_wins(self):
        action = decide_action('cart', local_timestamp=LATER, server_timestamp=EARLIER)

        assert action is SyncAction.LOCAL_WINS

    def test_server_newer_wins(self):
        action = decide_action('cart', local_timestamp=EARLIER, server_timestamp=LATER)

        assert action is SyncAction.SERVER_WINS

    def test_equal_timestamps_no_conflict(self):
        action = decide_action(
            'profile', local_timestamp=LATER, server_timestamp='2025-01-30T10:00:05Z'
        )

        assert action is SyncAction.NO_CONFLICT

    def test_equal_checksums_short_circuit(self):
        action = decide_action(
            'cart',
            local_timestamp=LATER,
            server_timestamp=EARLIER,
            local_checksum='abc',
            server_checksum='abc',
        )

        assert action is SyncAction.NO_CONFLICT

    def test_empty_checksums_fall_back_to_timestamps(self):
        action = decide_action(
            'cart', local_timestamp=LATER, server_timestamp=EARLIER,
            local_checksum='', server_checksum='',
        )

        assert action is SyncAction.LOCAL_WINS

    @pytest.mark.parametrize('local_ts,server_ts', [(LATER, EARLIER), (EARLIER, LATER), (LATER, LATER)])
    def test_changed_orders_always_server_wins(self, local_ts, server_ts):
        action = decide_action(
            SyncEntity.ORDERS,
            local_timestamp=local_ts,
            server_timestamp=server_ts,
            local_checksum='mine',
            server_checksum='theirs',
        )

        assert action is SyncAction.SERVER_WINS

    def test_orders_without_checksums_server_wins(self):
        action = decide_action(SyncEntity.ORDERS, local_timestamp=LATER, server_timestamp=LATER)

        assert action is SyncAction.SERVER_WINS

    def test_unchanged_orders_no_conflict(self):
        action = decide_action(
            SyncEntity.ORDERS,
            local_timestamp=EARLIER,
            server_timestamp=LATER,
            local_checksum='same',
            server_checksum='same',
        )

        assert action is SyncAction.NO_CONFLICT

    def test_never_synced_local_loses_to_server_data(self):
        action = decide_action('cart', local_timestamp=EPOCH, server_timestamp=EARLIER)

        assert action is SyncAction.SERVER_WINS

    def test_invalid_timestamp(self):
        with pytest.raises(ValueError):
            decide_action('cart', local_timestamp='soon', server_timestamp=EARLIER)


# =============================================================================
# ConflictResolver
# =============================================================================

class TestConflictResolver:

    def test_server_wins_returns_server_payload(self, cart_lines):
        api = FakeApi()
        local = EntityState(SyncEntity.CART, [], EARLIER, cart_checksum([]))
        server = server_state(SyncEntity.CART, cart_lines, LATER)

        resolution = ConflictResolver(api).resolve(local, server)

        assert resolution.action is SyncAction.SERVER_WINS
        assert resolution.resolved_state == cart_lines
        assert resolution.timestamp == LATER
        assert api.pushes == []

    def test_local_wins_pushes_wire_state(self, cart_lines):
        api = FakeApi(push_timestamp='2025-01-30T10:00:06.000Z')
        local = EntityState(SyncEntity.CART, cart_lines, LATER, cart_checksum(cart_lines))
        server = server_state(SyncEntity.CART, [], EARLIER)

        resolution = ConflictResolver(api).resolve(local, server)

        assert api.pushes == [(SyncEntity.CART, {'items': cart_lines}, LATER)]
        assert resolution.action is SyncAction.LOCAL_WINS
        assert resolution.timestamp == '2025-01-30T10:00:06.000Z'

    def test_profile_pushes_record(self):
        api = FakeApi()
        profile = {'full_name': 'Ann Smith'}
        local = EntityState(SyncEntity.PROFILE, profile, LATER)
        server = server_state(SyncEntity.PROFILE, None, EPOCH)

        ConflictResolver(api).resolve(local, server)

        assert api.pushes == [(SyncEntity.PROFILE, profile, LATER)]

    def test_no_conflict_keeps_newest_stamp(self, cart_lines):
        checksum = cart_checksum(cart_lines)
        local = EntityState(SyncEntity.CART, cart_lines, LATER, checksum)
        server = EntityState(SyncEntity.CART, cart_lines, EARLIER, checksum)

        resolution = ConflictResolver(FakeApi()).resolve(local, server)

        assert resolution.action is SyncAction.NO_CONFLICT
        assert resolution.resolved_state == cart_lines
        assert resolution.timestamp == LATER

    def test_push_error_propagates(self, cart_lines, server_error):
        api = FakeApi(push_errors={SyncEntity.CART: server_error})
        local = EntityState(SyncEntity.CART, cart_lines, LATER, cart_checksum(cart_lines))

        with pytest.raises(type(server_error)):
            ConflictResolver(api).resolve(local, server_state(SyncEntity.CART, [], EARLIER))
