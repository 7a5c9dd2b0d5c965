"""
Data model of the sync protocol.

SyncEntity        which sub-state an operation targets (cart, orders, profile)
SyncAction        outcome of one resolution
EntityState       payload + timestamp + checksum of one entity on one side
SyncSnapshot      server view of all three entities in one round trip
ConflictResolution  per-entity decision of one cycle (never persisted)
SyncSummary       aggregate result of one full sync pass
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .timestamps import EPOCH, now_iso


class SyncEntity(str, Enum):
    CART = 'cart'
    ORDERS = 'orders'
    PROFILE = 'profile'

    def __str__(self):
        return self.value

    @property
    def has_checksum(self) -> bool:
        return self is not SyncEntity.PROFILE


ALL_ENTITIES = (SyncEntity.CART, SyncEntity.ORDERS, SyncEntity.PROFILE)


class SyncAction(str, Enum):
    LOCAL_WINS = 'local_wins'
    SERVER_WINS = 'server_wins'
    NO_CONFLICT = 'no_conflict'

    def __str__(self):
        return self.value


@dataclass
class EntityState:
    """
    One side's copy of an entity.

    ``payload`` is the item list for cart/orders and the profile record
    (or None) for profile. ``checksum`` is empty for profile.
    """

    entity: SyncEntity
    payload: Any
    timestamp: str = EPOCH
    checksum: str = ''

    @classmethod
    def empty(cls, entity) -> 'EntityState':
        entity = SyncEntity(entity)
        payload = None if entity is SyncEntity.PROFILE else []
        return cls(entity=entity, payload=payload, timestamp=EPOCH, checksum='')

    @property
    def items(self) -> List[Dict[str, Any]]:
        if self.entity is SyncEntity.PROFILE:
            return []
        return list(self.payload or [])

    @property
    def is_empty(self) -> bool:
        return self.timestamp == EPOCH and not self.payload

    def wire_state(self) -> Any:
        """Body sent as ``local_state`` to the resolve endpoint."""
        if self.entity is SyncEntity.PROFILE:
            return self.payload
        return {'items': self.items}


@dataclass
class SyncSnapshot:
    """Server-authoritative aggregate returned by the state endpoint."""

    cart: EntityState
    orders: EntityState
    profile: EntityState
    timestamp: str
    cart_totals: Dict[str, Any] = field(default_factory=dict)

    def for_entity(self, entity) -> EntityState:
        return getattr(self, SyncEntity(entity).value)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> 'SyncSnapshot':
        """
        Build a snapshot from the ``data`` member of the state response.

        Raises:
            KeyError, TypeError: If a required member is missing or mistyped.
        """
        cart = data['cart']
        orders = data['orders']
        profile = data.get('profile') or {}

        if not isinstance(cart['items'], list) or not isinstance(orders['items'], list):
            raise TypeError('Snapshot items must be lists')

        return cls(
            cart=EntityState(
                entity=SyncEntity.CART,
                payload=cart['items'],
                timestamp=cart.get('updated_at') or EPOCH,
                checksum=cart.get('checksum') or '',
            ),
            orders=EntityState(
                entity=SyncEntity.ORDERS,
                payload=orders['items'],
                timestamp=orders.get('updated_at') or EPOCH,
                checksum=orders.get('checksum') or '',
            ),
            profile=EntityState(
                entity=SyncEntity.PROFILE,
                payload=profile.get('data'),
                timestamp=profile.get('updated_at') or EPOCH,
            ),
            timestamp=data.get('timestamp') or now_iso(),
            cart_totals={
                'total_items': cart.get('total_items', 0),
                'total_price': cart.get('total_price', 0),
            },
        )


@dataclass
class ConflictResolution:
    entity: SyncEntity
    action: SyncAction
    resolved_state: Any
    timestamp: str


@dataclass
class SyncSummary:
    """Aggregate of one full sync pass; one entity's failure never aborts the others."""

    synced: Dict[SyncEntity, bool] = field(
        default_factory=lambda: {entity: False for entity in ALL_ENTITIES}
    )
    actions: Dict[SyncEntity, Optional[SyncAction]] = field(
        default_factory=lambda: {entity: None for entity in ALL_ENTITIES}
    )
    errors: List[str] = field(default_factory=list)
    timestamp: str = field(default_factory=now_iso)
    fetch_failed: bool = False
    auth_failed: bool = False

    @property
    def cart_synced(self) -> bool:
        return self.synced[SyncEntity.CART]

    @property
    def orders_synced(self) -> bool:
        return self.synced[SyncEntity.ORDERS]

    @property
    def profile_synced(self) -> bool:
        return self.synced[SyncEntity.PROFILE]

    @property
    def ok(self) -> bool:
        return not self.fetch_failed and not self.errors

    def record(self, entity: SyncEntity, action: SyncAction) -> None:
        self.synced[entity] = True
        self.actions[entity] = action

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cart_synced': self.cart_synced,
            'orders_synced': self.orders_synced,
            'profile_synced': self.profile_synced,
            'actions': {
                entity.value: action.value if action else None
                for entity, action in self.actions.items()
            },
            'errors': list(self.errors),
            'timestamp': self.timestamp,
            'fetch_failed': self.fetch_failed,
            'auth_failed': self.auth_failed,
        }
