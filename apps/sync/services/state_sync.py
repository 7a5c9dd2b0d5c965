"""
Server half of the state sync protocol.

``build_snapshot`` renders the three entities in one response.
``resolve_entity`` adjudicates one entity against the server rows with the
same ``decide_action`` rule the client uses. A local-wins push is stamped
``max(advance_timestamp(server), local)`` so the pushed row is strictly newer
than what it replaced and never older than the client's own stamp; that
stamp is returned as the resolution timestamp and the client tags its copy
with it.
"""

import logging
from typing import Any, Dict, Optional

from django.db import transaction

from apps.accounts.models import User, UserProfile
from apps.accounts.services import apply_profile_state, profile_data
from apps.cart.models import Cart
from apps.cart.services import CartServiceError, cart_state, replace_cart
from apps.orders.services import orders_state
from statesync.checksum import cart_checksum
from statesync.resolution import decide_action
from statesync.timestamps import (
    EPOCH,
    advance_timestamp,
    format_timestamp,
    max_timestamp,
    now_iso,
    parse_timestamp,
)
from statesync.types import SyncAction, SyncEntity

from .exceptions import InvalidLocalStateError

logger = logging.getLogger(__name__)


# =============================================================================
# Snapshot
# =============================================================================

def profile_state(*, user: User) -> Dict[str, Any]:
    profile = UserProfile.objects.filter(user=user).select_related('user').first()
    return {
        'data': profile_data(profile),
        'updated_at': format_timestamp(profile.updated_at) if profile else EPOCH,
    }


def build_snapshot(user: User) -> Dict[str, Any]:
    """
    Cart, orders and profile of ``user`` plus the server time.

    Entities are read independently; no cross-entity transaction.
    """
    return {
        'cart': cart_state(user=user),
        'orders': orders_state(user=user),
        'profile': profile_state(user=user),
        'timestamp': now_iso(),
    }


# =============================================================================
# Resolution
# =============================================================================

def push_timestamp(server_timestamp, local_timestamp):
    """Stamp for a local-wins write."""
    return max(advance_timestamp(server_timestamp), parse_timestamp(local_timestamp))


def _resolution(action: SyncAction, resolved_state, timestamp) -> Dict[str, Any]:
    return {
        'action': action.value,
        'resolved_state': resolved_state,
        'timestamp': format_timestamp(timestamp),
    }


def _local_items(local_state) -> list:
    if not isinstance(local_state, dict):
        raise InvalidLocalStateError("local_state must be an object")
    items = local_state.get('items', [])
    if not isinstance(items, list):
        raise InvalidLocalStateError("local_state.items must be a list")
    return items


def _resolve_cart(user, local_state, local_timestamp, broadcaster) -> Dict[str, Any]:
    local_items = _local_items(local_state)

    # Lock the header so the decision and the push see the same rows.
    Cart.objects.select_for_update().get_or_create(user=user)
    server = cart_state(user=user)

    action = decide_action(
        SyncEntity.CART,
        local_timestamp=local_timestamp,
        server_timestamp=server['updated_at'],
        local_checksum=cart_checksum(local_items),
        server_checksum=server['checksum'],
    )

    if action is SyncAction.LOCAL_WINS:
        stamp = push_timestamp(server['updated_at'], local_timestamp)
        try:
            replace_cart(user=user, items=local_items, timestamp=stamp, broadcaster=broadcaster)
        except CartServiceError as exc:
            raise InvalidLocalStateError(str(exc))
        pushed = cart_state(user=user)
        return _resolution(action, {'items': pushed['items'], 'updated_at': pushed['updated_at']}, stamp)

    timestamp = (
        server['updated_at'] if action is SyncAction.SERVER_WINS
        else max_timestamp(local_timestamp, server['updated_at'])
    )
    return _resolution(action, {'items': server['items'], 'updated_at': server['updated_at']}, timestamp)


def _resolve_orders(user, local_state, local_timestamp) -> Dict[str, Any]:
    _local_items(local_state)
    server = orders_state(user=user)
    action = decide_action(
        SyncEntity.ORDERS,
        local_timestamp=local_timestamp,
        server_timestamp=server['updated_at'],
    )
    return _resolution(action, {'items': server['items'], 'updated_at': server['updated_at']}, server['updated_at'])


def _resolve_profile(user, local_state, local_timestamp) -> Dict[str, Any]:
    if local_state is not None and not isinstance(local_state, dict):
        raise InvalidLocalStateError("local_state must be an object or null")

    profile = UserProfile.objects.select_for_update().filter(user=user).select_related('user').first()
    server_timestamp = format_timestamp(profile.updated_at) if profile else EPOCH

    action = decide_action(
        SyncEntity.PROFILE,
        local_timestamp=local_timestamp,
        server_timestamp=server_timestamp,
    )

    if action is SyncAction.LOCAL_WINS:
        stamp = push_timestamp(server_timestamp, local_timestamp)
        pushed = apply_profile_state(user=user, data=local_state or {}, timestamp=stamp)
        return _resolution(action, profile_data(pushed), stamp)

    server_data = profile_data(profile)
    if action is SyncAction.SERVER_WINS:
        return _resolution(action, server_data, server_timestamp)
    return _resolution(
        action,
        server_data if server_data is not None else local_state,
        max_timestamp(local_timestamp, server_timestamp),
    )


@transaction.atomic
def resolve_entity(
    *,
    user: User,
    entity,
    local_state,
    local_timestamp: str,
    broadcaster=None,
) -> Dict[str, Any]:
    """
    Adjudicate one entity and apply a local-wins push.

    Args:
        user: Owner of the entity
        entity: cart, orders or profile
        local_state: Client copy of the entity
        local_timestamp: ISO-8601 stamp of the client copy
        broadcaster: EventBroadcaster notified after commit, if given

    Returns:
        ``{action, resolved_state, timestamp}``. ``resolved_state`` is
        ``{items, updated_at}`` for cart and orders and the profile record
        for profile.

    Raises:
        InvalidLocalStateError: If ``local_state`` is malformed or a pushed
            cart names unknown products
        ValueError: If ``entity`` or ``local_timestamp`` is invalid
    """
    entity = SyncEntity(entity)
    parse_timestamp(local_timestamp)

    if entity is SyncEntity.CART:
        result = _resolve_cart(user, local_state, local_timestamp, broadcaster)
    elif entity is SyncEntity.ORDERS:
        result = _resolve_orders(user, local_state, local_timestamp)
    else:
        result = _resolve_profile(user, local_state, local_timestamp)

    logger.info('Resolved %s for %s: %s', entity, user.id, result['action'])
    return result
