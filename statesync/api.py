"""
HTTP client for the sync endpoints.

    GET  {base_url}/api/sync/state/     -> SyncSnapshot
    POST {base_url}/api/sync/resolve/   -> ConflictResolution

Both answer with the envelope ``{"success": bool, "data": ..., "timestamp": iso}``.
The bearer token is read from ``token_provider`` on every request, so a
session layer can rotate it without rebuilding the client.
"""

import logging
from typing import Any, Callable, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import (
    SyncAuthenticationError,
    SyncHTTPError,
    SyncNetworkError,
    SyncProtocolError,
)
from .timestamps import format_timestamp
from .types import ConflictResolution, SyncAction, SyncEntity, SyncSnapshot

logger = logging.getLogger(__name__)

STATE_PATH = '/api/sync/state/'
RESOLVE_PATH = '/api/sync/resolve/'

TokenProvider = Callable[[], Optional[str]]


def build_session(retries: int = 3, backoff_factor: float = 1.0) -> requests.Session:
    """Session whose GETs are retried on connection errors and 502/503/504."""
    session = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=(502, 503, 504),
        allowed_methods=frozenset(['GET']),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount('http://', adapter)
    session.mount('https://', adapter)
    return session


class SyncApiClient:
    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip('/')
        self.token_provider = token_provider
        self.session = session or build_session()
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        token = self.token_provider()
        if token:
            headers['Authorization'] = f'Bearer {token}'
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f'{self.base_url}{path}'
        try:
            response = self.session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.exceptions.RetryError as exc:
            raise SyncHTTPError(f'{method} {path} failed after retries: {exc}') from exc
        except requests.exceptions.RequestException as exc:
            raise SyncNetworkError(f'{method} {path} failed: {exc}') from exc

        if response.status_code in (401, 403):
            raise SyncAuthenticationError(
                f'{method} {path} rejected credentials', status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError:
            body = None

        if not 200 <= response.status_code < 300:
            message = body.get('error') if isinstance(body, dict) else None
            raise SyncHTTPError(
                message or f'{method} {path} returned HTTP {response.status_code}',
                status_code=response.status_code,
            )

        if not isinstance(body, dict):
            raise SyncProtocolError(f'{method} {path} returned a non-JSON body')
        if body.get('success') is not True:
            raise SyncProtocolError(body.get('error') or f'{method} {path} reported failure')
        if 'data' not in body:
            raise SyncProtocolError(f'{method} {path} response has no data')
        return body['data']

    def fetch_state(self) -> SyncSnapshot:
        """
        Fetch the server snapshot of cart, orders and profile.

        Raises:
            SyncNetworkError: Server unreachable.
            SyncAuthenticationError: Bearer token rejected.
            SyncHTTPError: Any other non-2xx answer.
            SyncProtocolError: Body does not match the snapshot format.
        """
        data = self._request('GET', STATE_PATH)
        try:
            snapshot = SyncSnapshot.from_payload(data)
        except (KeyError, TypeError, AttributeError) as exc:
            raise SyncProtocolError(f'Malformed snapshot: {exc}') from exc
        logger.debug(
            'Snapshot fetched: cart=%s orders=%s profile=%s',
            snapshot.cart.timestamp, snapshot.orders.timestamp, snapshot.profile.timestamp,
        )
        return snapshot

    def resolve(self, entity, local_state, local_timestamp) -> ConflictResolution:
        """Ask the server to adjudicate one entity against its own rows."""
        entity = SyncEntity(entity)
        data = self._request('POST', RESOLVE_PATH, json={
            'entity': entity.value,
            'local_state': local_state,
            'local_timestamp': format_timestamp(local_timestamp),
        })
        try:
            action = SyncAction(data['action'])
            resolved = data.get('resolved_state')
            if entity is not SyncEntity.PROFILE:
                resolved = list(resolved['items'])
            timestamp = format_timestamp(data['timestamp'])
        except (KeyError, TypeError, ValueError) as exc:
            raise SyncProtocolError(f'Malformed resolution for {entity}: {exc}') from exc

        logger.info('Server resolved %s as %s', entity, action)
        return ConflictResolution(
            entity=entity, action=action, resolved_state=resolved, timestamp=timestamp
        )

    def close(self) -> None:
        self.session.close()
