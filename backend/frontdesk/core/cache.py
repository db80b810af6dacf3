"""Per-session query cache with typed keys and explicit invalidation.

Reads go through ``QueryCache.fetch``/``query`` keyed by a ``CacheKey``.
Writes never touch entries directly: each ``Mutation`` lists, in
``INVALIDATIONS``, the key scopes it makes stale.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from fastapi import Depends, Request

from frontdesk.core.api_client import ApiError
from frontdesk.core.config import get_settings
from frontdesk.core.session import SessionContext, get_session

logger = logging.getLogger(__name__)

T = TypeVar("T")

Params = tuple[tuple[str, str], ...]


class Resource(str, Enum):
    """Remote collections, valued by their API path segment."""
    ROOMS = "rooms"
    BOOKINGS = "bookings"
    STAY_RECORDS = "stay-records"
    USERS = "users"


class KeyKind(str, Enum):
    LIST = "list"
    DETAIL = "detail"
    STATS = "stats"
    AVAILABILITY = "availability"
    PROFILE = "profile"


_KIND_SUFFIX = {
    KeyKind.STATS: "/stats/overview",
    KeyKind.AVAILABILITY: "/availability",
    KeyKind.PROFILE: "/profile",
}


def _param_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def normalize_params(params: Optional[dict]) -> Params:
    """Sorted, hashable query params; None values dropped, lists expanded."""
    if not params:
        return ()
    pairs = []
    for name, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set)):
            pairs.extend((name, _param_value(item)) for item in value)
        else:
            pairs.append((name, _param_value(value)))
    return tuple(sorted(pairs))


@dataclass(frozen=True)
class CacheKey:
    """Identity of one cached read; ``path`` is the API URL it fetches."""

    resource: Resource
    kind: KeyKind
    id: Optional[str] = None
    params: Params = ()

    @classmethod
    def list(cls, resource: Resource, params: Optional[dict] = None) -> "CacheKey":
        return cls(resource, KeyKind.LIST, params=normalize_params(params))

    @classmethod
    def detail(cls, resource: Resource, entity_id: str) -> "CacheKey":
        return cls(resource, KeyKind.DETAIL, id=str(entity_id))

    @classmethod
    def stats(cls, resource: Resource) -> "CacheKey":
        return cls(resource, KeyKind.STATS)

    @classmethod
    def availability(cls, params: Optional[dict] = None) -> "CacheKey":
        return cls(Resource.ROOMS, KeyKind.AVAILABILITY, params=normalize_params(params))

    @classmethod
    def profile(cls) -> "CacheKey":
        return cls(Resource.USERS, KeyKind.PROFILE)

    @property
    def path(self) -> str:
        base = f"/{self.resource.value}"
        if self.kind == KeyKind.DETAIL:
            return f"{base}/{self.id}"
        return base + _KIND_SUFFIX.get(self.kind, "")

    @property
    def query(self) -> "list[tuple[str, str]]":
        return list(self.params)

    def __str__(self) -> str:
        if not self.params:
            return self.path
        return self.path + "?" + "&".join(f"{k}={v}" for k, v in self.params)


@dataclass(frozen=True)
class CacheScope:
    """A family of keys: every key of ``kind`` on ``resource`` (optionally one id)."""

    resource: Resource
    kind: KeyKind
    id: Optional[str] = None

    def matches(self, key: CacheKey) -> bool:
        if key.resource != self.resource or key.kind != self.kind:
            return False
        return self.id is None or key.id == self.id


class Mutation(str, Enum):
    """Every write the frontdesk performs against the hotel API."""
    CREATE_ROOM = "create_room"
    UPDATE_ROOM = "update_room"
    DELETE_ROOM = "delete_room"
    BULK_ROOM_STATUS = "bulk_room_status"
    CREATE_BOOKING = "create_booking"
    UPDATE_BOOKING = "update_booking"
    CONFIRM_BOOKING = "confirm_booking"
    CANCEL_BOOKING = "cancel_booking"
    CHECK_IN_BOOKING = "check_in_booking"
    CHECK_OUT_BOOKING = "check_out_booking"
    DELETE_BOOKING = "delete_booking"
    CREATE_STAY_RECORD = "create_stay_record"
    UPDATE_STAY_RECORD = "update_stay_record"
    CHECK_OUT_STAY_RECORD = "check_out_stay_record"
    DELETE_STAY_RECORD = "delete_stay_record"
    UPDATE_PROFILE = "update_profile"
    UPDATE_USER = "update_user"
    DELETE_USER = "delete_user"


@dataclass(frozen=True)
class Stale:
    """One dependency row: ``same_id`` binds the scope to the mutated entity."""

    resource: Resource
    kind: KeyKind
    same_id: bool = False

    def scope(self, entity_id: Optional[str]) -> CacheScope:
        if self.same_id and entity_id is not None:
            return CacheScope(self.resource, self.kind, str(entity_id))
        return CacheScope(self.resource, self.kind)


_ROOM_WRITE = (
    Stale(Resource.ROOMS, KeyKind.LIST),
    Stale(Resource.ROOMS, KeyKind.DETAIL, same_id=True),
    Stale(Resource.ROOMS, KeyKind.AVAILABILITY),
)
_BOOKING_WRITE = (
    Stale(Resource.BOOKINGS, KeyKind.LIST),
    Stale(Resource.BOOKINGS, KeyKind.DETAIL, same_id=True),
    Stale(Resource.ROOMS, KeyKind.AVAILABILITY),
)
_STAY_WRITE = (
    Stale(Resource.STAY_RECORDS, KeyKind.LIST),
    Stale(Resource.STAY_RECORDS, KeyKind.DETAIL, same_id=True),
    Stale(Resource.STAY_RECORDS, KeyKind.STATS),
)
_OCCUPANCY = (
    Stale(Resource.STAY_RECORDS, KeyKind.LIST),
    Stale(Resource.STAY_RECORDS, KeyKind.STATS),
    Stale(Resource.ROOMS, KeyKind.LIST),
)
_USER_WRITE = (
    Stale(Resource.USERS, KeyKind.LIST),
    Stale(Resource.USERS, KeyKind.DETAIL, same_id=True),
)

INVALIDATIONS: dict[Mutation, tuple[Stale, ...]] = {
    Mutation.CREATE_ROOM: _ROOM_WRITE,
    Mutation.UPDATE_ROOM: _ROOM_WRITE,
    Mutation.DELETE_ROOM: _ROOM_WRITE,
    Mutation.BULK_ROOM_STATUS: (
        Stale(Resource.ROOMS, KeyKind.LIST),
        Stale(Resource.ROOMS, KeyKind.DETAIL),
        Stale(Resource.ROOMS, KeyKind.AVAILABILITY),
    ),
    Mutation.CREATE_BOOKING: _BOOKING_WRITE,
    Mutation.UPDATE_BOOKING: _BOOKING_WRITE,
    Mutation.CONFIRM_BOOKING: _BOOKING_WRITE,
    Mutation.CANCEL_BOOKING: _BOOKING_WRITE,
    Mutation.CHECK_IN_BOOKING: _BOOKING_WRITE + _OCCUPANCY,
    Mutation.CHECK_OUT_BOOKING: _BOOKING_WRITE + _OCCUPANCY,
    Mutation.DELETE_BOOKING: _BOOKING_WRITE,
    Mutation.CREATE_STAY_RECORD: _STAY_WRITE + (Stale(Resource.BOOKINGS, KeyKind.LIST),),
    Mutation.UPDATE_STAY_RECORD: _STAY_WRITE,
    Mutation.CHECK_OUT_STAY_RECORD: _STAY_WRITE + (Stale(Resource.BOOKINGS, KeyKind.LIST),),
    Mutation.DELETE_STAY_RECORD: _STAY_WRITE,
    Mutation.UPDATE_PROFILE: _USER_WRITE + (Stale(Resource.USERS, KeyKind.PROFILE),),
    Mutation.UPDATE_USER: _USER_WRITE,
    Mutation.DELETE_USER: _USER_WRITE,
}


def scopes_for(mutation: Mutation, entity_id: Optional[str] = None) -> list[CacheScope]:
    """Key scopes made stale by ``mutation`` on ``entity_id``."""
    return [row.scope(entity_id) for row in INVALIDATIONS[mutation]]


@dataclass
class CacheEntry:
    data: Any
    fetched_at: float


@dataclass
class QueryResult(Generic[T]):
    """Outcome of a read: data or the transport error, never both."""

    data: Optional[T] = None
    error: Optional[ApiError] = None

    @property
    def has_data(self) -> bool:
        return self.data is not None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def exists(self) -> bool:
        """True once the entity has loaded without error."""
        return self.has_data and not self.is_error

    def require(self) -> T:
        """The data, re-raising the API error when the read failed."""
        if self.error is not None:
            raise self.error
        return self.data


class QueryCache:
    """Per-key store for one session.

    A value younger than ``dedupe_seconds`` is served from memory; concurrent
    reads of one key share a single request. Invalidating a key bumps its
    generation so a response already in flight is returned to its caller but
    not stored.
    """

    def __init__(self, dedupe_seconds: float = 2.0, clock: Callable[[], float] = time.monotonic):
        self.dedupe_seconds = dedupe_seconds
        self.clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._inflight: dict[CacheKey, asyncio.Future] = {}
        self._generations: dict[CacheKey, int] = {}

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def peek(self, key: CacheKey) -> Any:
        entry = self._entries.get(key)
        return entry.data if entry else None

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self.clock() - entry.fetched_at < self.dedupe_seconds

    async def fetch(self, key: CacheKey, loader: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value for ``key`` or load it. Errors propagate."""
        entry = self._entries.get(key)
        if entry is not None and self._is_fresh(entry):
            return entry.data

        inflight = self._inflight.get(key)
        if inflight is not None:
            return await asyncio.shield(inflight)

        generation = self._generations.get(key, 0)
        task = asyncio.ensure_future(loader())
        self._inflight[key] = task
        try:
            data = await asyncio.shield(task)
        finally:
            if self._inflight.get(key) is task:
                del self._inflight[key]

        if self._generations.get(key, 0) == generation:
            self._entries[key] = CacheEntry(data=data, fetched_at=self.clock())
        else:
            logger.debug(f"[CACHE] Discarding stale response for {key}")
        return data

    async def query(
        self,
        key: Optional[CacheKey],
        loader: Callable[[], Awaitable[T]],
        enabled: bool = True,
    ) -> QueryResult[T]:
        """Like ``fetch`` but reports API errors in the result instead of raising.

        A missing key or ``enabled=False`` skips the request entirely.
        """
        if key is None or not enabled:
            return QueryResult()
        try:
            return QueryResult(data=await self.fetch(key, loader))
        except ApiError as e:
            return QueryResult(error=e)

    def invalidate(self, *targets: Union[CacheKey, CacheScope]) -> int:
        """Mark matching keys stale. Returns how many known keys were hit."""
        known = set(self._entries) | set(self._inflight)
        hit = 0
        for key in known:
            if any(_target_matches(target, key) for target in targets):
                self._entries.pop(key, None)
                self._generations[key] = self._generations.get(key, 0) + 1
                hit += 1
        for target in targets:
            if isinstance(target, CacheKey) and target not in known:
                self._generations[target] = self._generations.get(target, 0) + 1
        if hit:
            logger.debug(f"[CACHE] Invalidated {hit} key(s)")
        return hit

    def invalidate_mutation(self, mutation: Mutation, entity_id: Optional[str] = None) -> int:
        return self.invalidate(*scopes_for(mutation, entity_id))

    def clear(self) -> None:
        for key in list(self._entries) + list(self._inflight):
            self._generations[key] = self._generations.get(key, 0) + 1
        self._entries.clear()


def _target_matches(target: Union[CacheKey, CacheScope], key: CacheKey) -> bool:
    if isinstance(target, CacheScope):
        return target.matches(key)
    return target == key


class CacheRegistry:
    """One QueryCache per session fingerprint, least recently used evicted first."""

    def __init__(self, dedupe_seconds: float = 2.0, max_sessions: int = 256):
        self.dedupe_seconds = dedupe_seconds
        self.max_sessions = max_sessions
        self._caches: "OrderedDict[str, QueryCache]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._caches)

    def for_session(self, session: SessionContext) -> QueryCache:
        fingerprint = session.fingerprint
        cache = self._caches.get(fingerprint)
        if cache is None:
            cache = QueryCache(dedupe_seconds=self.dedupe_seconds)
            self._caches[fingerprint] = cache
            while len(self._caches) > self.max_sessions:
                evicted, _ = self._caches.popitem(last=False)
                logger.debug(f"[CACHE] Evicted session cache {evicted[:8]}")
        else:
            self._caches.move_to_end(fingerprint)
        return cache

    def drop(self, fingerprint: str) -> None:
        self._caches.pop(fingerprint, None)


def build_query_cache(request: Request, session: SessionContext) -> QueryCache:
    return request.app.state.cache_registry.for_session(session)


async def get_query_cache(
    request: Request,
    session: SessionContext = Depends(get_session),
) -> QueryCache:
    """The caller's session cache."""
    return build_query_cache(request, session)


def create_cache_registry() -> CacheRegistry:
    settings = get_settings()
    return CacheRegistry(
        dedupe_seconds=settings.cache_dedupe_seconds,
        max_sessions=settings.cache_max_sessions,
    )
