"""Stay records: physical check-in/check-out as tracked by front-desk staff."""

import logging
from typing import Optional

from fastapi import Depends, Request

from frontdesk.core.api_client import HotelApiClient, build_api_client, unwrap_model, unwrap_page
from frontdesk.core.cache import CacheKey, Mutation, QueryCache, QueryResult, Resource, build_query_cache
from frontdesk.core.session import SessionContext, get_session
from frontdesk.schemas.base import Page
from frontdesk.schemas.stay_record import (
    StayRecord,
    StayRecordCheckOut,
    StayRecordCreate,
    StayRecordSearchQuery,
    StayRecordStats,
    StayRecordUpdate,
)

logger = logging.getLogger(__name__)

# The API answers with either key, depending on the endpoint
RECORD_WRAPPERS = ("stayRecord", "stay_record")


class StayRecordService:
    def __init__(self, api: HotelApiClient, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def list_stay_records(
        self,
        query: Optional[StayRecordSearchQuery] = None,
        enabled: bool = True,
    ) -> QueryResult[Page[StayRecord]]:
        query = query or StayRecordSearchQuery()
        key = CacheKey.list(Resource.STAY_RECORDS, query.to_params())

        async def load() -> Page[StayRecord]:
            return unwrap_page(await self.api.get(key.path, params=key.query), StayRecord, "stay_records")

        return await self.cache.query(key, load, enabled=enabled)

    async def active_stays(self, query: Optional[StayRecordSearchQuery] = None) -> QueryResult[list[StayRecord]]:
        """Guests currently in house: checked in and not yet checked out.

        The API cannot filter on this, so every page from ``query.page`` on
        is read and filtered here.
        """
        query = query or StayRecordSearchQuery()
        active: list[StayRecord] = []
        page_number = query.page
        while True:
            result = await self.list_stay_records(query.model_copy(update={"page": page_number}))
            if not result.has_data:
                return QueryResult(error=result.error)
            active.extend(record for record in result.data.items if record.is_active)
            if page_number >= result.data.total_pages or not result.data.has_items:
                return QueryResult(data=active)
            page_number += 1

    async def get_stay_record(self, record_id: Optional[str]) -> QueryResult[StayRecord]:
        key = CacheKey.detail(Resource.STAY_RECORDS, record_id) if record_id else None

        async def load() -> StayRecord:
            return unwrap_model(await self.api.get(key.path), StayRecord, *RECORD_WRAPPERS)

        return await self.cache.query(key, load)

    async def stats(self) -> QueryResult[StayRecordStats]:
        key = CacheKey.stats(Resource.STAY_RECORDS)

        async def load() -> StayRecordStats:
            return unwrap_model(await self.api.get(key.path), StayRecordStats, "stats")

        return await self.cache.query(key, load)

    async def create_stay_record(self, data: StayRecordCreate) -> StayRecord:
        """Open a stay at physical check-in."""
        response = await self.api.post("/stay-records", json=data.model_dump(mode="json", exclude_none=True))
        record = unwrap_model(response, StayRecord, *RECORD_WRAPPERS)
        self.cache.invalidate_mutation(Mutation.CREATE_STAY_RECORD, record.id)
        logger.info(f"[STAY] Opened stay record {record.id} for booking {record.booking_id}")
        return record

    async def update_stay_record(self, record_id: str, data: StayRecordUpdate) -> StayRecord:
        response = await self.api.put(
            f"/stay-records/{record_id}",
            json=data.model_dump(mode="json", exclude_unset=True),
        )
        self.cache.invalidate_mutation(Mutation.UPDATE_STAY_RECORD, record_id)
        return unwrap_model(response, StayRecord, *RECORD_WRAPPERS)

    async def check_out(self, record_id: str, data: Optional[StayRecordCheckOut] = None) -> StayRecord:
        """Close a stay at physical check-out."""
        data = data or StayRecordCheckOut()
        response = await self.api.post(
            f"/stay-records/{record_id}/checkout",
            json=data.model_dump(mode="json", exclude_none=True),
        )
        self.cache.invalidate_mutation(Mutation.CHECK_OUT_STAY_RECORD, record_id)
        logger.info(f"[STAY] Closed stay record {record_id}")
        return unwrap_model(response, StayRecord, *RECORD_WRAPPERS)

    async def delete_stay_record(self, record_id: str) -> None:
        await self.api.delete(f"/stay-records/{record_id}")
        self.cache.invalidate_mutation(Mutation.DELETE_STAY_RECORD, record_id)


def build_stay_record_service(request: Request, session: SessionContext) -> StayRecordService:
    return StayRecordService(build_api_client(request, session), build_query_cache(request, session))


async def get_stay_record_service(
    request: Request,
    session: SessionContext = Depends(get_session),
) -> StayRecordService:
    return build_stay_record_service(request, session)
