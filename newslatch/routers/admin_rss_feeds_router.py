"""API admin-rss-feeds: CRUD catalog RSS cho admin. PUT/DELETE dùng ?id=."""
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from newslatch.db import get_db
from newslatch.dependencies import require_admin
from newslatch.schemas.rss_feeds import RssFeedCreate, RssFeedOut, RssFeedUpdate
from newslatch.services.rss_feed_admin_service import (
    create_feed,
    delete_feed,
    get_feed_or_404,
    list_feeds,
    parse_feed_id,
    update_feed,
)

router = APIRouter(prefix="/admin-rss-feeds", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("")
async def get_feeds(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    feeds = await list_feeds(db)
    return {
        "success": True,
        "feeds": [RssFeedOut.model_validate(f).model_dump(mode="json") for f in feeds],
        "count": len(feeds),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def post_feed(payload: RssFeedCreate, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    feed = await create_feed(db, payload)
    return {"success": True, "feed": RssFeedOut.model_validate(feed).model_dump(mode="json")}


@router.put("")
async def put_feed(
    payload: RssFeedUpdate,
    feed_id: Optional[str] = Query(None, alias="id", description="Feed UUID"),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    feed = await get_feed_or_404(db, parse_feed_id(feed_id))
    feed = await update_feed(db, feed, payload)
    return {"success": True, "feed": RssFeedOut.model_validate(feed).model_dump(mode="json")}


@router.delete("")
async def delete_feed_route(
    feed_id: Optional[str] = Query(None, alias="id", description="Feed UUID"),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    feed = await get_feed_or_404(db, parse_feed_id(feed_id))
    await delete_feed(db, feed)
    return {"success": True, "message": "Feed deleted"}
