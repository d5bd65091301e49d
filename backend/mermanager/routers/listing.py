import asyncio
import logging
import os

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool

from mermanager.errors import AuthError, StoreError
from mermanager.inventory.records import edited_record, new_record
from mermanager.inventory.list_view import ListingListView, build_listing_list
from mermanager.models.listing import Listing, ListingFields, ListingUpdate
from mermanager.routers.auth_router import get_current_user
from mermanager.auth.auth_handler import user_id_from_token
from mermanager.store.base import DocumentStore
from mermanager.store.factory import get_store

load_dotenv()
logger = logging.getLogger(__name__)

LIVE_POLL_SECONDS = float(os.getenv("LIVE_POLL_SECONDS", "1.0"))

router = APIRouter(prefix="/listing", tags=["Listing"])


def get_owned_listing(listing_id: str, user: str, store: DocumentStore) -> Listing:
    listing = store.get(listing_id)
    if not listing:
        raise HTTPException(status_code=404, detail="Listing not found")
    if listing.owner_id != user:
        raise HTTPException(status_code=403, detail="Not authorized")
    return listing


@router.post("/create")
def create_listing(data: ListingFields, user=Depends(get_current_user), store: DocumentStore = Depends(get_store)):
    try:
        listing_id = store.create(new_record(data.model_dump(mode="json"), user))
    except StoreError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"id": listing_id, "message": "Listing created"}


@router.get("/my", response_model=ListingListView)
def get_my_listings(user=Depends(get_current_user), store: DocumentStore = Depends(get_store)):
    return build_listing_list(store.query(user))


@router.get("/{listing_id}", response_model=Listing)
def get_listing(listing_id: str, user=Depends(get_current_user), store: DocumentStore = Depends(get_store)):
    return get_owned_listing(listing_id, user, store)


@router.put("/{listing_id}")
def update_listing(
    listing_id: str,
    data: ListingUpdate,
    user=Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    current = get_owned_listing(listing_id, user, store)
    changes = data.model_dump(mode="json", exclude_unset=True)
    try:
        store.update(listing_id, edited_record(changes, current.updated_at))
    except StoreError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Listing updated"}


@router.delete("/{listing_id}")
def delete_listing(listing_id: str, user=Depends(get_current_user), store: DocumentStore = Depends(get_store)):
    get_owned_listing(listing_id, user, store)
    try:
        store.delete(listing_id)
    except StoreError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Listing deleted"}


@router.websocket("/live")
async def live_listings(websocket: WebSocket, token: str = Query(None), store: DocumentStore = Depends(get_store)):
    """
    Push the caller's full listing snapshot now and after every change.
    Accepts the token as a query parameter since browsers cannot set headers here.
    """
    try:
        user = user_id_from_token(token or "")
    except AuthError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_snapshot(snapshot):
        payload = [listing.model_dump(mode="json") for listing in snapshot]
        # Store callbacks run on whichever thread committed the write
        if loop.is_closed():
            return
        loop.call_soon_threadsafe(queue.put_nowait, payload)

    async def pump():
        while True:
            await websocket.send_json(await queue.get())

    async def watch():
        # Writes from other processes only surface through the store's poll
        while True:
            await asyncio.sleep(LIVE_POLL_SECONDS)
            try:
                await run_in_threadpool(store.poll)
            except StoreError as e:
                logger.warning("Live snapshot refresh failed for %s: %s", user, e)

    unsubscribe = store.subscribe_query(user, on_snapshot)
    sender = asyncio.create_task(pump())
    watcher = asyncio.create_task(watch())
    logger.debug("Live snapshot stream opened for %s", user)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        sender.cancel()
        watcher.cancel()
        logger.debug("Live snapshot stream closed for %s", user)
