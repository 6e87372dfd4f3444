"""
Mock drive API server for local runs and testing of the drive adapter.

Provides mock endpoints for:
- GET  /api/files: cursor-paginated folder listing (with unreliable meta counters)
- GET  /api/files/{id}: item metadata; hashes are computed lazily on first read
- POST /api/uploads/{uploadId}: upload one chunk
- POST /api/files: finalize an upload into a file, or create a folder
- GET  /api/events/stream: server-sent change events
"""

import asyncio
import hashlib
import json
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
import uvicorn


ROOT_FOLDER_ID = "root"


class DriveItem(BaseModel):
    id: str
    name: str
    type: str  # 'file' or 'folder'
    mimeType: str = "application/octet-stream"
    size: int = 0
    parentId: str
    updatedAt: datetime
    hash: str = ""


class CreateFileRequest(BaseModel):
    name: str
    type: str = "file"
    parentId: str
    mimeType: Optional[str] = None
    size: int = 0
    uploadId: Optional[str] = None
    channelId: int = 0
    encrypted: bool = False
    updatedAt: Optional[datetime] = None


class DriveStore:
    """In-memory store of items, pending upload parts and event subscribers."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.items: Dict[str, DriveItem] = {}
        self.contents: Dict[str, bytes] = {}
        self.parts: Dict[str, Dict[int, bytes]] = {}
        self.subscribers: List[asyncio.Queue] = []
        self._next_id = 1

    def new_id(self) -> str:
        # Zero padded so string order matches creation order
        item_id = f"{self._next_id:08d}"
        self._next_id += 1
        return item_id

    def children(self, parent_id: str) -> List[DriveItem]:
        return sorted(
            (item for item in self.items.values() if item.parentId == parent_id),
            key=lambda item: item.id
        )

    def publish(self, event_type: str, item: DriveItem):
        payload = {
            "type": event_type,
            "source": {"name": item.name, "type": item.type, "parentId": item.parentId}
        }
        for queue in list(self.subscribers):
            queue.put_nowait(payload)


# Initialize FastAPI app
app = FastAPI(
    title="Mock Drive API Server",
    description="Mock drive API server for drive adapter testing",
    version="1.0.0"
)

store = DriveStore()


@app.get("/api/")
async def root():
    """Health check endpoint."""
    return {"message": "Mock Drive API Server is running", "timestamp": datetime.now(timezone.utc)}


@app.get("/api/files")
async def list_files(
    parentId: str = Query(...),
    operation: str = Query("list"),
    limit: int = Query(500, ge=1, le=1000),
    sort: str = Query("id"),
    order: str = Query("asc"),
    cursor: str = Query(""),
    page: int = Query(1, ge=1)
) -> Dict[str, Any]:
    """
    List one page of a folder.

    Items after the cursor id are returned in ascending id order. The meta
    block counts every item in the store rather than the folder, so clients
    must not rely on it to detect the last page.
    """
    if operation != "list":
        raise HTTPException(status_code=400, detail="Unsupported operation")
    if sort != "id" or order != "asc":
        raise HTTPException(status_code=400, detail="Only sort=id order=asc is supported")
    if parentId != ROOT_FOLDER_ID and parentId not in store.items:
        raise HTTPException(status_code=404, detail="Folder not found")

    remaining = [item for item in store.children(parentId) if item.id > cursor]
    page_items = remaining[:limit]
    total = len(store.items)

    return {
        "items": [item.model_dump(mode="json") for item in page_items],
        "meta": {
            "count": total,
            "totalPages": max(1, -(-total // limit)),
            "currentPage": page
        }
    }


@app.get("/api/files/{file_id}")
async def get_file(file_id: str) -> DriveItem:
    """Return item metadata, computing the content hash on first read."""
    item = store.items.get(file_id)
    if item is None:
        raise HTTPException(status_code=404, detail="File not found")
    if item.type == "file" and not item.hash:
        # The first read only schedules the hash, like a real server's background job
        if file_id in store.contents:
            item.hash = hashlib.sha256(store.contents.pop(file_id)).hexdigest()
            return item.model_copy(update={"hash": ""})
    return item


@app.post("/api/uploads/{upload_id}")
async def upload_part(
    upload_id: str,
    request: Request,
    partNo: int = Query(..., ge=1),
    partName: str = Query(...),
    fileName: str = Query(...),
    channelId: int = Query(0),
    encrypted: bool = Query(False)
) -> Dict[str, Any]:
    """Store one chunk of an upload session."""
    data = await request.body()
    store.parts.setdefault(upload_id, {})[partNo] = data
    return {"uploadId": upload_id, "partNo": partNo, "partName": partName, "size": len(data)}


@app.post("/api/files")
async def create_file(body: CreateFileRequest) -> DriveItem:
    """Finalize an upload session into a file, or create a folder."""
    if body.parentId != ROOT_FOLDER_ID and body.parentId not in store.items:
        raise HTTPException(status_code=404, detail="Parent folder not found")

    if body.type == "folder":
        item = DriveItem(
            id=store.new_id(),
            name=body.name,
            type="folder",
            mimeType="drive/folder",
            parentId=body.parentId,
            updatedAt=datetime.now(timezone.utc)
        )
        store.items[item.id] = item
        store.publish("file_create", item)
        return item

    parts = store.parts.pop(body.uploadId, {}) if body.uploadId else {}
    content = b"".join(parts[n] for n in sorted(parts))
    if len(content) != body.size:
        raise HTTPException(status_code=400, detail=f"Expected {body.size} bytes, got {len(content)}")

    item = DriveItem(
        id=store.new_id(),
        name=body.name,
        type="file",
        mimeType=body.mimeType or "application/octet-stream",
        size=body.size,
        parentId=body.parentId,
        updatedAt=body.updatedAt or datetime.now(timezone.utc)
    )
    store.items[item.id] = item
    store.contents[item.id] = content
    store.publish("file_create", item)
    return item


@app.get("/api/events/stream")
async def events_stream(request: Request):
    """Stream change events as server-sent events until the client disconnects."""
    queue: asyncio.Queue = asyncio.Queue()
    store.subscribers.append(queue)

    async def event_source():
        try:
            # Flush headers immediately so the client sees the connection
            yield ": connected\n\n"
            while not await request.is_disconnected():
                try:
                    payload = await asyncio.wait_for(queue.get(), timeout=15)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield f"data: {json.dumps(payload)}\n\n"
        finally:
            store.subscribers.remove(queue)

    return StreamingResponse(event_source(), media_type="text/event-stream")


if __name__ == "__main__":
    # Run the server
    uvicorn.run(
        "mock_api.server:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
        log_level="info"
    )
