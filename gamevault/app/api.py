"""FastAPI application exposing the Gamevault sync engine.

Run with ``uvicorn gamevault.app.api:app``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from gamevault import __version__
from gamevault.app.dependencies import (
    BlacklistDep,
    SyncServiceDep,
    UserMappingServiceDep,
    close_sync_service,
)
from gamevault.infrastructure.db import DatabaseError
from gamevault.infrastructure.observability import configure_logging, format_prometheus
from gamevault.services.dto import BlacklistEntryDTO, ItemSummaryDTO, UserMappingDTO
from gamevault.services.errors import (
    BlacklistedItemError,
    FetchError,
    InvalidSyncRequest,
    ItemNotFoundError,
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    yield
    await close_sync_service()


app = FastAPI(title="Gamevault API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """API root endpoint with welcome message and links."""
    return {
        "name": "Gamevault API",
        "version": __version__,
        "docs": "/docs",
        "endpoints": {
            "games": "/games",
            "sync": "/games/sync",
            "prices": "/games/prices/refresh",
            "blacklist": "/blacklist",
            "users": "/users",
            "metrics": "/metrics",
        },
    }


@app.get("/version")
async def get_version() -> dict[str, str]:
    return {"version": __version__}


@app.get("/metrics", response_class=PlainTextResponse)
async def get_metrics() -> str:
    return format_prometheus()


class SyncRequest(BaseModel):
    owner_ids: list[str] = Field(..., description="Owner identities to reconcile.")
    override_existing: bool = False
    item_id_filter: list[int] | None = Field(
        None, description="Restrict the run to these item ids; must not be empty if given."
    )


class OperationAccepted(BaseModel):
    operation_id: str


class ProgressResponse(BaseModel):
    operation_id: str
    percent: float
    phase: str
    message: str
    retry_after_seconds: float | None = None


class BlacklistAddRequest(BaseModel):
    item_id: int


class UserMappingUpdate(BaseModel):
    username: str = Field(..., min_length=1)
    nickname: str | None = None
    discord_id: str | None = None


@app.post(
    "/games/sync",
    response_model=OperationAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
async def start_sync(payload: SyncRequest, service: SyncServiceDep) -> OperationAccepted:
    try:
        operation_id = await service.start_sync(
            payload.owner_ids, payload.override_existing, payload.item_id_filter
        )
    except InvalidSyncRequest as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except DatabaseError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return OperationAccepted(operation_id=operation_id)


@app.post(
    "/games/prices/refresh",
    response_model=OperationAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
async def start_price_update(service: SyncServiceDep) -> OperationAccepted:
    try:
        operation_id = await service.start_price_update()
    except DatabaseError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return OperationAccepted(operation_id=operation_id)


@app.get("/operations/{operation_id}/progress", response_model=ProgressResponse)
async def get_progress(operation_id: str, service: SyncServiceDep) -> ProgressResponse:
    info = service.get_progress(operation_id)
    if info is None:
        raise HTTPException(status_code=404, detail=f"Operation '{operation_id}' not found")
    return ProgressResponse(operation_id=operation_id, **info.to_dict())


@app.get("/operations/{operation_id}/result")
async def get_result(operation_id: str, service: SyncServiceDep) -> dict[str, Any]:
    result = service.get_result(operation_id)
    if result is None:
        raise HTTPException(
            status_code=404, detail=f"No result for operation '{operation_id}'"
        )
    return result.to_dict()


@app.get("/runs")
async def list_runs(
    service: SyncServiceDep, limit: int = Query(20, ge=1, le=500)
) -> list[dict[str, Any]]:
    return service.recent_runs(limit)


@app.get("/games", response_model=list[ItemSummaryDTO])
async def list_games(
    service: SyncServiceDep, limit: int | None = Query(None, ge=1)
) -> list[ItemSummaryDTO]:
    return service.list_items(limit)


@app.get("/games/{item_id}")
async def get_game(item_id: int, service: SyncServiceDep) -> dict[str, Any]:
    document = service.get_item(item_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Item {item_id} not found")
    return document


@app.post("/games/{item_id}/refresh")
async def refresh_game(item_id: int, service: SyncServiceDep) -> dict[str, Any]:
    try:
        record = await service.update_single_item(item_id)
    except BlacklistedItemError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ItemNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except FetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except DatabaseError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return record.to_document()


@app.get("/blacklist", response_model=list[BlacklistEntryDTO])
async def list_blacklist(blacklist: BlacklistDep) -> list[BlacklistEntryDTO]:
    return [BlacklistEntryDTO(**entry) for entry in blacklist.list_entries()]


@app.post("/blacklist", status_code=status.HTTP_201_CREATED)
async def add_to_blacklist(payload: BlacklistAddRequest, blacklist: BlacklistDep) -> dict[str, int]:
    blacklist.add(payload.item_id)
    return {"item_id": payload.item_id}


@app.delete("/blacklist/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_blacklist(item_id: int, blacklist: BlacklistDep) -> Response:
    if not blacklist.remove(item_id):
        raise HTTPException(status_code=404, detail=f"Item {item_id} is not blacklisted")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/users", response_model=list[UserMappingDTO])
async def list_users(mappings: UserMappingServiceDep) -> list[UserMappingDTO]:
    return mappings.list_all()


@app.get("/users/{owner_id}", response_model=UserMappingDTO)
async def get_user(owner_id: str, mappings: UserMappingServiceDep) -> UserMappingDTO:
    mapping = mappings.get(owner_id)
    if mapping is None:
        raise HTTPException(status_code=404, detail=f"No mapping for owner '{owner_id}'")
    return mapping


@app.put("/users/{owner_id}", response_model=UserMappingDTO)
async def put_user(
    owner_id: str, payload: UserMappingUpdate, mappings: UserMappingServiceDep
) -> UserMappingDTO:
    return mappings.add_or_update(
        owner_id, payload.username, payload.nickname, payload.discord_id
    )


__all__ = ["app"]
