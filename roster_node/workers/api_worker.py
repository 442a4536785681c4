from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, Generator

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roster_node.auth.tokens import TokenIssuer
from roster_node.config.runtime import RuntimeSettings
from roster_node.db.session import DatabaseStore
from roster_node.entities.player import utc_now
from roster_node.errors import PlayerNotFound, RosterError
from roster_node.interfaces.player_repository import PlayerRepository
from roster_node.memory.in_memory_player_repository import MemoryStore
from roster_node.middleware.auth import configure_auth
from roster_node.schemas import (
    AuthRequest,
    BulkUpsertEnvelope,
    PlayerUpsertEnvelope,
    TivEnvelope,
    TokenResponse,
    bulk_result_to_dict,
    field_view_to_dict,
    player_to_dict,
    snapshot_to_dict,
    upsert_result_to_dict,
)
from roster_node.services.merge import RecordMerger
from roster_node.services.views import field_view

logger = logging.getLogger(__name__)

SERVICE_NAME = "roster-node"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        force=True,
    )


def open_store(settings: RuntimeSettings) -> DatabaseStore | MemoryStore:
    if settings.store_backend == "memory":
        return MemoryStore()
    if settings.store_backend == "postgres":
        return DatabaseStore.open(settings)
    raise ValueError(f"Unknown STORE_BACKEND {settings.store_backend!r}")


def get_settings(request: Request) -> RuntimeSettings:
    return request.app.state.settings


def get_player_repository(request: Request) -> Generator[PlayerRepository, Any, None]:
    with request.app.state.store.session() as repository:
        yield repository


def get_record_merger(
    repository: Annotated[PlayerRepository, Depends(get_player_repository)]
) -> RecordMerger:
    return RecordMerger(repository)


router = APIRouter()


@router.get("/healthz")
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/")
def get_service_info(
    merger: Annotated[RecordMerger, Depends(get_record_merger)]
) -> dict[str, Any]:
    last_updated = merger.latest_updated_at()
    return {
        "ok": True,
        "service": SERVICE_NAME,
        "players": merger.count(),
        "lastUpdated": last_updated.isoformat() if last_updated else None,
    }


@router.post("/auth/koc")
def issue_token(
    body: AuthRequest,
    settings: Annotated[RuntimeSettings, Depends(get_settings)],
    repository: Annotated[PlayerRepository, Depends(get_player_repository)],
) -> dict[str, Any]:
    """Exchange a player id + name for a signed token, alliance members only."""
    if not settings.auth_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Token issuance disabled (JWT_SECRET not set)",
        )

    player_id = str(body.id).strip() if body.id is not None else ""
    name = (body.name or "").strip()
    if not player_id or not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing id or name")

    player = repository.get_by_id(player_id)
    if player is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unknown player")
    if settings.allowed_alliance and player.alliance != settings.allowed_alliance:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not in {settings.allowed_alliance}",
        )

    ttl = timedelta(hours=settings.token_ttl_hours)
    issuer = TokenIssuer(settings.jwt_secret, ttl=ttl)
    token = issuer.issue(player.id, name=player.name, alliance=player.alliance)
    logger.info("issued token player=%s alliance=%s", player.id, player.alliance)

    response = TokenResponse(token=token, expires_at=utc_now() + ttl)
    return response.model_dump(by_alias=True, mode="json")


@router.post("/players")
def upsert_player(
    body: PlayerUpsertEnvelope,
    merger: Annotated[RecordMerger, Depends(get_record_merger)],
) -> dict[str, Any]:
    result = merger.upsert(body.id, body.source, body.field_updates())
    return upsert_result_to_dict(result)


@router.post("/players/bulk")
def upsert_players_bulk(
    body: BulkUpsertEnvelope,
    merger: Annotated[RecordMerger, Depends(get_record_merger)],
) -> dict[str, Any]:
    return bulk_result_to_dict(merger.upsert_many(body.source, body.player_updates()))


@router.post("/tiv")
def record_tiv(
    body: TivEnvelope,
    merger: Annotated[RecordMerger, Depends(get_record_merger)],
) -> dict[str, Any]:
    result = merger.upsert(body.player_id, body.source, {"tiv": body.tiv})
    return upsert_result_to_dict(result)


@router.get("/players")
def list_players(
    merger: Annotated[RecordMerger, Depends(get_record_merger)]
) -> list[dict[str, Any]]:
    return [player_to_dict(record) for record in merger.list_all()]


@router.get("/players/{player_id}")
def get_player(
    player_id: str,
    merger: Annotated[RecordMerger, Depends(get_record_merger)],
) -> dict[str, Any]:
    return player_to_dict(merger.get_current(player_id))


@router.get("/players/{player_id}/history")
def get_player_history(
    player_id: str,
    merger: Annotated[RecordMerger, Depends(get_record_merger)],
) -> list[dict[str, Any]]:
    return [snapshot_to_dict(snapshot) for snapshot in merger.get_history(player_id)]


@router.get("/players/{player_id}/view")
def get_player_view(
    player_id: str,
    merger: Annotated[RecordMerger, Depends(get_record_merger)],
    settings: Annotated[RuntimeSettings, Depends(get_settings)],
) -> dict[str, Any]:
    record = merger.get_current(player_id)
    now = utc_now()
    view = field_view(record, now, stale_after=timedelta(hours=settings.stale_after_hours))
    return {
        "id": record.id,
        "updatedAt": record.updated_at.isoformat(),
        "fields": field_view_to_dict(view, now),
    }


@router.get("/players/{player_id}/at")
def get_player_at(
    player_id: str,
    merger: Annotated[RecordMerger, Depends(get_record_merger)],
    ts: datetime = Query(..., description="Point in time (ISO-8601)"),
) -> dict[str, Any]:
    at = ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)
    record = merger.reconstruct_at(player_id, at)
    if record is None:
        raise PlayerNotFound(player_id)
    return player_to_dict(record)


@router.get("/leaderboard/{field_name}")
def get_leaderboard(
    field_name: str,
    merger: Annotated[RecordMerger, Depends(get_record_merger)],
    limit: int | None = Query(default=None, ge=1),
) -> list[dict[str, Any]]:
    records = merger.get_latest_per_id(field_name)
    if limit is not None:
        records = records[:limit]
    return [player_to_dict(record) for record in records]


async def _roster_error_handler(request: Request, exc: RosterError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def create_app(
    settings: RuntimeSettings | None = None,
    store: DatabaseStore | MemoryStore | None = None,
) -> FastAPI:
    """Build the API. The store is opened in the lifespan and closed on shutdown.

    Run with `uvicorn roster_node.workers.api_worker:create_app --factory`.
    """
    settings = settings or RuntimeSettings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.store = store or open_store(settings)
        logger.info("roster store opened backend=%s", settings.store_backend)
        try:
            yield
        finally:
            app.state.store.close()
            logger.info("roster store closed")

    app = FastAPI(title="Roster Node API", lifespan=lifespan)
    app.state.settings = settings

    # Auth is added first so CORS wraps it and 401s still carry CORS headers.
    configure_auth(app, settings.jwt_secret)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allowed_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(RosterError, _roster_error_handler)
    app.include_router(router)
    return app


if __name__ == "__main__":
    runtime_settings = RuntimeSettings.from_env()
    configure_logging(runtime_settings.log_level)
    logging.getLogger(__name__).info("roster api worker bootstrap")
    uvicorn.run(create_app(runtime_settings), host="0.0.0.0", port=runtime_settings.port)
