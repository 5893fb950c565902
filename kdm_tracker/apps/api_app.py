from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from kdm_tracker import config
from kdm_tracker.catalogs.loader import load_catalogs
from kdm_tracker.migrations.engine import MigrationEngine, MigrationResult
from kdm_tracker.migrations.errors import (
    PostMigrationValidationError,
    StructuralTransformError,
    UnresolvedReference,
    UnsupportedVersion,
)
from kdm_tracker.storage.blob_store import BlobStore, FileBlobStore
from kdm_tracker.storage.persistence import CampaignLoadError, load_campaign

logger = logging.getLogger(__name__)


class MigrateRequest(BaseModel):
    document: Dict[str, Any]


class WarningModel(BaseModel):
    domain: str
    name: str
    path: str
    from_version: Optional[str] = None
    to_version: Optional[str] = None


class MigrationResponse(BaseModel):
    document: Dict[str, Any]
    from_version: Optional[str] = None
    to_version: Optional[str] = None
    migrated: bool = False
    written: bool = False
    applied_steps: List[List[str]] = Field(default_factory=list)
    warnings: List[WarningModel] = Field(default_factory=list)


def _warning_model(event: UnresolvedReference) -> WarningModel:
    return WarningModel(
        domain=event.domain,
        name=event.name,
        path=event.path,
        from_version=event.from_version,
        to_version=event.to_version,
    )


def _raise_for_error(result: MigrationResult) -> None:
    error = result.error
    if error is None:
        return
    if isinstance(error, UnsupportedVersion):
        raise HTTPException(status_code=400, detail=str(error))
    if isinstance(error, PostMigrationValidationError):
        raise HTTPException(
            status_code=422,
            detail={"error": error.kind, "paths": error.paths, "messages": error.messages},
        )
    if isinstance(error, StructuralTransformError):
        raise HTTPException(
            status_code=422,
            detail={"error": error.kind, "path": error.path, "message": str(error)},
        )
    raise HTTPException(status_code=500, detail=str(error))


def _response(result: MigrationResult, *, written: bool = False) -> MigrationResponse:
    return MigrationResponse(
        document=result.document,
        from_version=result.from_version,
        to_version=result.to_version,
        migrated=result.migrated,
        written=written,
        applied_steps=[list(pair) for pair in result.applied_steps],
        warnings=[_warning_model(event) for event in result.warnings],
    )


def create_app(
    *,
    engine: Optional[MigrationEngine] = None,
    store: Optional[BlobStore] = None,
    campaign_key: Optional[str] = None,
) -> FastAPI:
    app = FastAPI(title="KDM Tracker API")
    app.state.engine = engine or MigrationEngine(catalogs=load_catalogs())
    app.state.store = store or FileBlobStore()
    app.state.campaign_key = campaign_key or config.CAMPAIGN_KEY

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "schema_version": app.state.engine.target_version}

    @app.get("/campaign", response_model=MigrationResponse)
    def campaign() -> MigrationResponse:
        try:
            outcome = load_campaign(app.state.store, app.state.engine, app.state.campaign_key)
        except CampaignLoadError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc

        if outcome.result is None:
            return MigrationResponse(
                document=outcome.document,
                to_version=app.state.engine.target_version,
                written=outcome.written,
            )
        if not outcome.ok:
            logger.warning("Stored campaign could not be upgraded: %s", outcome.result.error)
        _raise_for_error(outcome.result)
        return _response(outcome.result, written=outcome.written)

    @app.post("/migrate", response_model=MigrationResponse)
    def migrate_document(payload: MigrateRequest) -> MigrationResponse:
        result = app.state.engine.migrate(payload.document)
        _raise_for_error(result)
        return _response(result)

    return app
