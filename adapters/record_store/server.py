"""
Record store service: the remote tier the sync facade talks to.

Routes (under /api):
    GET    /records        all records, newest first
    POST   /records        insert or replace by id  -> {"success": true}
    DELETE /records/{id}   remove by id             -> {"success": true}

Records are kept whole, as JSON text, in a single `records` table.
"""

import json
from pathlib import Path
from typing import Any

import sqlalchemy as sa
import structlog
import uvicorn
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from core.config import AppConfig, get_config, validate_config
from core.domain.models import FamilyRecord
from core.logging import configure_logging

logger = structlog.get_logger(__name__)

metadata = sa.MetaData()

records_table = sa.Table(
    "records",
    metadata,
    sa.Column("id", sa.Text, primary_key=True),
    sa.Column("createdAt", sa.Text),
    sa.Column("data", sa.Text, nullable=False),
)


class SqlRecordStore:
    """Keyed record storage on any SQLAlchemy database URL."""

    def __init__(self, url: str) -> None:
        connect_args: dict[str, Any] = {}
        database = sa.engine.make_url(url).database
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            if database and database != ":memory:":
                Path(database).parent.mkdir(parents=True, exist_ok=True)
        self.engine = sa.create_engine(url, connect_args=connect_args)
        self.logger = logger.bind(component="sql_record_store", dialect=self.engine.dialect.name)

    def create_schema(self) -> None:
        metadata.create_all(self.engine)

    def all(self) -> list[dict[str, Any]]:
        query = sa.select(records_table.c.data).order_by(records_table.c.createdAt.desc())
        with self.engine.connect() as conn:
            return [json.loads(row.data) for row in conn.execute(query)]

    def upsert(self, record: FamilyRecord) -> None:
        payload = record.to_json_dict()
        with self.engine.begin() as conn:
            conn.execute(sa.delete(records_table).where(records_table.c.id == record.id))
            conn.execute(
                sa.insert(records_table).values(
                    id=record.id,
                    createdAt=payload["createdAt"],
                    data=json.dumps(payload, ensure_ascii=False),
                )
            )
        self.logger.info("record_stored", record_id=record.id)

    def delete(self, record_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(sa.delete(records_table).where(records_table.c.id == record_id))
        self.logger.info("record_deleted", record_id=record_id)

    def dispose(self) -> None:
        self.engine.dispose()


def _storage_error(operation: str, error: SQLAlchemyError) -> JSONResponse:
    logger.error("record_store_operation_failed", operation=operation, error=str(error))
    return JSONResponse(status_code=500, content={"error": str(error)})


def build_router(store: SqlRecordStore) -> APIRouter:
    router = APIRouter(prefix="/api", tags=["records"])

    @router.get("/records")
    def list_records() -> Any:
        try:
            return store.all()
        except SQLAlchemyError as e:
            return _storage_error("list", e)

    @router.post("/records")
    def save_record(record: FamilyRecord) -> Any:
        try:
            store.upsert(record)
        except SQLAlchemyError as e:
            return _storage_error("save", e)
        return {"success": True}

    @router.delete("/records/{record_id}")
    def delete_record(record_id: str) -> Any:
        try:
            store.delete(record_id)
        except SQLAlchemyError as e:
            return _storage_error("delete", e)
        return {"success": True}

    return router


def create_app(config: AppConfig | None = None, store: SqlRecordStore | None = None) -> FastAPI:
    """Build the service; the schema is created before the first request."""
    config = config or get_config()
    store = store or SqlRecordStore(config.database.url)
    store.create_schema()

    app = FastAPI(title="Family health assessment record store")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(build_router(store))
    app.state.record_store = store
    return app


def main() -> None:
    config = validate_config()
    configure_logging(config.logging)
    logger.info("record_store_starting", host=config.api.host, port=config.api.port)
    uvicorn.run(
        "adapters.record_store.server:create_app",
        factory=True,
        host=config.api.host,
        port=config.api.port,
        reload=config.api.reload,
    )


if __name__ == "__main__":
    main()
