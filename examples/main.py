"""FastAPI app serving the test schema, with every relation batched by berrybatch.

Run ``uvicorn examples.main:app`` from the repository root and open http://127.0.0.1:8000/graphql

Environment variables:
  BERRYBATCH_TEST_DATABASE_URL  optional SQLAlchemy async URL; defaults to in-memory SQLite
  DEMO_SEED                     set to '0' to skip seeding demo data (default '1')
  SQL_ECHO                      set to '0' to stop logging statements (default '1')
  BERRYBATCH_DEBUG              set to '1' to log loader creation and batch sizes
"""
from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from strawberry.fastapi import GraphQLRouter

from berrybatch import get_settings
from tests.fixtures import seed_populated_db
from tests.models import Base, User
from tests.schema import schema

logger = logging.getLogger("berrybatch.playground")

app = FastAPI(title="berrybatch playground")


async def _init_db(app: FastAPI) -> None:
    db_url = os.getenv("BERRYBATCH_TEST_DATABASE_URL")
    if db_url:
        engine: AsyncEngine = create_async_engine(db_url, future=True)
    else:
        # one shared connection keeps the in-memory database alive
        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    app.state.engine = engine
    app.state.async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    if os.getenv("SQL_ECHO", "1") != "0":
        @event.listens_for(engine.sync_engine, "before_cursor_execute")
        def _log_statement(conn, cursor, statement, parameters, context, executemany):  # noqa: ANN001
            logger.info("SQL: %s | params=%s", statement, parameters)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if os.getenv("DEMO_SEED", "1") != "0":
        async with app.state.async_session() as session:
            if not (await session.execute(select(User).limit(1))).first():
                await seed_populated_db(session)


@app.middleware("http")
async def db_session_middleware(request: Request, call_next):
    async with app.state.async_session() as session:
        request.state.db_session = session
        return await call_next(request)


@app.on_event("startup")
async def on_startup() -> None:
    await _init_db(app)


@app.get("/")
async def root() -> RedirectResponse:
    return RedirectResponse(url="/graphql")


async def get_context(request: Request):
    # a fresh dict per request, so loaders never outlive the request
    return {get_settings().session_key: getattr(request.state, "db_session", None)}


app.include_router(GraphQLRouter(schema, graphiql=True, context_getter=get_context), prefix="/graphql")


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="127.0.0.1", port=8000)
