from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from controlclin.core.config import settings
from controlclin.core.logger import logger
from controlclin.db.store import build_store
from controlclin.middleware.log_middleware import LogMiddleware
from controlclin.services.ai_service import ExamAnalyzer
from controlclin.services.event_service import EventService
from controlclin.services.identity_service import IdentityProvider
from controlclin.services.sync_service import SyncService


@asynccontextmanager
async def lifespan(app: FastAPI):
    # InitializationError here stops the application from starting
    store = build_store(settings)
    identity = IdentityProvider(settings.IDENTITY_STORE_URL)

    outcome = await SyncService(store).reconcile(settings.DEFAULT_TENANT_ID)
    logger.info(f"Startup reconciliation for tenant {settings.DEFAULT_TENANT_ID}: {outcome.value}")
    await EventService(store).run_backfill(settings.DEFAULT_TENANT_ID)
    if settings.DEV_AUTH_BYPASS:
        logger.warning("DEV_AUTH_BYPASS is enabled: the development password logs anyone in")

    app.state.store = store
    app.state.identity = identity
    app.state.analyzer = ExamAnalyzer()
    yield

    await store.drain()
    if store.remote_enabled:
        await store.remote.client.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(LogMiddleware)

@app.get("/")
async def root():
    return {"message": "Welcome to ControlClin API"}

from controlclin.api.api import api_router
app.include_router(api_router, prefix=settings.API_V1_STR)
