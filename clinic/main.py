from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clinic.api.api import api_router
from clinic.core.config import settings
from clinic.core.exceptions import register_exception_handlers
from clinic.core.logger import logger
from clinic.core.redis import RedisClient
from clinic.db.session import Database
from clinic.middleware.log_middleware import LogMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    await db.connect()
    if settings.DATABASE_CREATE_TABLES:
        await db.create_all()
    token_store = RedisClient(settings.REDIS_URL)
    app.state.db = db
    app.state.token_store = token_store
    logger.info(f"{settings.PROJECT_NAME} started")
    try:
        yield
    finally:
        await token_store.close()
        await db.disconnect()
        logger.info(f"{settings.PROJECT_NAME} stopped")


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(LogMiddleware)

register_exception_handlers(app)


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME} API"}


app.include_router(api_router, prefix=settings.API_V1_STR)
