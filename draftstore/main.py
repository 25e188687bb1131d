import logging
import sys
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from draftstore.core.config import config
from draftstore.core.db.engine import check_database_connection, init_db
from draftstore.core.error_handler import (
    database_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from draftstore.modules.drafts import router as drafts_router

# Configure logging to output to console
logging.basicConfig(
    level=config.log_level.upper(),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)
logger.info("Starting Draft Store API...")

app = FastAPI(
    title="Draft Store API",
    description="Per-user storage for JSON draft documents",
    version="1.0.0",
)

# Exception handlers
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Middlewares
if config.cors_origin_list:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(drafts_router)


@app.on_event("startup")
async def _startup() -> None:
    if config.db_auto_create:
        await init_db()


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "database": await check_database_connection()}
