from __future__ import annotations  # FastAPI server exposing interview feedback generation

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from api.routes import router
from config.settings import settings
from storage.migrate import migrate


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    migrate(settings.DB_PATH)
    logger.info("Interview store ready at %s", settings.DB_PATH)
    yield


app = FastAPI(title="Interview Feedback API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)


@app.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "Interview feedback backend running"


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
