"""
api/server.py
-------------
FastAPI application entry point.

Run dev server:
    uvicorn tripline.api.server:app --reload --port 8000

Endpoints:
    GET  /v1/health
    POST /v1/itinerary/generate
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import tripline.config as config
from tripline.api.routes import health, itinerary
from tripline.db.connection import close_pool

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    close_pool()


app = FastAPI(
    title="Tripline Itinerary API",
    version="0.1.0",
    description=(
        "Corridor-based multi-day itinerary generator for Jeju. "
        "Integrates Gemini relevance scoring and Google Distance Matrix / Directions."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

app.include_router(health.router,    prefix="/v1",           tags=["Health"])
app.include_router(itinerary.router, prefix="/v1/itinerary", tags=["Itinerary"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("tripline.api.server:app", host="0.0.0.0", port=8000, reload=True)
