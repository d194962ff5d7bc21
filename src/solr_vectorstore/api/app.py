"""FastAPI application for indexing and searching Solr collections.

Routes are plain ``def`` functions, so Starlette runs them on its threadpool
and blocking Solr or embedding calls never hold the event loop.

The schema and Swagger UI are served by explicit routes returning
``application/json``; the built-in ones answer with the vendor OpenAPI media
type, which strict clients reject with a 406.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import JSONResponse

from .routers.index import router as index_router
from .routers.search import router as search_router

load_dotenv(override=True)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


def _base_path() -> str:
    """API_BASE_PATH normalised to ``/prefix`` (or "" when unset)."""
    path = os.getenv("API_BASE_PATH", "").strip().rstrip("/")
    if path and not path.startswith("/"):
        path = "/" + path
    return path


BASE_PATH = _base_path()

app = FastAPI(
    title="Solr vector search",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    root_path=BASE_PATH,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(index_router)
app.include_router(search_router)


@app.get("/health", tags=["ops"], summary="Health check")
async def health():
    return {"status": "ok"}


def _schema(base_path: Optional[str]) -> Dict[str, Any]:
    schema = app.openapi()
    if not base_path:
        return schema
    # app.openapi() is cached; annotate a copy
    return {**schema, "servers": [{"url": base_path}]}


@app.get("/openapi.json", include_in_schema=False)
def openapi_json():
    return JSONResponse(_schema(BASE_PATH))


@app.get("/docs", include_in_schema=False)
def swagger_ui():
    # relative so the UI still finds the schema behind a proxy subpath
    return get_swagger_ui_html(openapi_url="openapi.json", title="Solr vector search")
