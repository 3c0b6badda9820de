import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query

from .client import SearchClient, UpstreamError
from .config import Settings, get_settings
from .models import CompareResponse, HealthResponse, NormalizeRequest, PlacesResponse
from .normalize import normalize_compare_payload
from .session import EMPTY_QUERY_MESSAGE

logging.basicConfig(level=get_settings().log_level)

app = FastAPI(
    title="compare-table-normalizer",
    description="Deterministic comparison-table normalization for the compare search service",
    version="0.1.0",
)


async def get_search_client(settings: Settings = Depends(get_settings)):
    client = SearchClient.from_settings(settings)
    try:
        yield client
    finally:
        await client.close()


def _require_query(q: str) -> str:
    if not q.strip():
        raise HTTPException(status_code=422, detail=EMPTY_QUERY_MESSAGE)
    return q


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/normalize", response_model=CompareResponse)
def normalize(request: NormalizeRequest, settings: Settings = Depends(get_settings)):
    return normalize_compare_payload(request.payload, request.query, subject_count=settings.subject_count)


@app.get("/compare", response_model=CompareResponse)
async def compare(
    q: str = Query(default=""),
    settings: Settings = Depends(get_settings),
    client: SearchClient = Depends(get_search_client),
):
    query = _require_query(q)
    try:
        payload = await client.compare(query)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return normalize_compare_payload(payload, query, subject_count=settings.subject_count)


@app.get("/places", response_model=PlacesResponse)
async def places(
    q: str = Query(default=""),
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    client: SearchClient = Depends(get_search_client),
):
    query = _require_query(q)
    try:
        found = await client.places(query, lat=lat, lng=lng)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"items": found}
