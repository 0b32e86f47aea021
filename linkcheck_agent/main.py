from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from dotenv import load_dotenv

from .checker import LinkChecker
from .config import get_settings
from .models import Ack, CheckRequest, QueueEntry, UpdateRequest, Verdict
from .reputation import VirusTotalClient
from .store import PostgresStore, StoreError

# Load environment variables from the repo root .env (so VT_API_KEY works in local dev)
_HERE = Path(__file__).resolve()
_REPO_ROOT = _HERE.parents[1]
load_dotenv(_REPO_ROOT / ".env", override=False)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = PostgresStore(
        settings.database_url,
        min_pool_size=settings.db_pool_min,
        max_pool_size=settings.db_pool_max,
        query_timeout=settings.db_query_timeout_s,
    )
    reputation = VirusTotalClient(
        settings.vt_api_key,
        base_url=settings.vt_base_url,
        timeout=settings.vt_timeout_s,
    )
    if not settings.vt_api_key:
        logger.warning("VT_API_KEY is not set; reputation lookups will fail.")
    if settings.db_bootstrap:
        try:
            await store.ensure_schema()
        except StoreError:
            logger.exception("Cannot create verdict tables")

    app.state.checker = LinkChecker(store, reputation)
    try:
        yield
    finally:
        await app.state.checker.drain()
        await reputation.aclose()
        await store.close()


app = FastAPI(title="LinkCheck Agent", version="0.1.0", lifespan=lifespan)

# For local dev, this defaults to allowing http://localhost:3000.
# In production, set LINKCHECK_CORS_ORIGINS to the extension/frontend origins.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_checker(request: Request) -> LinkChecker:
    return request.app.state.checker


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.post("/check", response_model=Verdict, response_model_exclude_none=True)
async def check_endpoint(req: CheckRequest, checker: LinkChecker = Depends(get_checker)):
    return await checker.check_link(req.url)


@app.post("/update", response_model=Ack)
async def update_endpoint(req: UpdateRequest, checker: LinkChecker = Depends(get_checker)):
    return await checker.update_link(req.url)


@app.get("/queue/next", response_model=QueueEntry | None)
async def queue_next_endpoint(checker: LinkChecker = Depends(get_checker)):
    try:
        return await checker.store.oldest_queued()
    except StoreError as e:
        logger.warning("Cannot read deferred queue: %s", e)
        raise HTTPException(status_code=503, detail="Verdict store unavailable", headers={"Retry-After": "5"}) from e
