import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, HTTPException, Query as QueryParam, Request
from fastapi.responses import JSONResponse

from catalog_bridge.config import get_settings
from catalog_bridge.database import create_catalog_engine
from catalog_bridge.exceptions import CatalogError, InvalidArgumentError
from catalog_bridge.logging_config import setup_logging
from catalog_bridge.models import (
    HealthResponse,
    HoldRequest,
    HoldResult,
    IdListRequest,
    LoginRequest,
    NormalizedFine,
    NormalizedHold,
    NormalizedItem,
    NormalizedTransaction,
    Patron,
    PatronProfile,
    PickupLocation,
    RecordCollection,
    RenewRequest,
    RenewResult,
    Terms,
)
from catalog_bridge.params import ParamBag, Query
from catalog_bridge.services.ole import OleDriver
from catalog_bridge.services.solr import SolrBackend, SolrConnector
from catalog_bridge.transport import HttpTransport

VERSION = "0.1.0"

logger = logging.getLogger(__name__)

driver: OleDriver | None = None
backend: SolrBackend | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global driver, backend
    settings = get_settings()
    setup_logging(settings.log_level)

    engine = create_catalog_engine(settings)
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        transport = HttpTransport(client, timeout=settings.http_timeout)
        driver = OleDriver(settings, transport, engine=engine)
        connector = SolrConnector(
            settings.search_service, transport, ParamBag(settings.search_invariants)
        )
        backend = SolrBackend(
            connector,
            dictionaries=settings.spellcheck_dictionaries,
            identifier=settings.search_backend_id,
        )
        logger.info("catalog-bridge %s started", VERSION)
        yield
        driver = None
        backend = None
    engine.dispose()


app = FastAPI(title="Catalog Bridge", version=VERSION, lifespan=lifespan)


@app.exception_handler(InvalidArgumentError)
async def invalid_argument_handler(request: Request, exc: InvalidArgumentError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


def _driver() -> OleDriver:
    assert driver is not None
    return driver


def _backend() -> SolrBackend:
    assert backend is not None
    return backend


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="healthy", version=VERSION)


# Patrons


@app.post("/patrons/login", response_model=Patron)
async def patron_login(body: LoginRequest):
    patron = await _driver().patron_login(body.barcode, body.login)
    if patron is None:
        raise HTTPException(status_code=401, detail="Invalid barcode or login")
    return patron


@app.get("/patrons/{patron_id}/profile", response_model=PatronProfile)
async def patron_profile(patron_id: str):
    return await _driver().get_my_profile(Patron(id=patron_id))


@app.get("/patrons/{patron_id}/transactions", response_model=list[NormalizedTransaction])
async def patron_transactions(patron_id: str):
    return await _driver().get_my_transactions(Patron(id=patron_id))


@app.get("/patrons/{patron_id}/fines", response_model=list[NormalizedFine])
async def patron_fines(patron_id: str):
    return await _driver().get_my_fines(Patron(id=patron_id))


@app.get("/patrons/{patron_id}/holds", response_model=list[NormalizedHold])
async def patron_holds(patron_id: str):
    return await _driver().get_my_holds(Patron(id=patron_id))


# Circulation


@app.post("/holds", response_model=HoldResult)
async def place_hold(body: HoldRequest):
    return await _driver().place_hold(body)


@app.post("/renewals", response_model=RenewResult)
async def renew_items(body: RenewRequest):
    return await _driver().renew_my_items(body)


@app.get("/pickup-locations", response_model=list[PickupLocation])
async def pickup_locations():
    return _driver().get_pickup_locations()


@app.get("/records/{record_id}/holdings", response_model=list[NormalizedItem])
async def record_holdings(record_id: str):
    return await _driver().get_holding(record_id)


@app.get("/records/{record_id}/status", response_model=list[NormalizedItem])
async def record_status(record_id: str):
    return await _driver().get_status(record_id)


@app.post("/records/statuses", response_model=list[list[NormalizedItem]])
async def record_statuses(body: IdListRequest):
    return await _driver().get_statuses(body.ids)


# Search


@app.get("/search", response_model=RecordCollection)
async def search(
    q: str = "",
    offset: int = QueryParam(0, ge=0),
    limit: int = QueryParam(20, ge=0),
    spellcheck_q: str | None = QueryParam(None, alias="spellcheck.q"),
):
    params = ParamBag()
    if spellcheck_q:
        params.set("spellcheck.q", spellcheck_q)
    return await _backend().search(Query(q), offset, limit, params)


@app.post("/records/batch", response_model=RecordCollection)
async def retrieve_batch(body: IdListRequest):
    return await _backend().retrieve_batch(body.ids)


@app.get("/records/{record_id}", response_model=RecordCollection)
async def retrieve(record_id: str):
    return await _backend().retrieve(record_id)


@app.get("/records/{record_id}/similar", response_model=RecordCollection)
async def similar(record_id: str):
    return await _backend().similar(record_id)


@app.get("/terms", response_model=Terms)
async def terms(field: str, start: str = "", limit: int = QueryParam(20, ge=1)):
    return await _backend().terms(field, start, limit)


@app.get("/browse")
async def browse(
    source: str,
    from_: str = QueryParam("", alias="from"),
    page: int = QueryParam(0, ge=0),
    limit: int = QueryParam(20, ge=1),
):
    return await _backend().alphabetic_browse(source, from_, page, limit)
