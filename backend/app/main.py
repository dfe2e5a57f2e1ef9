import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import biens, contrats, locataires, loyers, proprietaires, quittances
from app.api.responses import error_response
from app.db.database import init_db

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(
    title="Gestion Locative API",
    description="Suivi des loyers, paiements et quittances d'un parc locatif",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error("%s %s: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=error_response(str(exc.detail)))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(p) for p in err["loc"] if p != "body"),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=422, content=error_response("Données invalides", details))


app.include_router(proprietaires.router, prefix="/api/proprietaires", tags=["proprietaires"])
app.include_router(biens.router, prefix="/api/biens", tags=["biens"])
app.include_router(locataires.router, prefix="/api/locataires", tags=["locataires"])
app.include_router(contrats.router, prefix="/api/contrats", tags=["contrats"])
app.include_router(loyers.router, prefix="/api/loyers", tags=["loyers"])
app.include_router(quittances.router, prefix="/api/quittances", tags=["quittances"])


@app.get("/health")
def health_check():
    return {"status": "ok", "version": "0.1.0"}
