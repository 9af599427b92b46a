import logging
import os
from contextlib import asynccontextmanager

import crud
import database
import errors
import exports
import models
import schemas
from config import Settings, load_settings
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

logger = logging.getLogger("shortlinks")

router = APIRouter()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_object_store(request: Request):
    return request.app.state.object_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    engine = database.make_engine(settings.database_url)
    # --- DB tables ---
    models.Base.metadata.create_all(bind=engine)
    app.state.session_factory = database.make_session_factory(engine)
    app.state.object_store = exports.make_s3_client(settings)
    logger.info("Started (env=%s, db=%s)", settings.environment, engine.url.render_as_string())
    try:
        yield
    finally:
        engine.dispose()
        logger.info("Database engine disposed")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()

    # --- Logging ---
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    app = FastAPI(
        title="Short Links",
        description="Shorten URLs, redirect visitors while counting visits, and export links as CSV.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    app.include_router(router)
    return app


# Health check (useful for uptime monitors & load balancers)
@router.get("/health", include_in_schema=False)
def health(settings: Settings = Depends(get_settings)):
    return {"status": "ok", "env": settings.environment}

# ---------- API ----------
@router.post("/links", response_model=schemas.LinkCreated, status_code=201)
def create_link(link_in: schemas.LinkCreate, db=Depends(database.get_db)):
    try:
        link = crud.create_link(db, link_in)
    except errors.InvalidShortCode as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except errors.ShortCodeConflict as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except errors.LinkCreationFailed as exc:
        logger.error("Gave up creating link for %s after %d attempts", link_in.original_url, exc.attempts)
        raise HTTPException(status_code=500, detail=str(exc))
    logger.info("Created link %s -> %s", link.short_code, link.original_url)
    return link

@router.get("/links", response_model=schemas.LinkPage, response_model_exclude_none=True)
def list_links(
    limit: int = Query(crud.DEFAULT_PAGE_SIZE, ge=1),
    cursor: str | None = Query(None),
    db=Depends(database.get_db),
):
    try:
        items, next_cursor = crud.get_links(db, limit=limit, after=cursor)
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid cursor")
    return {"items": items, "next_cursor": next_cursor}

@router.delete("/links/{link_id}", status_code=204)
def delete_link(link_id: str, db=Depends(database.get_db)):
    if not crud.delete_link(db, link_id):
        raise HTTPException(status_code=404, detail="not found")
    logger.info("Deleted link %s", link_id)
    return Response(status_code=204)

@router.get("/links/{short_code}", response_model=schemas.LinkOut)
def get_link(short_code: str, db=Depends(database.get_db)):
    link = crud.get_link(db, short_code)
    if not link:
        raise HTTPException(status_code=404, detail="not found")
    return link

@router.get("/r/{short_code}", include_in_schema=False)
def redirect(short_code: str, db=Depends(database.get_db)):
    target = crud.record_visit(db, short_code)
    if target is None:
        raise HTTPException(status_code=404, detail="not found")
    return RedirectResponse(url=target, status_code=302)

@router.post("/exports", response_model=schemas.ExportOut)
def create_export(
    db=Depends(database.get_db),
    object_store=Depends(get_object_store),
    settings: Settings = Depends(get_settings),
):
    try:
        url = exports.export_links(db, object_store, settings)
    except errors.ExportFailed as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return {"url": url}


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
