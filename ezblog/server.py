"""
HTTP surface for the content layer.

Exposes the orchestrator to the site's page renderer and to crawlers:
- GET  /api/content           content envelope (HTTP 500 only on source="error")
- POST /api/content/refresh   invalidate and refetch
- GET  /api/posts/{slug}      one published post plus related posts
- GET  /api/page/{page_id}    raw block tree for the renderer
- GET  /feed.xml              RSS feed
- GET  /sitemap.xml           sitemap
- GET  /health
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from .config import AppConfig, load_config
from .core.errors import NotFound, RemoteUnavailable
from .core.orchestrator import ContentOrchestrator
from .core.types import SOURCE_ERROR
from .output.feed import render_feed
from .output.related import related_posts
from .output.sitemap import render_sitemap
from .runner import build_orchestrator


router = APIRouter()

XML_CACHE_CONTROL = "public, max-age=3600, s-maxage=3600"


def _orchestrator(request: Request) -> ContentOrchestrator:
    return request.app.state.orchestrator


def _config(request: Request) -> AppConfig:
    return request.app.state.config


@router.get("/health")
def health(request: Request):
    orchestrator = _orchestrator(request)
    key = orchestrator.source_key
    return {
        "status": "ok",
        "source_configured": key is not None,
        "cache_age": orchestrator.cache.age(key) if key else None,
    }


@router.get("/api/content")
def content(request: Request):
    result = _orchestrator(request).fetch_content()
    status_code = 500 if result.source == SOURCE_ERROR else 200
    return JSONResponse(result.to_dict(), status_code=status_code)


@router.post("/api/content/refresh")
def refresh(request: Request):
    result = _orchestrator(request).refresh()
    status_code = 500 if result.source == SOURCE_ERROR else 200
    return JSONResponse(result.to_dict(), status_code=status_code)


@router.get("/api/posts/{slug}")
def post_detail(slug: str, request: Request):
    result = _orchestrator(request).fetch_content()
    published = result.published_posts()
    post = next((item for item in published if item.slug == slug), None)
    if post is None:
        raise HTTPException(status_code=404, detail=f"Post {slug!r} not found")
    return {
        "post": post.to_dict(),
        "related": [item.to_dict() for item in related_posts(post, published)],
        "source": result.source,
    }


@router.get("/api/page/{page_id}")
def page_blocks(page_id: str, request: Request):
    try:
        tree = _orchestrator(request).fetch_blocks(page_id)
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except RemoteUnavailable as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return tree.to_dict()


@router.get("/feed.xml")
def feed(request: Request):
    result = _orchestrator(request).fetch_content()
    body = render_feed(result, _config(request).site)
    return Response(
        content=body,
        media_type="application/xml",
        headers={"Cache-Control": XML_CACHE_CONTROL},
    )


@router.get("/sitemap.xml")
def sitemap(request: Request):
    result = _orchestrator(request).fetch_content()
    body = render_sitemap(result, _config(request).site)
    return Response(
        content=body,
        media_type="application/xml",
        headers={"Cache-Control": XML_CACHE_CONTROL},
    )


@asynccontextmanager
async def _lifespan(app: FastAPI):
    yield
    app.state.orchestrator.client.close()


def create_app(
    cfg: AppConfig | None = None,
    orchestrator: ContentOrchestrator | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    One orchestrator (and therefore one content cache) is shared by every
    request handled by the process.
    """
    cfg = cfg or load_config(None)
    app = FastAPI(title=cfg.site.title, lifespan=_lifespan)
    app.state.config = cfg
    app.state.orchestrator = orchestrator or build_orchestrator(cfg)
    app.include_router(router)
    return app
