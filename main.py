import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from birdgallery.config import GallerySettings
from birdgallery.routers import gallery, health
from birdgallery.services.card_renderer import CardRenderer
from birdgallery.services.gallery import Gallery
from birdgallery.services.image_resolver import ImageResolver

logger = logging.getLogger("birdgallery")

def create_app(settings: Optional[GallerySettings] = None,
               client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    settings = settings or GallerySettings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        http_client = client or httpx.AsyncClient(
            headers={"User-Agent": settings.user_agent},
            timeout=settings.request_timeout,
            follow_redirects=True,
        )
        resolver = ImageResolver(http_client, settings)
        app.state.gallery = Gallery(resolver, CardRenderer(settings), settings)
        app.state.gallery.load_from_path(settings.data_path)

        task = None
        if settings.resolve_on_startup and not app.state.gallery.error:
            task = asyncio.create_task(_resolve_in_background(app.state.gallery))

        try:
            yield
        finally:
            if task is not None:
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
            if client is None:
                await http_client.aclose()
                logger.info("Cliente HTTP cerrado")

    app = FastAPI(
        title="Bird Gallery",
        description="Galería de aves por categoría con imágenes de Wikipedia, Wikimedia Commons, Unsplash y Pixabay",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Configurar CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Incluir routers
    app.include_router(health.router)
    app.include_router(gallery.router)

    return app

async def _resolve_in_background(gallery: Gallery):
    try:
        await gallery.resolve_all()
    except asyncio.CancelledError:
        logger.info("Resolución de imágenes cancelada")
        raise
    except Exception:
        logger.exception("La resolución de imágenes en segundo plano falló")

settings = GallerySettings.from_env()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app(settings)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
