from typing import List
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from birdgallery.models import (
    DisplayUnit,
    ErrorResponse,
    FilterResult,
    GalleryView,
    ImageCandidate,
    ImageErrorResponse,
)
from birdgallery.services.gallery import Gallery, UnitNotFound
from birdgallery.services.image_resolver import ImageResolver
from birdgallery.services.page import render_page
from birdgallery.services.placeholder_image import render_placeholder_png

router = APIRouter(tags=["gallery"])

def get_gallery(request: Request) -> Gallery:
    return request.app.state.gallery

def get_resolver(request: Request) -> ImageResolver:
    return request.app.state.gallery.resolver

@router.get("/", response_class=HTMLResponse)
async def gallery_page(q: str = "", gallery: Gallery = Depends(get_gallery)):
    """Página HTML de la galería; `q` aplica el filtro por nombre"""
    controller = gallery.filter(q) if q else None
    status_code = 500 if gallery.error else 200
    return HTMLResponse(render_page(gallery.view(), q, controller), status_code=status_code)

@router.post("/units/{unit_id}/next")
async def next_image_form(unit_id: str, q: str = "", gallery: Gallery = Depends(get_gallery)):
    """Destino del formulario de cada tarjeta: avanza la imagen y vuelve a la página"""
    try:
        gallery.advance(unit_id)
    except UnitNotFound:
        raise HTTPException(status_code=404, detail=f"Unidad '{unit_id}' no encontrada")

    target = f"/?q={quote(q)}" if q else "/"
    return RedirectResponse(f"{target}#{quote(unit_id)}", status_code=303)

@router.get("/api/gallery", response_model=GalleryView)
async def gallery_view(gallery: Gallery = Depends(get_gallery)):
    return gallery.view()

@router.get("/api/gallery/filter", response_model=FilterResult,
            responses={500: {"model": ErrorResponse}})
async def filter_gallery(
    q: str = "",
    scientific: bool = Query(False, description="Incluir el nombre científico en la búsqueda"),
    gallery: Gallery = Depends(get_gallery),
):
    if gallery.error:
        raise HTTPException(status_code=500, detail=gallery.error)
    return gallery.filter_result(q, match_scientific=scientific)

@router.post("/api/units/{unit_id}/next", response_model=DisplayUnit,
             responses={404: {"model": ErrorResponse}})
async def next_image(unit_id: str, gallery: Gallery = Depends(get_gallery)):
    try:
        return gallery.advance(unit_id)
    except UnitNotFound:
        raise HTTPException(status_code=404, detail=f"Unidad '{unit_id}' no encontrada")

@router.post("/api/units/{unit_id}/image-error", response_model=ImageErrorResponse,
             responses={404: {"model": ErrorResponse}})
async def image_error(unit_id: str, gallery: Gallery = Depends(get_gallery)):
    """Registra un fallo de carga y devuelve el placeholder (solo la primera vez)"""
    try:
        return ImageErrorResponse(fallback_url=gallery.image_failed(unit_id))
    except UnitNotFound:
        raise HTTPException(status_code=404, detail=f"Unidad '{unit_id}' no encontrada")

@router.get("/api/birds/resolve", response_model=List[ImageCandidate])
async def resolve_bird(
    common_name: str = Query(..., min_length=1),
    scientific_name: str = "",
    resolver: ImageResolver = Depends(get_resolver),
):
    return await resolver.resolve_names(common_name, scientific_name)

@router.get("/placeholder.png")
async def placeholder_png(
    text: str = Query("", max_length=200),
    width: int = Query(300, ge=16, le=2000),
    height: int = Query(200, ge=16, le=2000),
):
    return Response(content=render_placeholder_png(text, width, height), media_type="image/png")
