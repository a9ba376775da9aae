from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import Dict, List, Optional

class ImageSource(str, Enum):
    WIKIPEDIA = "wikipedia"
    COMMONS = "commons"
    UNSPLASH = "unsplash"
    PIXABAY = "pixabay"
    PLACEHOLDER = "placeholder"

class Bird(BaseModel):
    model_config = ConfigDict(frozen=True)

    common_name: str = Field(..., description="Nombre común del ave")
    scientific_name: str = Field("", description="Nombre científico del ave")
    category: str = Field(..., description="Categoría a la que pertenece")

class Attribution(BaseModel):
    name: str = Field(..., description="Nombre del autor de la foto")
    username: str = Field("", description="Usuario del autor en la fuente")
    link: str = Field("", description="Perfil del autor")

class ImageCandidate(BaseModel):
    url: str = Field(..., description="URL de la imagen")
    link: str = Field(..., description="Página de origen de la imagen")
    attribution: Optional[Attribution] = None
    source: ImageSource

class BirdCatalog(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    categories: Dict[str, List[Bird]] = Field(default_factory=dict)

    def birds(self) -> List[Bird]:
        return [bird for members in self.categories.values() for bird in members]

class DisplayUnit(BaseModel):
    unit_id: str
    common_name: str
    scientific_name: str = ""
    category: str
    image_url: str = Field(..., description="Imagen mostrada actualmente")
    placeholder_url: str
    title_link: str = Field(..., description="Artículo de Wikipedia del ave")
    attribution_text: Optional[str] = None
    candidates: List[ImageCandidate] = Field(default_factory=list)
    resolved: bool = False

    @computed_field
    @property
    def cyclable(self) -> bool:
        return len(self.candidates) > 1

class CategoryView(BaseModel):
    name: str
    units: List[DisplayUnit]

class GalleryView(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    categories: List[CategoryView] = Field(default_factory=list)
    pending: int = Field(0, description="Unidades que aún esperan imagen")
    error: Optional[str] = None

class FilterResult(BaseModel):
    query: str
    visible_units: List[str]
    visible_categories: List[str]

class ImageErrorResponse(BaseModel):
    fallback_url: Optional[str] = Field(None, description="Placeholder a mostrar, o null si ya se usó")

class HealthResponse(BaseModel):
    status: str = Field(..., description="Estado del servicio")
    service: str = Field(..., description="Nombre del servicio")
    birds: int = Field(0, description="Aves cargadas en la galería")
    pending: int = Field(0, description="Aves cuya imagen aún se está resolviendo")

class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Descripción del error")
