import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_QUERY_TEMPLATES = [
    "{common_name} bird",
    "{common_name} bird {locale}",
    "{scientific_name} bird photo",
]

class GallerySettings(BaseModel):
    """Configuración explícita de la galería y del resolver de imágenes"""

    unsplash_access_key: Optional[str] = None
    pixabay_api_key: Optional[str] = None

    commons_api_url: str = "https://commons.wikimedia.org/w/api.php"
    wikipedia_api_url: str = "https://en.wikipedia.org/w/api.php"
    wikipedia_summary_url: str = "https://en.wikipedia.org/api/rest_v1/page/summary/"
    wikipedia_page_url: str = "https://en.wikipedia.org/wiki/"
    unsplash_api_url: str = "https://api.unsplash.com/search/photos"
    pixabay_api_url: str = "https://pixabay.com/api/"
    placeholder_template: str = "https://placehold.co/300x200?text={text}"
    user_agent: str = "BirdGallery/1.0 (educational bird gallery)"

    data_path: Optional[str] = None
    locale: str = "Costa Rica"
    stock_query_templates: List[str] = Field(default_factory=lambda: list(DEFAULT_QUERY_TEMPLATES))
    stock_results_per_query: int = Field(10, ge=1)
    max_commons_images: int = Field(5, ge=1)

    selection_margin: float = Field(2.0, ge=0)
    selection_pool: int = Field(3, ge=1)

    max_concurrency: int = Field(4, ge=1)
    throttle_delay: float = Field(0.1, ge=0)
    request_timeout: float = Field(10.0, gt=0)
    resolve_on_startup: bool = True
    log_level: str = "INFO"

    @property
    def stock_photos_enabled(self) -> bool:
        return bool(self.unsplash_access_key or self.pixabay_api_key)

    @classmethod
    def from_env(cls) -> "GallerySettings":
        """Construye la configuración a partir de variables de entorno (.env incluido)"""
        values = {
            "unsplash_access_key": os.getenv("UNSPLASH_ACCESS_KEY") or None,
            "pixabay_api_key": os.getenv("PIXABAY_API_KEY") or None,
            "data_path": os.getenv("BIRD_DATA_PATH") or None,
            "locale": os.getenv("GALLERY_LOCALE"),
            "placeholder_template": os.getenv("GALLERY_PLACEHOLDER_TEMPLATE"),
            "user_agent": os.getenv("GALLERY_USER_AGENT"),
            "log_level": os.getenv("LOG_LEVEL"),
            "max_concurrency": _int_env("GALLERY_MAX_CONCURRENCY"),
            "selection_pool": _int_env("GALLERY_SELECTION_POOL"),
            "throttle_delay": _float_env("GALLERY_THROTTLE_DELAY"),
            "request_timeout": _float_env("GALLERY_REQUEST_TIMEOUT"),
            "selection_margin": _float_env("GALLERY_SELECTION_MARGIN"),
            "resolve_on_startup": _bool_env("GALLERY_RESOLVE_ON_STARTUP"),
        }
        return cls(**{key: value for key, value in values.items() if value is not None})

def _int_env(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} debe ser un número entero, se recibió '{raw}'")

def _float_env(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} debe ser un número, se recibió '{raw}'")

def _bool_env(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")
