import re
from typing import Dict, List, Optional, Set
from urllib.parse import quote

from birdgallery.config import GallerySettings
from birdgallery.models import Bird, DisplayUnit, ImageCandidate, ImageSource
from birdgallery.services.image_resolver import wikipedia_title
from birdgallery.services.placeholder_image import placeholder_url

SOURCE_LABELS = {
    ImageSource.UNSPLASH: "Unsplash",
    ImageSource.PIXABAY: "Pixabay",
    ImageSource.COMMONS: "Wikimedia Commons",
    ImageSource.WIKIPEDIA: "Wikipedia",
}

def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")

def attribution_text(candidate: Optional[ImageCandidate]) -> Optional[str]:
    if candidate is None or candidate.attribution is None:
        return None
    label = SOURCE_LABELS.get(candidate.source, candidate.source.value)
    return f"Photo by {candidate.attribution.name} on {label}"

class CycleState:
    """Índice de imagen actual por unidad (unit_id -> índice)"""

    def __init__(self):
        self._index: Dict[str, int] = {}

    def index(self, unit_id: str) -> int:
        return self._index.get(unit_id, 0)

    def current(self, unit: DisplayUnit) -> Optional[ImageCandidate]:
        if not unit.candidates:
            return None
        return unit.candidates[self.index(unit.unit_id) % len(unit.candidates)]

    def advance(self, unit: DisplayUnit) -> Optional[ImageCandidate]:
        if len(unit.candidates) > 1:
            self._index[unit.unit_id] = (self.index(unit.unit_id) + 1) % len(unit.candidates)
        return self.current(unit)

    def reset(self, unit_id: str):
        self._index.pop(unit_id, None)

class CardRenderer:

    def __init__(self, settings: GallerySettings):
        self.settings = settings
        self.cycles = CycleState()
        self._fallen_back: Set[str] = set()

    def unit_id(self, bird: Bird) -> str:
        return f"{slugify(bird.category)}--{slugify(bird.common_name)}"

    def render(self, bird: Bird, candidates: List[ImageCandidate],
               unit_id: Optional[str] = None, resolved: bool = True) -> DisplayUnit:
        """Construye la unidad visible de un ave a partir de sus candidatos"""
        unit_id = unit_id or self.unit_id(bird)
        self.cycles.reset(unit_id)
        self._fallen_back.discard(unit_id)

        placeholder = placeholder_url(self.settings, bird.common_name)
        first = candidates[0] if candidates else None

        return DisplayUnit(
            unit_id=unit_id,
            common_name=bird.common_name,
            scientific_name=bird.scientific_name,
            category=bird.category,
            image_url=first.url if first else placeholder,
            placeholder_url=placeholder,
            title_link=self.settings.wikipedia_page_url + quote(wikipedia_title(bird.common_name)),
            attribution_text=attribution_text(first),
            candidates=list(candidates),
            resolved=resolved,
        )

    def advance(self, unit: DisplayUnit) -> DisplayUnit:
        """Pasa a la siguiente imagen con vuelta al inicio"""
        candidate = self.cycles.advance(unit)
        if candidate is None:
            return unit
        self._fallen_back.discard(unit.unit_id)
        return unit.model_copy(update={
            "image_url": candidate.url,
            "attribution_text": attribution_text(candidate),
        })

    def image_failed(self, unit: DisplayUnit) -> Optional[str]:
        """
        Placeholder a mostrar cuando falla la carga de una imagen.

        Solo un nivel: si el placeholder también falla se devuelve None.
        """
        if unit.unit_id in self._fallen_back or unit.image_url == unit.placeholder_url:
            return None
        self._fallen_back.add(unit.unit_id)
        return unit.placeholder_url
