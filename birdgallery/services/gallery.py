import asyncio
import logging
from typing import Dict, List, Optional

from birdgallery.config import GallerySettings
from birdgallery.models import (
    Bird,
    BirdCatalog,
    CategoryView,
    DisplayUnit,
    FilterResult,
    GalleryView,
)
from birdgallery.services.bird_loader import load_bird_catalog
from birdgallery.services.card_renderer import CardRenderer
from birdgallery.services.errors import BirdDataError
from birdgallery.services.filter_controller import FilterController
from birdgallery.services.image_resolver import ImageResolver

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Failed to load bird data. Please try again later."

class UnitNotFound(KeyError):
    pass

class Gallery:
    """
    Estado en memoria de la galería.

    Carga en dos pasadas: `load` crea todas las unidades con placeholder y
    `resolve_all` resuelve las imágenes de forma progresiva, reemplazando
    cada unidad cuando su resolución termina.
    """

    def __init__(self, resolver: ImageResolver, renderer: CardRenderer, settings: GallerySettings):
        self.resolver = resolver
        self.renderer = renderer
        self.settings = settings
        self.catalog: Optional[BirdCatalog] = None
        self.error: Optional[str] = None
        self.units: Dict[str, DisplayUnit] = {}
        self._birds: Dict[str, Bird] = {}

    def load_from_path(self, path: Optional[str] = None) -> bool:
        try:
            catalog = load_bird_catalog(path)
        except BirdDataError as e:
            logger.error("Error cargando aves: %s", e)
            self.error = LOAD_ERROR_MESSAGE
            return False
        self.load(catalog)
        return True

    def load(self, catalog: BirdCatalog):
        """Primera pasada: una unidad con placeholder por ave"""
        self.catalog = catalog
        self.error = None
        self.units = {}
        self._birds = {}

        for bird in catalog.birds():
            unit_id = base_id = self.renderer.unit_id(bird)
            suffix = 2
            while unit_id in self.units:
                unit_id = f"{base_id}-{suffix}"
                suffix += 1
            self._birds[unit_id] = bird
            self.units[unit_id] = self.renderer.render(bird, [], unit_id=unit_id, resolved=False)

    async def resolve_unit(self, unit_id: str) -> DisplayUnit:
        bird = self._bird(unit_id)
        candidates = await self.resolver.resolve(bird)
        unit = self.renderer.render(bird, candidates, unit_id=unit_id)
        self.units[unit_id] = unit
        return unit

    async def resolve_all(self):
        """Segunda pasada: resolución concurrente limitada y con pausa entre peticiones"""
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)

        async def worker(unit_id: str):
            async with semaphore:
                await self.resolve_unit(unit_id)
                if self.settings.throttle_delay:
                    await asyncio.sleep(self.settings.throttle_delay)

        pending = [unit_id for unit_id, unit in self.units.items() if not unit.resolved]
        logger.info("Resolviendo imágenes para %d aves", len(pending))
        await asyncio.gather(*(worker(unit_id) for unit_id in pending))
        logger.info("Resolución de imágenes completada")

    def get_unit(self, unit_id: str) -> DisplayUnit:
        try:
            return self.units[unit_id]
        except KeyError:
            raise UnitNotFound(unit_id)

    def advance(self, unit_id: str) -> DisplayUnit:
        unit = self.renderer.advance(self.get_unit(unit_id))
        self.units[unit_id] = unit
        return unit

    def image_failed(self, unit_id: str) -> Optional[str]:
        unit = self.get_unit(unit_id)
        fallback = self.renderer.image_failed(unit)
        if fallback:
            self.units[unit_id] = unit.model_copy(update={"image_url": fallback, "attribution_text": None})
        return fallback

    def filter(self, query: str, match_scientific: bool = False) -> FilterController:
        categories = self.catalog.categories if self.catalog else ()
        controller = FilterController(match_scientific=match_scientific)
        controller.on_query_change(query, self.units.values(), categories)
        return controller

    def filter_result(self, query: str, match_scientific: bool = False) -> FilterResult:
        return self.filter(query, match_scientific).result

    @property
    def pending(self) -> int:
        return sum(1 for unit in self.units.values() if not unit.resolved)

    def categories(self) -> List[CategoryView]:
        if self.catalog is None:
            return []
        grouped: Dict[str, List[DisplayUnit]] = {name: [] for name in self.catalog.categories}
        for unit in self.units.values():
            grouped.setdefault(unit.category, []).append(unit)
        return [CategoryView(name=name, units=units) for name, units in grouped.items()]

    def view(self) -> GalleryView:
        return GalleryView(
            title=self.catalog.title if self.catalog else None,
            description=self.catalog.description if self.catalog else None,
            categories=self.categories(),
            pending=self.pending,
            error=self.error,
        )

    def _bird(self, unit_id: str) -> Bird:
        try:
            return self._birds[unit_id]
        except KeyError:
            raise UnitNotFound(unit_id)
