import logging
import random
from typing import Any, Awaitable, Callable, Dict, List, Optional
from urllib.parse import quote

import httpx

from birdgallery.config import GallerySettings
from birdgallery.models import Bird, ImageCandidate, ImageSource
from birdgallery.services.errors import ParseFailure, ResolutionError
from birdgallery.services.http import get_json
from birdgallery.services.image_filters import filter_image_titles, pick_near_top
from birdgallery.services.placeholder_image import placeholder_url
from birdgallery.services.stock_photos import search_stock_photos

logger = logging.getLogger(__name__)

COMMONS_FILE_URL = "https://commons.wikimedia.org/wiki/File:"

Strategy = Callable[[Bird], Awaitable[List[ImageCandidate]]]

def wikipedia_title(name: str) -> str:
    return name.strip().replace(" ", "_")

class ImageResolver:
    """
    Resuelve imágenes para un ave probando una cadena de estrategias.

    Cada estrategia recibe el ave y devuelve candidatos; la primera que
    devuelve algo gana. Si todas fallan se devuelve un único placeholder.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: GallerySettings,
        rng: Optional[random.Random] = None,
    ):
        self.client = client
        self.settings = settings
        self.rng = rng or random.Random()
        self.strategies: List[Strategy] = [
            self.commons_category,
            self.commons_search,
            self.wikipedia_summary,
            self.wikipedia_search,
            self.stock_photos,
        ]

    async def resolve(self, bird: Bird) -> List[ImageCandidate]:
        for strategy in self.strategies:
            name = strategy.__name__
            try:
                candidates = await strategy(bird)
            except ResolutionError as e:
                logger.info("Paso %s falló para %s: %s", name, bird.common_name, e)
                continue
            except Exception:
                logger.exception("Error inesperado en el paso %s para %s", name, bird.common_name)
                continue

            if candidates:
                logger.info("Encontradas %d imágenes para %s vía %s",
                            len(candidates), bird.common_name, name)
                return candidates

        logger.info("Sin imágenes para %s, usando placeholder", bird.common_name)
        return [self.placeholder(bird)]

    async def resolve_names(self, common_name: str, scientific_name: str = "",
                            category: str = "") -> List[ImageCandidate]:
        bird = Bird(common_name=common_name, scientific_name=scientific_name, category=category)
        return await self.resolve(bird)

    def placeholder(self, bird: Bird) -> ImageCandidate:
        return ImageCandidate(
            url=placeholder_url(self.settings, bird.common_name),
            link=self.settings.wikipedia_page_url + quote(wikipedia_title(bird.common_name)),
            source=ImageSource.PLACEHOLDER,
        )

    # Wikimedia Commons

    async def commons_category(self, bird: Bird) -> List[ImageCandidate]:
        if not bird.scientific_name:
            return []

        data = await self._get(self.settings.commons_api_url, {
            "action": "query",
            "list": "categorymembers",
            "cmtitle": f"Category:{bird.scientific_name}",
            "cmtype": "file",
            "cmlimit": 50,
            "format": "json",
        })
        members = self._query_list(data, "categorymembers")
        return await self._commons_images([item["title"] for item in members])

    async def commons_search(self, bird: Bird) -> List[ImageCandidate]:
        if not bird.scientific_name:
            return []

        data = await self._get(self.settings.commons_api_url, {
            "action": "query",
            "list": "search",
            "srsearch": f"{bird.scientific_name} incategory:Birds",
            "srnamespace": 6,
            "format": "json",
        })
        results = self._query_list(data, "search")
        return await self._commons_images([item["title"] for item in results])

    async def _commons_images(self, titles: List[str]) -> List[ImageCandidate]:
        usable = filter_image_titles(titles, limit=self.settings.max_commons_images)
        if not usable:
            return []

        data = await self._get(self.settings.commons_api_url, {
            "action": "query",
            "titles": "|".join(usable),
            "prop": "imageinfo",
            "iiprop": "url",
            "format": "json",
        })

        try:
            query = data.get("query") or {}
            # MediaWiki puede normalizar los títulos pedidos
            renamed = {item["from"]: item["to"] for item in query.get("normalized", [])}
            urls: Dict[str, str] = {}
            for page in (query.get("pages") or {}).values():
                info = page.get("imageinfo") or []
                if info and info[0].get("url"):
                    urls[page["title"]] = info[0]["url"]
        except (AttributeError, KeyError, TypeError) as e:
            raise ParseFailure(f"imageinfo de Commons con formato inesperado: {e}")

        images = []
        for title in usable:
            url = urls.get(renamed.get(title, title))
            if not url:
                continue
            file_name = title.split(":", 1)[1] if title.startswith("File:") else title
            images.append(ImageCandidate(
                url=url,
                link=COMMONS_FILE_URL + quote(file_name.replace(" ", "_")),
                source=ImageSource.COMMONS,
            ))
        return images

    # Wikipedia

    async def wikipedia_summary(self, bird: Bird) -> List[ImageCandidate]:
        return await self._summary_images(bird.common_name)

    async def wikipedia_search(self, bird: Bird) -> List[ImageCandidate]:
        data = await self._get(self.settings.wikipedia_api_url, {
            "action": "query",
            "list": "search",
            "srsearch": f"{bird.common_name} bird",
            "srlimit": 1,
            "format": "json",
        })
        results = self._query_list(data, "search")
        if not results:
            return []
        return await self._summary_images(results[0]["title"])

    async def _summary_images(self, title: str) -> List[ImageCandidate]:
        url = self.settings.wikipedia_summary_url + quote(wikipedia_title(title), safe="")
        data = await self._get(url)

        try:
            thumbnail = (data.get("thumbnail") or {}).get("source")
            if not thumbnail:
                return []
            page = ((data.get("content_urls") or {}).get("desktop") or {}).get("page") \
                or self.settings.wikipedia_page_url + quote(wikipedia_title(title))
            original = (data.get("originalimage") or {}).get("source")
        except AttributeError as e:
            raise ParseFailure(f"Resumen de Wikipedia con formato inesperado: {e}")

        images = [ImageCandidate(url=thumbnail, link=page, source=ImageSource.WIKIPEDIA)]
        if original and original != thumbnail:
            images.append(ImageCandidate(url=original, link=page, source=ImageSource.WIKIPEDIA))
        return images

    # Bancos de fotos

    async def stock_photos(self, bird: Bird) -> List[ImageCandidate]:
        if not self.settings.stock_photos_enabled:
            return []
        scored = await search_stock_photos(self.client, self.settings, bird)
        return pick_near_top(scored, self.settings.selection_margin,
                             self.settings.selection_pool, self.rng)

    # Utilidades

    async def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        data = await get_json(self.client, url, params=params)
        if not isinstance(data, dict):
            raise ParseFailure(f"Se esperaba un objeto JSON desde {url}")
        return data

    def _query_list(self, data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
        query = data.get("query") or {}
        if not isinstance(query, dict):
            raise ParseFailure("Campo 'query' con formato inesperado")
        items = query.get(key) or []
        if not isinstance(items, list) or not all(isinstance(item, dict) and "title" in item for item in items):
            raise ParseFailure(f"Lista '{key}' con formato inesperado")
        return items
