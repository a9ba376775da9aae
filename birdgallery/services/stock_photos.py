import logging
from typing import Any, Callable, Dict, List, Tuple

import httpx

from birdgallery.config import GallerySettings
from birdgallery.models import Attribution, Bird, ImageCandidate, ImageSource
from birdgallery.services.errors import ParseFailure, ResolutionError
from birdgallery.services.http import get_json
from birdgallery.services.image_filters import relevance_score

logger = logging.getLogger(__name__)

ScoredCandidate = Tuple[float, ImageCandidate]

def build_queries(bird: Bird, settings: GallerySettings) -> List[str]:
    queries = []
    for template in settings.stock_query_templates:
        if "{scientific_name}" in template and not bird.scientific_name:
            continue
        query = template.format(
            common_name=bird.common_name,
            scientific_name=bird.scientific_name,
            locale=settings.locale,
        ).strip()
        if query and query not in queries:
            queries.append(query)
    return queries

def score_items(
    provider: str,
    data: Any,
    key: str,
    score: Callable[[Dict[str, Any], Bird], ScoredCandidate],
    bird: Bird,
) -> List[ScoredCandidate]:
    """Puntúa cada resultado; los mal formados se registran y se omiten"""
    if not isinstance(data, dict):
        raise ParseFailure(f"Respuesta de {provider} con formato inesperado: se esperaba un objeto")
    items = data.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ParseFailure(f"Respuesta de {provider} con formato inesperado: se esperaba una lista")

    scored = []
    for item in items:
        try:
            scored.append(score(item, bird))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.info("Resultado de %s omitido por formato inesperado: %s", provider, e)
    return scored

class UnsplashClient:

    def __init__(self, client: httpx.AsyncClient, settings: GallerySettings):
        self.client = client
        self.settings = settings

    async def search(self, query: str, bird: Bird) -> List[ScoredCandidate]:
        data = await get_json(self.client, self.settings.unsplash_api_url, params={
            "query": query,
            "per_page": self.settings.stock_results_per_query,
            "client_id": self.settings.unsplash_access_key,
        })
        return score_items("Unsplash", data, "results", self._score, bird)

    def _score(self, item: Dict[str, Any], bird: Bird) -> ScoredCandidate:
        text = " ".join(filter(None, [item.get("description"), item.get("alt_description")]))
        tags = [tag.get("title", "") for tag in item.get("tags") or []]
        user = item.get("user") or {}

        candidate = ImageCandidate(
            url=item["urls"]["regular"],
            link=item["links"]["html"],
            attribution=Attribution(
                name=user.get("name") or user.get("username") or "Unsplash",
                username=user.get("username") or "",
                link=(user.get("links") or {}).get("html", ""),
            ),
            source=ImageSource.UNSPLASH,
        )
        score = relevance_score(text, tags, bird.common_name, bird.scientific_name,
                                self.settings.locale, item.get("likes") or 0)
        return score, candidate

class PixabayClient:

    def __init__(self, client: httpx.AsyncClient, settings: GallerySettings):
        self.client = client
        self.settings = settings

    async def search(self, query: str, bird: Bird) -> List[ScoredCandidate]:
        data = await get_json(self.client, self.settings.pixabay_api_url, params={
            "key": self.settings.pixabay_api_key,
            "q": query,
            "image_type": "photo",
            "per_page": self.settings.stock_results_per_query,
        })
        return score_items("Pixabay", data, "hits", self._score, bird)

    def _score(self, hit: Dict[str, Any], bird: Bird) -> ScoredCandidate:
        # Pixabay devuelve las etiquetas como una cadena separada por comas
        tags = (hit.get("tags") or "").split(",")
        user = hit.get("user") or "Pixabay"

        candidate = ImageCandidate(
            url=hit.get("webformatURL") or hit["largeImageURL"],
            link=hit["pageURL"],
            attribution=Attribution(
                name=user,
                username=user,
                link=f"https://pixabay.com/users/{user}-{hit.get('user_id', '')}/",
            ),
            source=ImageSource.PIXABAY,
        )
        score = relevance_score("", tags, bird.common_name, bird.scientific_name,
                                self.settings.locale, hit.get("likes") or 0)
        return score, candidate

async def search_stock_photos(
    client: httpx.AsyncClient,
    settings: GallerySettings,
    bird: Bird,
) -> List[ScoredCandidate]:
    """
    Consulta Unsplash y Pixabay con todas las plantillas configuradas.

    Un proveedor o consulta que falla se registra y se omite; los resultados
    se deduplican por URL conservando la mejor puntuación.
    """
    providers = []
    if settings.unsplash_access_key:
        providers.append(UnsplashClient(client, settings))
    if settings.pixabay_api_key:
        providers.append(PixabayClient(client, settings))

    best: Dict[str, ScoredCandidate] = {}
    for query in build_queries(bird, settings):
        for provider in providers:
            try:
                results = await provider.search(query, bird)
            except ResolutionError as e:
                logger.info("%s sin resultados para '%s': %s", type(provider).__name__, query, e)
                continue
            for score, candidate in results:
                current = best.get(candidate.url)
                if current is None or score > current[0]:
                    best[candidate.url] = (score, candidate)

    return list(best.values())
