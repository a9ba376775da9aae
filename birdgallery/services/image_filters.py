import random
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar

ALLOWED_EXTENSIONS = (".jpg", ".jpeg", ".png")
EXCLUDED_KEYWORDS = ("map", "distribution", "range", "diagram", "icon", "logo", "wiki")

BIRD_KEYWORDS = ("bird", "birds", "avian", "wildlife", "nature", "feathers", "ornithology", "birding")

COMMON_NAME_POINTS = 10
SCIENTIFIC_NAME_POINTS = 15
KEYWORD_POINTS = 2
LOCALE_POINTS = 5
MAX_POPULARITY_BONUS = 5.0

T = TypeVar("T")

def is_usable_image_title(title: str) -> bool:
    """Acepta solo jpg/jpeg/png cuyo título no sugiera mapas, diagramas o iconos"""
    lowered = title.lower()
    if not lowered.endswith(ALLOWED_EXTENSIONS):
        return False
    return not any(keyword in lowered for keyword in EXCLUDED_KEYWORDS)

def filter_image_titles(titles: Iterable[str], limit: Optional[int] = None) -> List[str]:
    usable = [title for title in titles if is_usable_image_title(title)]
    if limit is not None:
        return usable[:limit]
    return usable

def relevance_score(
    text: str,
    tags: Sequence[str],
    common_name: str,
    scientific_name: str,
    locale: str,
    popularity: float = 0,
) -> float:
    """
    Puntúa un resultado de banco de fotos según coincidencias textuales.

    +10 por el nombre común, +15 por el nombre científico, +2 por cada
    etiqueta relacionada con aves, +5 si aparece la localidad y hasta 5
    puntos extra por popularidad (likes / 10).
    """
    lowered_tags = [tag.strip().lower() for tag in tags if tag and tag.strip()]
    haystack = " ".join([text.lower()] + lowered_tags)

    score = 0.0
    if common_name and common_name.lower() in haystack:
        score += COMMON_NAME_POINTS
    if scientific_name and scientific_name.lower() in haystack:
        score += SCIENTIFIC_NAME_POINTS
    score += KEYWORD_POINTS * sum(1 for tag in lowered_tags if tag in BIRD_KEYWORDS)
    if locale and locale.lower() in haystack:
        score += LOCALE_POINTS
    if popularity and popularity > 0:
        score += min(popularity / 10.0, MAX_POPULARITY_BONUS)
    return score

def near_top(scored: Sequence[Tuple[float, T]], margin: float, pool: int) -> List[T]:
    """Candidatos a no más de `margin` puntos del máximo, limitados a los `pool` mejores"""
    if not scored:
        return []
    ranked = sorted(scored, key=lambda pair: pair[0], reverse=True)
    best = ranked[0][0]
    return [item for score, item in ranked[:pool] if best - score <= margin]

def pick_near_top(
    scored: Sequence[Tuple[float, T]],
    margin: float,
    pool: int,
    rng: Optional[random.Random] = None,
) -> List[T]:
    """
    Elige al azar entre los mejores candidatos para dar variedad visual.

    Devuelve el elegido primero, seguido del resto del grupo cercano al máximo.
    """
    candidates = near_top(scored, margin, pool)
    if not candidates:
        return []
    chooser = rng or random
    chosen = chooser.choice(candidates)
    return [chosen] + [item for item in candidates if item is not chosen]
