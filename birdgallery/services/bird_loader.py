import json
import logging
import os
from typing import Any, Dict, Optional

from pydantic import ValidationError

from birdgallery.models import Bird, BirdCatalog
from birdgallery.services.errors import BirdDataError

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "data",
    "birds_of_costa_rica.json",
)

METADATA_KEYS = ("title", "description")

def load_bird_catalog(path: Optional[str] = None) -> BirdCatalog:
    """
    Carga la lista categorizada de aves desde el recurso JSON.

    Las claves 'title' y 'description' son metadatos de la página; cualquier
    otra clave es una categoría con una lista de {common_name, scientific_name}.
    """
    data_path = path or DEFAULT_DATA_PATH

    try:
        with open(data_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise BirdDataError(f"No se pudo leer el archivo de aves '{data_path}': {e}")
    except json.JSONDecodeError as e:
        raise BirdDataError(f"El archivo de aves no es un JSON válido: {e}")

    catalog = parse_bird_catalog(raw)
    logger.info("Cargadas %d aves en %d categorías desde %s",
                len(catalog.birds()), len(catalog.categories), data_path)
    return catalog

def parse_bird_catalog(raw: Any) -> BirdCatalog:
    if not isinstance(raw, dict):
        raise BirdDataError("Los datos de aves deben ser un objeto JSON")

    categories: Dict[str, list] = {}
    for key, value in raw.items():
        if key in METADATA_KEYS:
            continue
        if not isinstance(value, list):
            raise BirdDataError(f"La categoría '{key}' debe ser una lista de aves")

        members = []
        for entry in value:
            if not isinstance(entry, dict):
                raise BirdDataError(f"Entrada inválida en la categoría '{key}': {entry!r}")
            try:
                members.append(Bird(
                    common_name=entry["common_name"],
                    scientific_name=entry.get("scientific_name") or "",
                    category=key,
                ))
            except (KeyError, ValidationError) as e:
                raise BirdDataError(f"Ave inválida en la categoría '{key}': {e}")
        categories[key] = members

    try:
        return BirdCatalog(
            title=raw.get("title"),
            description=raw.get("description"),
            categories=categories,
        )
    except ValidationError as e:
        raise BirdDataError(f"Metadatos de la galería inválidos: {e}")
