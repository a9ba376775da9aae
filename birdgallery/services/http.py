from typing import Any, Dict, Optional

import httpx

from birdgallery.services.errors import NetworkFailure, ParseFailure

async def get_json(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[Dict[str, Any]] = None,
) -> Any:
    """GET que devuelve el JSON decodificado o lanza NetworkFailure / ParseFailure"""
    try:
        response = await client.get(url, params=params)
    except httpx.HTTPError as e:
        raise NetworkFailure(f"Error de red consultando {url}: {e}")

    if not response.is_success:
        raise NetworkFailure(f"{url} respondió HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as e:
        raise ParseFailure(f"Respuesta no JSON desde {url}: {e}")
