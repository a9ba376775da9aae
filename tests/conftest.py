import json
from urllib.parse import unquote

import httpx
import pytest

from birdgallery.config import GallerySettings
from birdgallery.models import Bird

SUMMARY_PREFIX = "/api/rest_v1/page/summary/"

class FakeApis:
    """Respuestas simuladas de Commons, Wikipedia, Unsplash y Pixabay"""

    def __init__(self):
        self.category_members = {}
        self.commons_search = {}
        self.image_urls = {}
        self.summaries = {}
        self.wikipedia_search = {}
        self.unsplash = {}
        self.pixabay = {}
        self.broken_hosts = set()
        self.fail_all = False
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        params = request.url.params

        if self.fail_all:
            raise httpx.ConnectError("sin red", request=request)
        if host in self.broken_hosts:
            return httpx.Response(500, text="error interno")

        if host == "commons.wikimedia.org":
            if params.get("list") == "categorymembers":
                titles = self.category_members.get(params["cmtitle"], [])
                return httpx.Response(200, json={
                    "batchcomplete": "",
                    "query": {"categorymembers": [{"ns": 6, "title": t} for t in titles]},
                })
            if params.get("list") == "search":
                titles = self.commons_search.get(params["srsearch"], [])
                return httpx.Response(200, json={
                    "query": {"search": [{"ns": 6, "title": t} for t in titles]},
                })
            if params.get("prop") == "imageinfo":
                pages = {}
                for i, title in enumerate(params["titles"].split("|"), start=1):
                    if title in self.image_urls:
                        pages[str(1000 + i)] = {"title": title, "imageinfo": [{"url": self.image_urls[title]}]}
                    else:
                        pages[str(-i)] = {"title": title, "missing": ""}
                return httpx.Response(200, json={"query": {"pages": pages}})

        if host == "en.wikipedia.org":
            if request.url.path.startswith(SUMMARY_PREFIX):
                title = unquote(request.url.path[len(SUMMARY_PREFIX):])
                if title in self.summaries:
                    return httpx.Response(200, json=self.summaries[title])
                return httpx.Response(404, json={"title": "Not found."})
            if params.get("list") == "search":
                titles = self.wikipedia_search.get(params["srsearch"], [])
                return httpx.Response(200, json={"query": {"search": [{"ns": 0, "title": t} for t in titles]}})

        if host == "api.unsplash.com":
            return httpx.Response(200, json={"results": self.unsplash.get(params["query"], [])})

        if host == "pixabay.com":
            return httpx.Response(200, json={"hits": self.pixabay.get(params["q"], [])})

        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def hosts(self):
        return [request.url.host for request in self.requests]

def summary_payload(title, thumbnail, original=None):
    payload = {
        "title": title,
        "thumbnail": {"source": thumbnail, "width": 320, "height": 213},
        "content_urls": {"desktop": {"page": f"https://en.wikipedia.org/wiki/{title.replace(' ', '_')}"}},
    }
    if original:
        payload["originalimage"] = {"source": original}
    return payload

@pytest.fixture
def fake_apis():
    return FakeApis()

@pytest.fixture
def settings():
    return GallerySettings(throttle_delay=0, resolve_on_startup=False)

@pytest.fixture
def toucan():
    return Bird(common_name="Keel-billed Toucan", scientific_name="Ramphastos sulfuratus",
                category="Toucans and Barbets")

@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "birds.json"
    path.write_text(json.dumps({
        "title": "Test Birds",
        "description": "Aves de prueba",
        "Toucans": [
            {"common_name": "Keel-billed Toucan", "scientific_name": "Ramphastos sulfuratus"},
            {"common_name": "Collared Aracari", "scientific_name": "Pteroglossus torquatus"},
        ],
        "Hummingbirds": [
            {"common_name": "Snowcap", "scientific_name": "Microchera albocoronata"},
        ],
    }), encoding="utf-8")
    return str(path)
