import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import create_app

from conftest import summary_payload

@pytest.fixture
def client(fake_apis, settings, data_file):
    app = create_app(settings.model_copy(update={"data_path": data_file}), client=fake_apis.client())
    with TestClient(app) as test_client:
        yield test_client

def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "bird-gallery", "birds": 3, "pending": 3}

def test_page_lists_categories_and_cards(client):
    response = client.get("/")

    assert response.status_code == 200
    body = response.text
    assert "<title>Test Birds</title>" in body
    assert '<div class="category">Toucans</div>' in body
    assert 'id="toucans--keel-billed-toucan"' in body
    assert 'href="https://en.wikipedia.org/wiki/Keel-billed_Toucan"' in body
    assert "placehold.co/300x200?text=Keel-billed%20Toucan" in body
    assert "this.onerror=null" in body

def test_page_filter_hides_non_matching_units_and_categories(client):
    body = client.get("/", params={"q": "snow"}).text

    assert 'id="hummingbirds--snowcap">' in body
    assert 'id="toucans--keel-billed-toucan" hidden>' in body
    assert '<div class="category" hidden>Toucans</div>' in body
    assert '<div class="category">Hummingbirds</div>' in body

def test_gallery_json(client):
    view = client.get("/api/gallery").json()

    assert view["title"] == "Test Birds"
    assert [c["name"] for c in view["categories"]] == ["Toucans", "Hummingbirds"]
    assert view["pending"] == 3
    assert view["error"] is None
    unit = view["categories"][0]["units"][0]
    assert unit["cyclable"] is False

def test_filter_endpoint(client):
    result = client.get("/api/gallery/filter", params={"q": "torquatus", "scientific": True}).json()

    assert result["visible_units"] == ["toucans--collared-aracari"]
    assert result["visible_categories"] == ["Toucans"]

def test_next_image_cycles_resolved_unit(client, fake_apis):
    fake_apis.summaries["Snowcap"] = summary_payload(
        "Snowcap", "https://upload.wikimedia.org/s1.jpg", "https://upload.wikimedia.org/s2.jpg")
    client.portal.call(client.app.state.gallery.resolve_unit, "hummingbirds--snowcap")

    first = client.post("/api/units/hummingbirds--snowcap/next").json()
    second = client.post("/api/units/hummingbirds--snowcap/next").json()

    assert first["image_url"] == "https://upload.wikimedia.org/s2.jpg"
    assert second["image_url"] == "https://upload.wikimedia.org/s1.jpg"

def test_form_next_redirects_back_to_card(client):
    response = client.post("/units/hummingbirds--snowcap/next", params={"q": "snow"}, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/?q=snow#hummingbirds--snowcap"

def test_image_error_falls_back_once(client, fake_apis):
    fake_apis.summaries["Snowcap"] = summary_payload("Snowcap", "https://upload.wikimedia.org/s1.jpg")
    client.portal.call(client.app.state.gallery.resolve_unit, "hummingbirds--snowcap")

    first = client.post("/api/units/hummingbirds--snowcap/image-error").json()
    second = client.post("/api/units/hummingbirds--snowcap/image-error").json()

    assert first["fallback_url"] == "https://placehold.co/300x200?text=Snowcap"
    assert second["fallback_url"] is None

def test_unknown_unit_is_404(client):
    assert client.post("/api/units/no-existe/next").status_code == 404
    assert client.post("/api/units/no-existe/image-error").status_code == 404
    assert client.post("/units/no-existe/next", follow_redirects=False).status_code == 404

def test_resolve_endpoint_returns_placeholder_when_nothing_found(client):
    candidates = client.get("/api/birds/resolve", params={"common_name": "Imaginary Bird"}).json()

    assert len(candidates) == 1
    assert candidates[0]["source"] == "placeholder"
    assert candidates[0]["url"] == "https://placehold.co/300x200?text=Imaginary%20Bird"

def test_resolve_endpoint_requires_common_name(client):
    assert client.get("/api/birds/resolve").status_code == 422

def test_placeholder_png(client):
    response = client.get("/placeholder.png", params={"text": "Snowcap", "width": 120, "height": 80})

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert Image.open(io.BytesIO(response.content)).size == (120, 80)

def test_data_failure_shows_page_level_error(fake_apis, settings, tmp_path):
    broken = settings.model_copy(update={"data_path": str(tmp_path / "missing.json")})
    with TestClient(create_app(broken, client=fake_apis.client())) as test_client:
        page = test_client.get("/")
        health = test_client.get("/health").json()
        filtered = test_client.get("/api/gallery/filter", params={"q": "x"})

    assert page.status_code == 500
    assert "Failed to load bird data" in page.text
    assert health["status"] == "degraded"
    assert filtered.status_code == 500

def test_startup_resolution_runs_in_background(fake_apis, settings, data_file):
    fake_apis.fail_all = True
    eager = settings.model_copy(update={"data_path": data_file, "resolve_on_startup": True})

    with TestClient(create_app(eager, client=fake_apis.client())) as test_client:
        for _ in range(200):
            if test_client.get("/health").json()["pending"] == 0:
                break
            test_client.portal.call(_sleep)
        view = test_client.get("/api/gallery").json()

    assert view["pending"] == 0
    units = [unit for category in view["categories"] for unit in category["units"]]
    assert all(unit["candidates"][0]["source"] == "placeholder" for unit in units)

async def _sleep():
    import asyncio
    await asyncio.sleep(0.01)
