import pytest

from birdgallery.models import Bird
from birdgallery.services.card_renderer import CardRenderer
from birdgallery.services.filter_controller import FilterController

BIRDS = [
    Bird(common_name="Keel-billed Toucan", scientific_name="Ramphastos sulfuratus", category="Toucans"),
    Bird(common_name="Collared Aracari", scientific_name="Pteroglossus torquatus", category="Toucans"),
    Bird(common_name="Snowcap", scientific_name="Microchera albocoronata", category="Hummingbirds"),
    Bird(common_name="Green Violetear", scientific_name="Colibri thalassinus", category="Hummingbirds"),
    Bird(common_name="Harpy Eagle", scientific_name="Harpia harpyja", category="Raptors"),
]

@pytest.fixture
def units(settings):
    renderer = CardRenderer(settings)
    return [renderer.render(bird, []) for bird in BIRDS]

@pytest.mark.parametrize("query", ["", "t", "TOUCAN", "cap", "ea", "green violetear", "zzz", " ", "eagle ", " snowcap"])
def test_unit_visible_iff_name_contains_query(units, query):
    result = FilterController().on_query_change(query, units)

    needle = query.lower()
    expected_units = [u.unit_id for u in units if needle in u.common_name.lower()]
    expected_categories = sorted({u.category for u in units if u.unit_id in expected_units})
    assert result.visible_units == expected_units
    assert sorted(result.visible_categories) == expected_categories

def test_category_hidden_when_no_member_matches(units):
    controller = FilterController()
    controller.on_query_change("snowcap", units)

    assert controller.is_category_visible("Hummingbirds")
    assert not controller.is_category_visible("Toucans")
    assert not controller.is_category_visible("Raptors")

def test_empty_query_shows_everything(units):
    result = FilterController().on_query_change("", units)

    assert len(result.visible_units) == len(units)
    assert sorted(result.visible_categories) == ["Hummingbirds", "Raptors", "Toucans"]

def test_scientific_name_matching_is_optional(units):
    assert FilterController().on_query_change("harpyja", units).visible_units == []

    result = FilterController(match_scientific=True).on_query_change("harpyja", units)
    assert result.visible_units == ["raptors--harpy-eagle"]

def test_visibility_is_recomputed_on_every_change(units):
    controller = FilterController()
    controller.on_query_change("eagle", units)
    assert not controller.is_visible("toucans--keel-billed-toucan")

    controller.on_query_change("", units)
    assert controller.is_visible("toucans--keel-billed-toucan")

def test_surrounding_whitespace_is_part_of_the_query(units):
    controller = FilterController()

    assert controller.on_query_change("eagle ", units).visible_units == []
    assert controller.on_query_change("harpy ", units).visible_units == ["raptors--harpy-eagle"]

def test_empty_category_heading_is_hidden_by_any_filter(units):
    controller = FilterController()
    result = controller.on_query_change("zzz", units, ["Toucans", "Empty"])

    assert result.visible_categories == []
    assert not controller.is_category_visible("Empty")

    result = controller.on_query_change("", units, ["Toucans", "Empty"])
    assert "Empty" not in result.visible_categories
    assert "Toucans" in result.visible_categories
