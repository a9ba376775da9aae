from typing import Dict, Iterable, Optional

from birdgallery.models import DisplayUnit, FilterResult

class FilterController:
    """Filtro de texto sobre las unidades renderizadas"""

    def __init__(self, match_scientific: bool = False):
        self.match_scientific = match_scientific
        self.unit_visibility: Dict[str, bool] = {}
        self.category_visibility: Dict[str, bool] = {}
        self.result: Optional[FilterResult] = None

    def on_query_change(self, text: str, units: Iterable[DisplayUnit],
                        categories: Iterable[str] = ()) -> FilterResult:
        """
        Recalcula la visibilidad de todas las unidades y categorías.

        `categories` lista las categorías conocidas, incluidas las vacías, que
        quedan ocultas salvo que alguna de sus unidades sea visible.
        """
        query = (text or "").lower()

        # Se recalcula todo en cada cambio, sin índices
        unit_visibility: Dict[str, bool] = {}
        category_visibility: Dict[str, bool] = {name: False for name in categories}
        for unit in units:
            visible = self.matches(unit, query)
            unit_visibility[unit.unit_id] = visible
            category_visibility[unit.category] = category_visibility.get(unit.category, False) or visible

        self.unit_visibility = unit_visibility
        self.category_visibility = category_visibility

        self.result = FilterResult(
            query=text or "",
            visible_units=[uid for uid, visible in unit_visibility.items() if visible],
            visible_categories=[name for name, visible in category_visibility.items() if visible],
        )
        return self.result

    def matches(self, unit: DisplayUnit, query: str) -> bool:
        if query in unit.common_name.lower():
            return True
        return self.match_scientific and query in unit.scientific_name.lower()

    def is_visible(self, unit_id: str) -> bool:
        return self.unit_visibility.get(unit_id, True)

    def is_category_visible(self, category: str) -> bool:
        return self.category_visibility.get(category, True)
