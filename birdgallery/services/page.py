from html import escape
from typing import List, Optional
from urllib.parse import quote

from birdgallery.models import DisplayUnit, GalleryView
from birdgallery.services.filter_controller import FilterController

DEFAULT_TITLE = "Bird Gallery"
REFRESH_SECONDS = 5

STYLE = """
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            margin: 0 auto;
            max-width: 1200px;
            padding: 20px;
            background-color: #f7f9fa;
            color: #222;
        }

        .search-input {
            width: 100%;
            padding: 10px;
            font-size: 16px;
            margin-bottom: 20px;
            box-sizing: border-box;
        }

        #birds-container {
            display: grid;
            grid-template-columns: repeat(auto-fill, minmax(220px, 1fr));
            gap: 16px;
        }

        .instructions {
            padding: 10px;
            margin-bottom: 20px;
            background-color: #e9f5ff;
            border-radius: 4px;
            grid-column: 1 / -1;
        }

        .category {
            grid-column: 1 / -1;
            font-size: 1.4em;
            font-weight: bold;
            margin-top: 20px;
            border-bottom: 2px solid #3a7d44;
        }

        .bird-card {
            background: #fff;
            border-radius: 6px;
            box-shadow: 0 1px 3px rgba(0, 0, 0, 0.15);
            overflow: hidden;
            text-align: center;
            padding-bottom: 8px;
        }

        .bird-card button {
            border: none;
            padding: 0;
            background: none;
            width: 100%;
        }

        .bird-card button:enabled {
            cursor: pointer;
        }

        .bird-card img {
            width: 100%;
            height: 200px;
            object-fit: cover;
            display: block;
        }

        .bird-card a {
            display: block;
            margin-top: 8px;
            color: #1a5276;
            text-decoration: none;
        }

        .attribution {
            display: block;
            font-size: 0.75em;
            color: #777;
        }

        .loading, .error {
            grid-column: 1 / -1;
        }

        .error {
            color: #b03a2e;
        }
"""

def render_page(view: GalleryView, query: str = "", controller: Optional[FilterController] = None) -> str:
    """Página completa de la galería, con el filtro `query` ya aplicado"""
    title = view.title or DEFAULT_TITLE
    refresh = ""
    if view.pending and not view.error:
        refresh = f'<meta http-equiv="refresh" content="{REFRESH_SECONDS}">'

    parts: List[str] = []
    if view.error:
        parts.append(f'<p class="error">{escape(view.error)}</p>')
    else:
        parts.append(
            '<div class="instructions">'
            "<p>Click any bird image to view alternative photos when available.</p>"
            "<p>Click any bird name to view wikipedia article.</p>"
            "</div>"
        )
        if view.pending:
            parts.append(f'<div class="loading">Loading bird images ({view.pending} remaining)...</div>')

        for category in view.categories:
            hidden = "" if controller is None or controller.is_category_visible(category.name) else " hidden"
            parts.append(f'<div class="category"{hidden}>{escape(category.name)}</div>')
            for unit in category.units:
                parts.append(render_card(unit, query, controller))

    description = f"<p>{escape(view.description)}</p>" if view.description else ""

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    {refresh}
    <title>{escape(title)}</title>
    <style>{STYLE}    </style>
</head>
<body>
    <h1>{escape(title)}</h1>
    {description}
    <form method="get" action="/">
        <input type="text" name="q" value="{escape(query)}" placeholder="Filter birds..." class="search-input">
    </form>
    <div id="birds-container">
        {"".join(parts)}
    </div>
</body>
</html>"""

def render_card(unit: DisplayUnit, query: str = "", controller: Optional[FilterController] = None) -> str:
    hidden = "" if controller is None or controller.is_visible(unit.unit_id) else " hidden"
    action = f"/units/{quote(unit.unit_id)}/next"
    if query:
        action += f"?q={quote(query)}"

    # onerror se anula antes de cambiar al placeholder para no entrar en bucle
    onerror = f"this.onerror=null;this.src='{unit.placeholder_url}';"
    disabled = "" if unit.cyclable else " disabled"
    attribution = ""
    if unit.attribution_text:
        attribution = f'<span class="attribution">{escape(unit.attribution_text)}</span>'

    return (
        f'<div class="bird-card" id="{escape(unit.unit_id)}"{hidden}>'
        f'<form method="post" action="{escape(action)}">'
        f'<button type="submit"{disabled}>'
        f'<img src="{escape(unit.image_url)}" alt="{escape(unit.common_name)}" onerror="{escape(onerror)}">'
        "</button></form>"
        f'<a href="{escape(unit.title_link)}" target="_blank" rel="noopener noreferrer">{escape(unit.common_name)}</a>'
        f"{attribution}"
        "</div>"
    )
