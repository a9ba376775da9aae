import io
import textwrap
from urllib.parse import quote

from PIL import Image, ImageDraw, ImageFont

from birdgallery.config import GallerySettings

BACKGROUND = (204, 204, 204)
FOREGROUND = (51, 51, 51)

def placeholder_url(settings: GallerySettings, text: str) -> str:
    """URL del servicio "texto sobre imagen" para el nombre dado"""
    return settings.placeholder_template.format(text=quote(text, safe=""))

def render_placeholder_png(text: str, width: int = 300, height: int = 200) -> bytes:
    """
    Genera un PNG gris con el texto centrado, equivalente local de placehold.co.
    """
    img = Image.new("RGB", (width, height), BACKGROUND)
    draw = ImageDraw.Draw(img)
    font = _load_font(max(int(height * 0.1), 10))

    # Ajustar el texto a lo ancho de la imagen
    chars_per_line = max(int(width / (font.size * 0.6)), 1) if hasattr(font, "size") else 24
    lines = textwrap.wrap(text, width=chars_per_line) or [""]

    line_boxes = [draw.textbbox((0, 0), line, font=font) for line in lines]
    line_heights = [box[3] - box[1] for box in line_boxes]
    spacing = 4
    total_height = sum(line_heights) + spacing * (len(lines) - 1)

    y = (height - total_height) / 2
    for line, box, line_height in zip(lines, line_boxes, line_heights):
        line_width = box[2] - box[0]
        draw.text(((width - line_width) / 2, y - box[1]), line, fill=FOREGROUND, font=font)
        y += line_height + spacing

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()

def _load_font(size: int):
    try:
        return ImageFont.truetype("DejaVuSans.ttf", size)
    except OSError:
        return ImageFont.load_default()
