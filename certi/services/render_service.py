"""
Render Service
Draws certificate data onto the template background and exports PDF or JPEG
"""

import logging
from datetime import date
from io import BytesIO
from typing import List, Optional, Tuple

import img2pdf
from fastapi import HTTPException, status
from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from certi.config import settings
from certi.database import as_date
from certi.schemas.common import parse_json_list
from certi.services.storage_service import StorageService

logger = logging.getLogger(__name__)

CANVAS_SIZE = (1200, 850)
FONT_CANDIDATES = ("DejaVuSans.ttf", "Arial.ttf", "LiberationSans-Regular.ttf")

# Layout used when a template defines no text fields, as fractions of the canvas height
DEFAULT_LAYOUT = [
    {"field_type": "certificate_name", "y": 0.22, "font_size": 0.07, "font_color": "#1f2937"},
    {"field_type": "custom", "label": "This certificate is presented to", "y": 0.36,
     "font_size": 0.03, "font_color": "#4b5563"},
    {"field_type": "recipient", "y": 0.45, "font_size": 0.065, "font_color": "#111827"},
    {"field_type": "activity", "y": 0.58, "font_size": 0.035, "font_color": "#374151"},
    {"field_type": "date", "y": 0.70, "font_size": 0.028, "font_color": "#4b5563"},
    {"field_type": "code", "y": 0.86, "font_size": 0.022, "font_color": "#6b7280"},
]


class RenderService:
    """Certificate rendering with Pillow + img2pdf"""

    @staticmethod
    def _hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
        if not hex_color:
            return (0, 0, 0)
        color = hex_color.strip().lstrip("#")
        if len(color) != 6:
            return (0, 0, 0)
        try:
            return tuple(int(color[i:i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            return (0, 0, 0)

    @staticmethod
    def _load_font(font_family: Optional[str], font_size: int) -> ImageFont.ImageFont:
        candidates = []
        if font_family:
            candidates.append(font_family if font_family.lower().endswith(".ttf") else f"{font_family}.ttf")
        candidates.extend(FONT_CANDIDATES)

        for candidate in candidates:
            try:
                return ImageFont.truetype(candidate, font_size)
            except OSError:
                continue

        return ImageFont.load_default(size=font_size)

    @staticmethod
    def _apply_alignment(draw: ImageDraw.ImageDraw, text: str, font: ImageFont.ImageFont, x: int, align: str) -> int:
        if not text:
            return x
        align_value = (align or "left").lower()
        if align_value not in {"center", "right"}:
            return x
        bbox = draw.textbbox((0, 0), text, font=font)
        text_width = bbox[2] - bbox[0]
        if align_value == "center":
            return x - (text_width // 2)
        return x - text_width

    @staticmethod
    def format_date(value) -> str:
        parsed = as_date(value)
        return parsed.strftime("%d/%m/%Y") if parsed else ""

    @staticmethod
    def field_value(field: dict, context: dict) -> str:
        """Text drawn for one field; ``context`` holds the certificate data"""
        field_type = str(field.get("field_type") or field.get("field") or "").lower()
        if field_type == "recipient":
            return context.get("recipient_name") or ""
        if field_type == "certificate_name":
            return context.get("name") or ""
        if field_type == "activity":
            return context.get("activity_name") or ""
        if field_type == "date":
            return RenderService.format_date(context.get("issue_date"))
        if field_type == "code":
            return context.get("unique_code") or ""
        if field_type == "custom":
            return field.get("label") or field.get("field_name") or ""
        return ""

    @staticmethod
    def default_fields(size: Tuple[int, int]) -> List[dict]:
        width, height = size
        return [
            {
                **field,
                "x": width // 2,
                "y": int(field["y"] * height),
                "font_size": max(12, int(field["font_size"] * height)),
                "align": "center",
            }
            for field in DEFAULT_LAYOUT
        ]

    @staticmethod
    def blank_canvas() -> Image.Image:
        image = Image.new("RGB", CANVAS_SIZE, "white")
        draw = ImageDraw.Draw(image)
        width, height = CANVAS_SIZE
        draw.rectangle((20, 20, width - 20, height - 20), outline=(180, 150, 60), width=6)
        draw.rectangle((36, 36, width - 36, height - 36), outline=(210, 190, 120), width=2)
        return image

    @staticmethod
    async def load_background(template: Optional[dict]) -> Image.Image:
        """
        Template background as an RGB image.

        Templates without a file, or with a PDF background, render on a blank canvas.
        """
        file_path = (template or {}).get("file_path")
        if not file_path or file_path.lower().endswith(".pdf"):
            return RenderService.blank_canvas()

        try:
            image = Image.open(BytesIO(await StorageService.read(file_path)))
            image.load()
        except (HTTPException, UnidentifiedImageError, OSError) as e:
            if settings.APP_ENV != "production":
                logger.warning("Template background %s unavailable, using blank canvas: %s", file_path, e)
                return RenderService.blank_canvas()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid template image: {e}"
            )

        if image.mode != "RGB":
            image = image.convert("RGB")
        return image

    @staticmethod
    def draw_fields(image: Image.Image, text_fields: List[dict], context: dict) -> Image.Image:
        draw = ImageDraw.Draw(image)
        fields = text_fields or RenderService.default_fields(image.size)

        for field in fields:
            value = RenderService.field_value(field, context)
            if not value:
                continue
            font_size = int(field.get("font_size", 40))
            font = RenderService._load_font(field.get("font_family"), font_size)
            color = RenderService._hex_to_rgb(field.get("font_color") or field.get("color", "#000000"))
            x = RenderService._apply_alignment(draw, value, font, int(field.get("x", 0)), field.get("align", "left"))
            draw.text((x, int(field.get("y", 0))), value, fill=color, font=font)

        return image

    @staticmethod
    async def render(template: Optional[dict], context: dict, fmt: str = "pdf") -> Tuple[bytes, str, str]:
        """
        Render a certificate.

        Args:
            template: certificate_templates row (may be None)
            context: recipient_name, name, activity_name, issue_date, unique_code
            fmt: "pdf" or "jpg"

        Returns:
            Tuple of (content, media type, file extension)
        """
        image = await RenderService.load_background(template)
        text_fields = parse_json_list((template or {}).get("text_fields"))
        image = RenderService.draw_fields(image, text_fields, context)

        buffer = BytesIO()
        if fmt == "jpg":
            image.save(buffer, format="JPEG", quality=90)
            return buffer.getvalue(), "image/jpeg", "jpg"

        image.save(buffer, format="PNG")
        return img2pdf.convert(buffer.getvalue()), "application/pdf", "pdf"

    @staticmethod
    def sample_context(template: dict) -> dict:
        """Placeholder data used for template previews"""
        return {
            "recipient_name": "Jane Doe",
            "name": template.get("name") or "Certificate",
            "activity_name": "Sample Activity",
            "issue_date": date.today(),
            "unique_code": "CERT-PREVIEW",
        }


# Singleton
render_service = RenderService()
