import asyncio
from datetime import date
from io import BytesIO

from PIL import Image

from certi.services.render_service import CANVAS_SIZE, RenderService

CONTEXT = {
    "recipient_name": "Ada Lovelace",
    "name": "Certificate of Completion",
    "activity_name": "Analytical Engines 101",
    "issue_date": date(2026, 3, 14),
    "unique_code": "CERT-AB12CD34",
}


def test_render_pdf_without_template():
    content, media_type, extension = asyncio.run(RenderService.render(None, CONTEXT, "pdf"))

    assert content.startswith(b"%PDF")
    assert media_type == "application/pdf"
    assert extension == "pdf"


def test_render_jpg_uses_blank_canvas():
    content, media_type, extension = asyncio.run(RenderService.render(None, CONTEXT, "jpg"))

    assert media_type == "image/jpeg"
    assert extension == "jpg"
    assert Image.open(BytesIO(content)).size == CANVAS_SIZE


def test_pdf_background_renders_on_blank_canvas():
    template = {"file_path": "templates/background.pdf", "text_fields": "[]"}
    content, _, _ = asyncio.run(RenderService.render(template, CONTEXT, "jpg"))

    assert Image.open(BytesIO(content)).size == CANVAS_SIZE


def test_field_values():
    assert RenderService.field_value({"field_type": "recipient"}, CONTEXT) == "Ada Lovelace"
    assert RenderService.field_value({"field_type": "date"}, CONTEXT) == "14/03/2026"
    assert RenderService.field_value({"field_type": "code"}, CONTEXT) == "CERT-AB12CD34"
    assert RenderService.field_value({"field_type": "custom", "label": "Signed"}, CONTEXT) == "Signed"
    assert RenderService.field_value({"field_type": "unknown"}, CONTEXT) == ""


def test_format_date_accepts_text():
    assert RenderService.format_date("2026-10-19") == "19/10/2026"
    assert RenderService.format_date(None) == ""


def test_default_layout_is_centered():
    fields = RenderService.default_fields(CANVAS_SIZE)

    assert {field["align"] for field in fields} == {"center"}
    assert {field["x"] for field in fields} == {CANVAS_SIZE[0] // 2}
