"""
Nok RFP PDF Generator
=====================
Lays out the composer's document (cover data + sections) as a paginated
A4 PDF: a cover page, then content pages with a running brand header and a
"Confidential" footer.

Pagination rules:
  - Paragraphs wrap with simpleSplit and may break across pages by line.
  - A Q&A row flagged keep_together moves to the next page whole when it
    does not fit in the space left on the current one.

Usage:
    from nokrfp.forms.rfp_generator import generate_rfp, generate_rfp_bytes
    result = generate_rfp(answers)             # writes into OUTPUT_DIR
    pdf_bytes, filename = generate_rfp_bytes(answers)
"""

import io
import os
import logging
from datetime import date

from reportlab.lib.pagesizes import A4
from reportlab.lib.colors import HexColor
from reportlab.lib.utils import simpleSplit, ImageReader
from reportlab.pdfgen import canvas

from nokrfp.core.branding import load_branding
from nokrfp.core.paths import DATA_DIR, OUTPUT_DIR, find_logo
from nokrfp.forms.rfp_composer import compose_document

log = logging.getLogger("nokrfp.rfp_gen")

PAGE_W, PAGE_H = A4  # 595 x 842
MARGIN_L = 50
MARGIN_R = 50
MARGIN_T = 80
MARGIN_B = 70
CONTENT_W = PAGE_W - MARGIN_L - MARGIN_R

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_ITALIC = "Helvetica-Oblique"
BODY_SIZE = 10
LEADING = 1.6   # line height as a multiple of font size


class _Palette:
    def __init__(self, colors: dict):
        self.primary = HexColor(colors.get("primary", "#0A0E27"))
        self.body = HexColor(colors.get("body", "#000000"))
        self.muted = HexColor(colors.get("muted", "#666666"))
        self.border = HexColor(colors.get("border", "#334155"))


class _PageWriter:
    """Tracks the cursor on the current content page and breaks pages."""

    def __init__(self, c, brand: dict, palette: _Palette):
        self.c = c
        self.brand = brand
        self.palette = palette
        self.page = 1   # cover is page 1
        self.y = PAGE_H - MARGIN_T

    def new_page(self):
        self.c.showPage()
        self.page += 1
        self.y = PAGE_H - MARGIN_T
        self._draw_chrome()

    def _draw_chrome(self):
        c, p = self.c, self.palette
        c.setFont(FONT_BOLD, 14)
        c.setFillColor(p.primary)
        c.drawString(MARGIN_L, PAGE_H - 38, self.brand.get("name", ""))
        c.setStrokeColor(p.border)
        c.setLineWidth(0.5)
        c.line(MARGIN_L, PAGE_H - 50, PAGE_W - MARGIN_R, PAGE_H - 50)

        c.setFont(FONT, 8)
        c.setFillColor(p.body)
        c.drawCentredString(PAGE_W / 2, 30, self.brand.get("confidential", "Confidential"))
        c.setFillColor(p.muted)
        c.drawRightString(PAGE_W - MARGIN_R, 30, f"Page {self.page}")

    def space_left(self) -> float:
        return self.y - MARGIN_B

    def ensure(self, height: float):
        if height > self.space_left():
            self.new_page()

    def gap(self, height: float):
        self.y -= height

    def lines(self, lines: list, font: str, size: float, color, indent: float = 0):
        lh = size * LEADING
        for line in lines:
            self.ensure(lh)
            self.c.setFont(font, size)
            self.c.setFillColor(color)
            self.c.drawString(MARGIN_L + indent, self.y - size, line)
            self.y -= lh

    def paragraph(self, text: str, font: str = FONT, size: float = BODY_SIZE,
                  color=None, indent: float = 0):
        wrapped = simpleSplit(text, font, size, CONTENT_W - indent)
        self.lines(wrapped, font, size, color or self.palette.body, indent)


# ═══════════════════════════════════════════════════════════════════════════════
# COVER
# ═══════════════════════════════════════════════════════════════════════════════

def _draw_cover(c, doc: dict, brand: dict, palette: _Palette):
    y = PAGE_H - 70

    logo = find_logo(DATA_DIR)
    drew_logo = False
    if logo:
        try:
            c.drawImage(ImageReader(logo), MARGIN_L, y - 50, width=140, height=60,
                        preserveAspectRatio=True, anchor="sw", mask="auto")
            drew_logo = True
        except Exception as e:
            log.warning("Logo load failed: %s", e)
    if not drew_logo:
        c.setFont(FONT_BOLD, 18)
        c.setFillColor(palette.primary)
        c.drawString(MARGIN_L, y - 18, doc.get("brand", ""))
    y -= 90

    c.setFont(FONT_BOLD, 22)
    c.setFillColor(palette.body)
    c.drawString(MARGIN_L, y, doc.get("title", ""))
    y -= 26
    c.setFont(FONT_BOLD, 14)
    c.drawString(MARGIN_L, y, doc.get("subtitle", ""))
    y -= 22
    c.setFont(FONT, 9)
    c.setFillColor(palette.muted)
    c.drawString(MARGIN_L, y, doc.get("date", ""))
    y -= 36

    c.setFont(FONT_BOLD, 10)
    c.setFillColor(palette.body)
    c.drawString(MARGIN_L, y, "Prepared for")
    y -= 18
    c.setFont(FONT, 12)
    c.drawString(MARGIN_L, y, f"Company Name: {doc.get('company_name', 'N/A')}")
    y -= 16
    c.drawString(MARGIN_L, y, f"Contact Name: {doc.get('contact_name', 'N/A')}")
    y -= 40

    heading = doc.get("cover_heading", "")
    if heading:
        c.setFont(FONT_BOLD, 16)
        c.setFillColor(palette.primary)
        c.drawString(MARGIN_L, y, heading)
        y -= 24

    for title, detail in doc.get("deliverables", []):
        lines = simpleSplit(f"{title}: {detail}", FONT, BODY_SIZE, CONTENT_W - 14)
        c.setFillColor(palette.body)
        c.setFont(FONT, BODY_SIZE)
        c.drawString(MARGIN_L, y, "•")
        for line in lines:
            c.drawString(MARGIN_L + 14, y, line)
            y -= BODY_SIZE * LEADING
        y -= 6

    # Cover footer rule
    c.setStrokeColor(palette.border)
    c.setLineWidth(1)
    c.line(MARGIN_L, 60, PAGE_W - MARGIN_R, 60)
    c.setFont(FONT, 9)
    c.setFillColor(palette.muted)
    c.drawString(MARGIN_L, 44, f"{doc.get('brand', '')} | {brand.get('confidential', 'Confidential')}")


# ═══════════════════════════════════════════════════════════════════════════════
# SECTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def _row_height(row: dict) -> float:
    q_lines = simpleSplit(row["question"], FONT_BOLD, BODY_SIZE, CONTENT_W)
    a_lines = simpleSplit(row["answer"], FONT, BODY_SIZE, CONTENT_W - 12)
    return (len(q_lines) + len(a_lines)) * BODY_SIZE * LEADING + 8


def _draw_row(w: _PageWriter, row: dict):
    height = _row_height(row)
    # rows taller than a full page can't stay together; let them flow
    if row.get("keep_together") and height <= PAGE_H - MARGIN_T - MARGIN_B:
        w.ensure(height)
    w.paragraph(row["question"], FONT_BOLD)
    w.paragraph(row["answer"], indent=12)
    w.gap(8)


def _draw_section(w: _PageWriter, section: dict):
    title = f"{section['number']}.0 {section['title']}"
    # keep the heading with at least its first line of content
    w.ensure(16 * LEADING + BODY_SIZE * LEADING * 2)
    w.paragraph(title, FONT_BOLD, 16)
    w.gap(6)

    if section.get("narrative"):
        w.paragraph(section["narrative"])
        w.gap(10)

    for row in section.get("rows", []):
        _draw_row(w, row)

    if section.get("insight"):
        w.gap(4)
        w.paragraph(section["insight"], FONT_ITALIC)
    w.gap(18)


def render_rfp(doc: dict, out, brand: dict = None) -> int:
    """Draw the composed document onto `out` (path or binary file). Returns page count."""
    brand = brand or load_branding()
    palette = _Palette(brand.get("colors", {}))

    c = canvas.Canvas(out, pagesize=A4)
    c.setTitle(f"{doc.get('title', 'RFP')} - {doc.get('company_name', '')}")
    c.setAuthor(brand.get("pdf", {}).get("author", brand.get("name", "")))
    c.setSubject(doc.get("subtitle", ""))

    _draw_cover(c, doc, brand, palette)

    w = _PageWriter(c, brand, palette)
    w.new_page()
    for section in doc.get("sections", []):
        _draw_section(w, section)

    c.save()
    return w.page


def generate_rfp(record: dict, output_path: str = "", today: date = None,
                 brand: dict = None) -> dict:
    """Compose and render an RFP PDF to disk.

    Args:
        record: answer record (partial records are fine)
        output_path: where to save (default: OUTPUT_DIR/<suggested filename>)
        today: cover date (default: today)

    Returns:
        {"ok": True, "path", "filename", "pages", "sections"} or {"ok": False, "error"}
    """
    brand = brand or load_branding()
    try:
        doc = compose_document(record, today=today, brand=brand)
        if not output_path:
            os.makedirs(OUTPUT_DIR, exist_ok=True)
            output_path = os.path.join(OUTPUT_DIR, doc["filename"])
        pages = render_rfp(doc, output_path, brand)
    except Exception as e:
        log.error("RFP generation failed: %s", e, exc_info=True)
        return {"ok": False, "error": str(e)}

    log.info("RFP PDF generated: %s (%d sections, %d pages)",
             output_path, len(doc["sections"]), pages,
             extra={"rfp_file": doc["filename"], "pages": pages})
    return {
        "ok": True,
        "path": output_path,
        "filename": doc["filename"],
        "pages": pages,
        "sections": len(doc["sections"]),
    }


def generate_rfp_bytes(record: dict, today: date = None,
                       brand: dict = None) -> tuple:
    """Render into memory for download. Raises if the renderer fails."""
    brand = brand or load_branding()
    doc = compose_document(record, today=today, brand=brand)
    buf = io.BytesIO()
    pages = render_rfp(doc, buf, brand)
    log.info("RFP PDF rendered in memory: %s (%d pages, %d bytes)",
             doc["filename"], pages, buf.tell(),
             extra={"rfp_file": doc["filename"], "pages": pages})
    return buf.getvalue(), doc["filename"]
