# backend/utils/pdf.py
import logging
from datetime import datetime
from io import BytesIO
from pathlib import Path

from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from config import settings

logger = logging.getLogger(__name__)

# Konfiguracja czcionek (DejaVu handles accented site/employee names)
FONT_DIR = Path("assets/fonts")
FONT_REGULAR_PATH = FONT_DIR / "DejaVuSans.ttf"
FONT_BOLD_PATH = FONT_DIR / "DejaVuSans-Bold.ttf"

FONT_REGULAR_NAME = "Helvetica"
FONT_BOLD_NAME = "Helvetica-Bold"

_fonts_inited = False
def _init_fonts():
    """Registers DejaVu fonts when present, otherwise keeps the built-in Helvetica."""
    global _fonts_inited, FONT_REGULAR_NAME, FONT_BOLD_NAME
    if _fonts_inited:
        return
    _fonts_inited = True

    if not FONT_REGULAR_PATH.exists():
        logger.debug("Font %s not found, using Helvetica", FONT_REGULAR_PATH)
        return
    try:
        from reportlab.pdfbase import pdfmetrics
        from reportlab.pdfbase.ttfonts import TTFont

        pdfmetrics.registerFont(TTFont("DejaVuSans", str(FONT_REGULAR_PATH)))
        FONT_REGULAR_NAME = "DejaVuSans"
        if FONT_BOLD_PATH.exists():
            pdfmetrics.registerFont(TTFont("DejaVuSans-Bold", str(FONT_BOLD_PATH)))
            FONT_BOLD_NAME = "DejaVuSans-Bold"
        else:
            FONT_BOLD_NAME = FONT_REGULAR_NAME
    except Exception as e:
        logger.warning("Font init failed, using Helvetica: %s", e)


# (header, key in row dict, column width in mm, alignment)
STOCK_COLUMNS = [
    ("Equipo", "label", 80, "left"),
    ("Tipo", "type", 50, "left"),
    ("Total", "total", 25, "right"),
    ("Disponible", "available", 30, "right"),
    ("Asignado", "assigned", 30, "right"),
    ("Mínimo", "threshold", 25, "right"),
]

EQUIPMENT_COLUMNS = [
    ("ID", "id", 15, "left"),
    ("Equipo", "stock", 70, "left"),
    ("Estado", "status", 30, "left"),
    ("IP", "ip", 35, "left"),
    ("Serie", "serial", 40, "left"),
    ("Sede", "site", 45, "left"),
    ("Ubicación", "location", 30, "left"),
]

ASSIGNMENT_COLUMNS = [
    ("Empleado", "employee", 60, "left"),
    ("Equipo", "stock", 70, "left"),
    ("Estado", "status", 25, "left"),
    ("Serie", "serial", 40, "left"),
    ("Asignado", "assigned_at", 35, "left"),
    ("Devuelto", "returned_at", 35, "left"),
]


def _fmt(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    return str(value)


class _Report:
    """Tiny table writer on top of a reportlab canvas."""

    def __init__(self, title: str):
        _init_fonts()
        self.buffer = BytesIO()
        self.pagesize = landscape(A4)
        self.c = canvas.Canvas(self.buffer, pagesize=self.pagesize)
        self.c.setTitle(title)
        self.width, self.height = self.pagesize
        self.title = title
        self.y = self._header()

    def _header(self) -> float:
        y = self.height - 15 * mm
        self.c.setFont(FONT_BOLD_NAME, 14)
        self.c.drawString(15 * mm, y, self.title)
        self.c.setFont(FONT_REGULAR_NAME, 8)
        self.c.drawRightString(self.width - 15 * mm, y, datetime.now().strftime("%Y-%m-%d %H:%M"))
        y -= 4 * mm
        self.c.setLineWidth(0.5)
        self.c.line(15 * mm, y, self.width - 15 * mm, y)
        return y - 8 * mm

    def _new_page_if_needed(self, needed: float = 15 * mm):
        if self.y < needed:
            self.c.showPage()
            self.y = self._header()

    def text(self, line: str, bold: bool = False, size: int = 10):
        self._new_page_if_needed()
        self.c.setFont(FONT_BOLD_NAME if bold else FONT_REGULAR_NAME, size)
        self.c.drawString(15 * mm, self.y, line)
        self.y -= 6 * mm

    def table(self, columns, rows):
        def draw_head():
            self.c.setFillColorRGB(0.93, 0.93, 0.93)
            self.c.rect(15 * mm, self.y - 2 * mm, sum(w for _, _, w, _ in columns) * mm, 7 * mm, fill=1, stroke=0)
            self.c.setFillColorRGB(0, 0, 0)
            self._row([h for h, _, _, _ in columns], columns, bold=True)

        self._new_page_if_needed(30 * mm)
        draw_head()
        for row in rows:
            if self.y < 15 * mm:
                self.c.showPage()
                self.y = self._header()
                draw_head()
            self._row([_fmt(row.get(key)) for _, key, _, _ in columns], columns)
        if not rows:
            self.text("Sin registros")
        self.y -= 4 * mm

    def _row(self, values, columns, bold: bool = False):
        self.c.setFont(FONT_BOLD_NAME if bold else FONT_REGULAR_NAME, 8)
        x = 15 * mm
        for value, (_, _, width, align) in zip(values, columns):
            # Clip to roughly what fits in the column
            text = value[: int(width / 1.8)]
            if align == "right":
                self.c.drawRightString(x + (width - 2) * mm, self.y, text)
            else:
                self.c.drawString(x + 1 * mm, self.y, text)
            x += width * mm
        self.c.setLineWidth(0.1)
        self.c.line(15 * mm, self.y - 2 * mm, x, self.y - 2 * mm)
        self.y -= 6 * mm

    def counts(self, heading: str, counts: dict):
        self.text(heading, bold=True)
        for key, value in counts.items():
            self.text(f"{key}: {value}", size=9)

    def finish(self) -> bytes:
        self.c.showPage()
        self.c.save()
        return self.buffer.getvalue()


def _stock_report(data: dict) -> bytes:
    report = _Report(f"{settings.REPORT_TITLE_PREFIX} - Stock de equipos")
    summary = data.get("summary") or {}
    if summary:
        report.counts("Resumen", {
            "Artículos": summary.get("items", 0),
            "Unidades totales": summary.get("total_qty", 0),
            "Disponibles": summary.get("available_qty", 0),
            "Asignadas": summary.get("assigned_qty", 0),
            "Stock bajo": summary.get("low_stock", 0),
        })
    report.table(STOCK_COLUMNS, data.get("items") or [])
    return report.finish()


def _equipment_report(data: dict) -> bytes:
    title = f"{settings.REPORT_TITLE_PREFIX} - {data.get('category', 'Equipos')}"
    if data.get("site"):
        title += f" - {data['site']}"
    report = _Report(title)
    if data.get("by_status"):
        report.counts("Por estado", data["by_status"])
    report.table(EQUIPMENT_COLUMNS, data.get("items") or [])
    return report.finish()


def _assignments_report(data: dict) -> bytes:
    title = f"{settings.REPORT_TITLE_PREFIX} - Equipos asignados"
    if data.get("employee"):
        title += f" - {data['employee']}"
    report = _Report(title)
    report.table(ASSIGNMENT_COLUMNS, data.get("items") or [])
    return report.finish()


TEMPLATES = {
    "stock": _stock_report,
    "equipment": _equipment_report,
    "assignments": _assignments_report,
}


def render_report(template_name: str, data: dict) -> bytes:
    """Render one of TEMPLATES to PDF bytes."""
    try:
        renderer = TEMPLATES[template_name]
    except KeyError:
        raise ValueError(f"Unknown report template: {template_name}")
    return renderer(data)
