"""
Lead exports — CSV and paginated A4 PDF reports.

Everything here is a pure function of the leads passed in and returns text or
bytes; the routes turn the result into a download. PDF pages are drawn with
Pillow and saved as a multi-page PDF.
"""
import csv
import io
import logging
import textwrap
from datetime import datetime, timezone

from PIL import Image, ImageDraw, ImageFont

from otr_crm.config import COMPANY_NAME
from otr_crm.leads import analytics
from otr_crm.leads.parser import parse_otr_message
from otr_crm.leads.workflow import status_label

logger = logging.getLogger('leads.export')

CSV_HEADERS = ['Data', 'Nome', 'Email', 'Empresa', 'Status', 'Fonte', 'Tipo', 'Localização', 'Volume']

TABLE_ROW_LIMIT = 25

# A4 at 150 dpi; layout coordinates are in millimetres like a print layout
DPI = 150
PAGE_WIDTH_MM, PAGE_HEIGHT_MM = 210, 297
PX_PER_MM = DPI / 25.4
PAGE_SIZE = (round(PAGE_WIDTH_MM * PX_PER_MM), round(PAGE_HEIGHT_MM * PX_PER_MM))

BRAND_GREEN = (6, 95, 70)
DARK_GREEN = (0, 100, 0)
GREY = (100, 100, 100)
LIGHT_GREY = (240, 240, 240)
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)

_FONT_PATHS = {
    False: '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf',
    True: '/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf',
}
_font_cache = {}


def export_filename(report_type, ext, today=None):
    """<report-type>-<ISO-date>.<ext>"""
    today = today or datetime.now(timezone.utc).date()
    return f"{report_type}-{today.isoformat()}.{ext}"


def format_date(value):
    created = analytics.as_utc(value)
    return created.strftime('%d/%m/%Y') if created else ''


# ── CSV ──────────────────────────────────────────────────────────────────────

def lead_csv_row(lead):
    parsed = parse_otr_message(lead.message)
    return [
        format_date(lead.created_at),
        lead.name or '',
        lead.email or '',
        lead.company or '',
        status_label(lead.status),
        parsed.source_company,
        parsed.source_type,
        parsed.location,
        parsed.volume,
    ]


def leads_to_csv(leads):
    """Header + one row per lead, quoted per RFC 4180 (only when a field needs it)."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator='\r\n')
    writer.writerow(CSV_HEADERS)
    for lead in leads:
        writer.writerow(lead_csv_row(lead))
    return buf.getvalue()


# ── PDF drawing ──────────────────────────────────────────────────────────────

def _mm(value):
    return round(value * PX_PER_MM)


def _font(size_pt, bold=False):
    key = (size_pt, bold)
    if key not in _font_cache:
        size_px = round(size_pt * DPI / 72)
        try:
            _font_cache[key] = ImageFont.truetype(_FONT_PATHS[bold], size_px)
        except OSError:
            _font_cache[key] = ImageFont.load_default(size=size_px)
    return _font_cache[key]


class ReportPage:
    """One A4 page. Coordinates are mm from the top-left; text y is the baseline."""

    def __init__(self):
        self.image = Image.new('RGB', PAGE_SIZE, 'white')
        self.draw = ImageDraw.Draw(self.image)

    def text(self, x, y, text, size=10, bold=False, fill=BLACK, align='left'):
        anchor = {'left': 'ls', 'center': 'ms', 'right': 'rs'}[align]
        self.draw.text((_mm(x), _mm(y)), str(text), font=_font(size, bold), fill=fill, anchor=anchor)

    def rect(self, x, y, w, h, fill):
        self.draw.rectangle([_mm(x), _mm(y), _mm(x + w), _mm(y + h)], fill=fill)

    def rounded_rect(self, x, y, w, h, radius, fill):
        self.draw.rounded_rectangle([_mm(x), _mm(y), _mm(x + w), _mm(y + h)], radius=_mm(radius), fill=fill)

    def line(self, x1, y1, x2, y2, fill=BLACK):
        self.draw.line([_mm(x1), _mm(y1), _mm(x2), _mm(y2)], fill=fill, width=2)


class ReportDocument:
    def __init__(self):
        self.pages = []

    def add_page(self):
        page = ReportPage()
        self.pages.append(page)
        return page

    def add_footer(self, label):
        total = len(self.pages)
        for i, page in enumerate(self.pages, 1):
            page.text(PAGE_WIDTH_MM / 2, 290, f"{label} - Página {i}/{total}", size=8,
                      fill=(128, 128, 128), align='center')

    def to_pdf(self):
        if not self.pages:
            self.add_page()
        buf = io.BytesIO()
        first, rest = self.pages[0].image, [p.image for p in self.pages[1:]]
        first.save(buf, format='PDF', save_all=True, append_images=rest, resolution=DPI)
        return buf.getvalue()


# ── Analytics report ─────────────────────────────────────────────────────────

def _period_text(start, end):
    if start or end:
        return f"Período: {start or 'Início'} até {end or 'Hoje'}"
    return 'Período: Todos os dados'


def analytics_report_pdf(leads, start=None, end=None, now=None):
    """
    Cover page with the executive summary and breakdowns, then the lead table.

    `leads` is the date-filtered set. The table lists at most TABLE_ROW_LIMIT
    leads and notes how many were left out.
    """
    leads = list(leads)
    now = now or datetime.now(timezone.utc)
    counts = analytics.status_counts(leads)
    total = counts['total']
    by_status = counts['by_status']

    doc = ReportDocument()
    page = doc.add_page()

    page.rect(0, 0, PAGE_WIDTH_MM, 35, BRAND_GREEN)
    page.text(20, 18, COMPANY_NAME.upper(), size=22, bold=True, fill=WHITE)
    page.text(20, 28, 'Relatório de Leads OTR', size=12, fill=WHITE)

    page.text(20, 45, _period_text(start, end))
    page.text(PAGE_WIDTH_MM - 80, 45, f"Gerado em: {now.strftime('%d/%m/%Y %H:%M')}")

    page.text(20, 60, 'Resumo Executivo', size=14, bold=True, fill=BRAND_GREEN)
    stat_boxes = [
        ('Total', total, (100, 116, 139)),
        ('Pendentes', by_status['pending'], (245, 158, 11)),
        ('Aprovados', by_status['approved'], (16, 185, 129)),
        ('Contatados', by_status['contacted'], (59, 130, 246)),
        ('Negociando', by_status['negotiating'], (139, 92, 246)),
        ('Convertidos', by_status['converted'], (5, 150, 105)),
    ]
    for i, (label, value, color) in enumerate(stat_boxes):
        x = 15 + i * 35
        page.rounded_rect(x, 70, 30, 25, 2, color)
        page.text(x + 15, 82, value, size=16, bold=True, fill=WHITE, align='center')
        page.text(x + 15, 90, label, size=7, fill=WHITE, align='center')

    page.text(20, 110, f"Taxa de Conversão: {analytics.conversion_rate(leads)}%", size=12, bold=True)

    y = 130
    for title, rows in (
        ('Distribuição por Região', analytics.region_breakdown(leads)),
        ('Distribuição por Tipo de Fonte', analytics.source_type_breakdown(leads)),
    ):
        if y > 255:
            page = doc.add_page()
            y = 20
        page.text(20, y, title, size=14, bold=True, fill=BRAND_GREEN)
        y += 10
        for row in rows:
            if y > 275:
                page = doc.add_page()
                y = 20
            page.text(25, y, f"{row['name']}: {row['value']} leads ({row['percentage']}%)")
            y += 8
        y += 7

    page = doc.add_page()
    page.rect(0, 0, PAGE_WIDTH_MM, 25, BRAND_GREEN)
    page.text(20, 16, 'Lista de Leads OTR', size=14, bold=True, fill=WHITE)

    y = 35
    page.rect(15, y, PAGE_WIDTH_MM - 30, 8, LIGHT_GREY)
    for x, heading in ((18, 'Data'), (45, 'Indicador'), (90, 'Fonte OTR'), (135, 'Localização'), (175, 'Status')):
        page.text(x, y + 5, heading, size=8, bold=True)
    y += 12

    for lead in leads[:TABLE_ROW_LIMIT]:
        if y > 270:
            page = doc.add_page()
            y = 20
        parsed = parse_otr_message(lead.message)
        page.text(18, y, format_date(lead.created_at), size=8)
        page.text(45, y, (lead.name or '')[:20], size=8)
        page.text(90, y, (parsed.source_company or 'N/A')[:20], size=8)
        page.text(135, y, (parsed.location or 'N/A')[:18], size=8)
        page.text(175, y, status_label(lead.status), size=8)
        y += 7

    if len(leads) > TABLE_ROW_LIMIT:
        page.text(20, y + 5, f"... e mais {len(leads) - TABLE_ROW_LIMIT} leads", size=8, fill=GREY)

    doc.add_footer(f"{COMPANY_NAME} - Relatório OTR")
    logger.info("Analytics report rendered: %d leads, %d pages", len(leads), len(doc.pages))
    return doc.to_pdf()


# ── Single lead report ───────────────────────────────────────────────────────

def lead_report_filename(lead):
    return f"otr-lead-{lead.id[:8]}.pdf"


def lead_report_pdf(lead, now=None):
    """One-page indication report: indicator block, OTR source block, details."""
    now = now or datetime.now(timezone.utc)
    parsed = parse_otr_message(lead.message)

    doc = ReportDocument()
    page = doc.add_page()

    page.text(20, 20, COMPANY_NAME.upper(), size=20, fill=DARK_GREEN)
    page.text(20, 35, 'Relatório de Indicação OTR', size=14)
    page.text(20, 45, f"Gerado em: {now.strftime('%d/%m/%Y %H:%M')}", fill=GREY)
    page.text(20, 52, f"Status: {status_label(lead.status)}", fill=GREY)
    page.line(20, 58, 190, 58, fill=DARK_GREEN)

    y = 70
    sections = [
        ('DADOS DO INDICADOR', [
            ('Nome', parsed.indicator_name or lead.name),
            ('Empresa', parsed.indicator_company or lead.company or 'N/A'),
            ('Email', parsed.indicator_email or lead.email),
            ('Telefone', parsed.indicator_phone or 'N/A'),
            ('WhatsApp', parsed.indicator_whatsapp or 'N/A'),
        ]),
        ('DADOS DA FONTE OTR', [
            ('Contato', parsed.source_name or 'N/A'),
            ('Empresa Geradora', parsed.source_company or 'N/A'),
            ('Tipo', parsed.source_type or 'N/A'),
            ('Localização', parsed.location or 'N/A'),
            ('Volume Anual', parsed.volume or 'N/A'),
            ('Medidas', parsed.tire_sizes or 'N/A'),
        ]),
    ]
    for title, rows in sections:
        page.text(20, y, title, size=12, fill=DARK_GREEN)
        y += 10
        for label, value in rows:
            page.text(20, y, f"{label}: {value}")
            y += 7
        y += 8

    if parsed.details:
        page.text(20, y, 'DETALHES ADICIONAIS', size=12, fill=DARK_GREEN)
        y += 10
        for paragraph in parsed.details.split('\n'):
            for line in textwrap.wrap(paragraph, width=95) or ['']:
                if y > 280:
                    page = doc.add_page()
                    y = 20
                page.text(20, y, line)
                y += 5

    return doc.to_pdf()
