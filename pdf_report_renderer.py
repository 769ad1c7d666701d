"""
PDF Report Renderer for the Medical Insurance Comparison Portal

Renders a ConsolidatedReport as a landscape A4 comparison table using ReportLab.
Long tables continue on new pages with the plan header repeated.
"""

from reportlab.lib.pagesizes import landscape, A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas
from reportlab.lib.colors import HexColor
from io import BytesIO
from typing import Optional, List

from report_builder import ConsolidatedReport, format_aed


# =============================================================================
# Report Colors
# =============================================================================
COLORS = {
    # Backgrounds
    'navy': '#1E3A5F',              # Table header and grand total
    'row_alt': '#F3F6FA',           # Alternating benefit rows
    'member_bg': '#EEF7EE',         # Member premium rows
    'subtotal_bg': '#FFF8E1',       # Gross / Basmah / VAT rows
    'comment_bg': '#EFF6FF',        # Advisor comment box
    'disclaimer_bg': '#FEF2F2',     # Disclaimer box
    'white': '#FFFFFF',

    # Text
    'dark_text': '#1F2937',
    'muted_text': '#6B7280',
    'light_text': '#FFFFFF',

    # Lines
    'border': '#CBD5E1',

    # Status tags
    'renewal': '#2563EB',
    'alternative': '#D97706',
    'recommended': '#16A34A',
}

# Row styles: (background, label font, value font, text color)
ROW_STYLES = {
    'benefit': ('white', 'Helvetica-Bold', 'Helvetica', 'dark_text'),
    'benefit_alt': ('row_alt', 'Helvetica-Bold', 'Helvetica', 'dark_text'),
    'member': ('member_bg', 'Helvetica-Bold', 'Helvetica-Bold', 'dark_text'),
    'subtotal': ('subtotal_bg', 'Helvetica-Bold', 'Helvetica-Bold', 'dark_text'),
    'total': ('navy', 'Helvetica-Bold', 'Helvetica-Bold', 'light_text'),
}


class PDFReportRenderer:
    """Render the consolidated comparison as PDF using ReportLab"""

    PAGE_WIDTH, PAGE_HEIGHT = landscape(A4)
    MARGIN = 8 * mm
    FOOTER_HEIGHT = 14 * mm
    LABEL_COL_WIDTH = 140
    FONT_SIZE = 7
    LINE_HEIGHT = 8.5
    CELL_PADDING = 3

    def __init__(self, report: ConsolidatedReport):
        self.report = report
        self.buffer = BytesIO()
        self.c: Optional[canvas.Canvas] = None
        self.page_number = 0

    def generate(self) -> BytesIO:
        """Generate the complete PDF report"""
        self.c = canvas.Canvas(self.buffer, pagesize=landscape(A4))
        self.c.setTitle(f"NSIB Insurance Comparison - {self.report.client_name}")

        self._start_page()
        y = self._draw_title_block(self.PAGE_HEIGHT - self.MARGIN)
        y = self._draw_table(y - 6)
        self._draw_notes(y - 8)

        self.c.save()
        self.buffer.seek(0)
        return self.buffer

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @property
    def _plan_col_width(self) -> float:
        available = self.PAGE_WIDTH - 2 * self.MARGIN - self.LABEL_COL_WIDTH
        return available / max(len(self.report.plans), 1)

    @property
    def _bottom_limit(self) -> float:
        return self.MARGIN + self.FOOTER_HEIGHT

    def _start_page(self):
        """Start a page (the first one is already open) and draw its footer"""
        if self.page_number > 0:
            self.c.showPage()
        self.page_number += 1
        self._draw_footer()

    def _wrap(self, text: str, font: str, width: float) -> List[str]:
        return simpleSplit(str(text), font, self.FONT_SIZE, width - 2 * self.CELL_PADDING) or [""]

    def _row_height(self, label: str, values: List[str], label_font: str, value_font: str) -> float:
        lines = len(self._wrap(label, label_font, self.LABEL_COL_WIDTH))
        for value in values:
            lines = max(lines, len(self._wrap(value, value_font, self._plan_col_width)))
        return lines * self.LINE_HEIGHT + 2 * self.CELL_PADDING

    def _draw_cell_text(self, x, y_top, width, lines: List[str], font: str, centered: bool):
        self.c.setFont(font, self.FONT_SIZE)
        text_y = y_top - self.CELL_PADDING - self.FONT_SIZE
        for line in lines:
            if centered:
                self.c.drawCentredString(x + width / 2, text_y, line)
            else:
                self.c.drawString(x + self.CELL_PADDING, text_y, line)
            text_y -= self.LINE_HEIGHT

    def _draw_box(self, y_top: float, title: str, text: str, bg_color: str) -> float:
        """Draw a full-width note box; returns the y below it"""
        width = self.PAGE_WIDTH - 2 * self.MARGIN
        lines = simpleSplit(f"{title} {text}", 'Helvetica', self.FONT_SIZE, width - 12)
        height = len(lines) * self.LINE_HEIGHT + 10

        if y_top - height < self._bottom_limit:
            self._start_page()
            y_top = self.PAGE_HEIGHT - self.MARGIN

        self.c.setFillColor(HexColor(COLORS[bg_color]))
        self.c.setStrokeColor(HexColor(COLORS['border']))
        self.c.roundRect(self.MARGIN, y_top - height, width, height, 4, fill=1, stroke=1)

        self.c.setFillColor(HexColor(COLORS['dark_text']))
        self.c.setFont('Helvetica', self.FONT_SIZE)
        text_y = y_top - 5 - self.FONT_SIZE
        for line in lines:
            self.c.drawString(self.MARGIN + 6, text_y, line)
            text_y -= self.LINE_HEIGHT
        return y_top - height

    # =========================================================================
    # Page Sections
    # =========================================================================

    def _draw_title_block(self, y: float) -> float:
        """Title, subtitle and the emirate / salary / date bar"""
        self.c.setFillColor(HexColor(COLORS['navy']))
        self.c.setFont('Helvetica-Bold', 16)
        self.c.drawCentredString(self.PAGE_WIDTH / 2, y - 16, "MEDICAL INSURANCE COMPARISON")

        self.c.setFillColor(HexColor(COLORS['muted_text']))
        self.c.setFont('Helvetica', 9)
        self.c.drawCentredString(self.PAGE_WIDTH / 2, y - 30, self.report.subtitle)

        bar_y = y - 50
        self.c.setFillColor(HexColor(COLORS['row_alt']))
        self.c.rect(self.MARGIN, bar_y, self.PAGE_WIDTH - 2 * self.MARGIN, 14, fill=1, stroke=0)

        self.c.setFillColor(HexColor(COLORS['dark_text']))
        self.c.setFont('Helvetica', 8)
        info = [
            f"Emirate: {self.report.location}",
            f"Salary: {self.report.salary_label}",
            f"Date: {self.report.date_label}",
        ]
        segment = (self.PAGE_WIDTH - 2 * self.MARGIN) / len(info)
        for i, text in enumerate(info):
            self.c.drawCentredString(self.MARGIN + segment * (i + 0.5), bar_y + 4, text)

        return bar_y

    def _draw_table_header(self, y: float) -> float:
        """BENEFITS column plus one column per plan (provider and status tag)"""
        col_width = self._plan_col_width
        tags = [self.report.status_label(p) for p in self.report.plans]
        lines_per_plan = [self._wrap(p.provider, 'Helvetica-Bold', col_width) for p in self.report.plans]
        max_lines = max(len(lines) for lines in lines_per_plan)
        height = max_lines * self.LINE_HEIGHT + 2 * self.CELL_PADDING + (10 if any(tags) else 0)

        self.c.setFillColor(HexColor(COLORS['navy']))
        self.c.rect(self.MARGIN, y - height, self.PAGE_WIDTH - 2 * self.MARGIN, height, fill=1, stroke=0)

        self.c.setFillColor(HexColor(COLORS['light_text']))
        self._draw_cell_text(self.MARGIN, y, self.LABEL_COL_WIDTH, ["BENEFITS"], 'Helvetica-Bold', False)

        for i, (plan, lines, tag) in enumerate(zip(self.report.plans, lines_per_plan, tags)):
            x = self.MARGIN + self.LABEL_COL_WIDTH + i * col_width
            self.c.setFillColor(HexColor(COLORS['light_text']))
            self._draw_cell_text(x, y, col_width, lines, 'Helvetica-Bold', True)
            if tag:
                tag_width = self.c.stringWidth(tag, 'Helvetica-Bold', 6) + 8
                tag_x = x + (col_width - tag_width) / 2
                tag_y = y - height + 3
                self.c.setFillColor(HexColor(COLORS[plan.status]))
                self.c.roundRect(tag_x, tag_y, tag_width, 8, 2, fill=1, stroke=0)
                self.c.setFillColor(HexColor(COLORS['light_text']))
                self.c.setFont('Helvetica-Bold', 6)
                self.c.drawCentredString(tag_x + tag_width / 2, tag_y + 2, tag)

        return y - height

    def _draw_row(self, y: float, label: str, values: List[str], style: str) -> float:
        bg, label_font, value_font, text_color = ROW_STYLES[style]
        height = self._row_height(label, values, label_font, value_font)

        if y - height < self._bottom_limit:
            self._start_page()
            y = self._draw_table_header(self.PAGE_HEIGHT - self.MARGIN)

        width = self.PAGE_WIDTH - 2 * self.MARGIN
        self.c.setFillColor(HexColor(COLORS[bg]))
        self.c.setStrokeColor(HexColor(COLORS['border']))
        self.c.setLineWidth(0.5)
        self.c.rect(self.MARGIN, y - height, width, height, fill=1, stroke=1)

        self.c.setFillColor(HexColor(COLORS[text_color]))
        self._draw_cell_text(self.MARGIN, y, self.LABEL_COL_WIDTH,
                             self._wrap(label, label_font, self.LABEL_COL_WIDTH), label_font, False)

        col_width = self._plan_col_width
        for i, value in enumerate(values):
            x = self.MARGIN + self.LABEL_COL_WIDTH + i * col_width
            self.c.line(x, y, x, y - height)
            self._draw_cell_text(x, y, col_width, self._wrap(value, value_font, col_width), value_font, True)

        return y - height

    def _draw_table(self, y: float) -> float:
        report = self.report
        y = self._draw_table_header(y)

        for i, (label, values) in enumerate(report.benefit_rows):
            y = self._draw_row(y, label, values, 'benefit_alt' if i % 2 else 'benefit')

        for label, premiums in report.premium_rows:
            y = self._draw_row(y, label, [format_aed(p) for p in premiums], 'member')

        totals = [report.totals[p.id] for p in report.plans]
        y = self._draw_row(y, "Gross Premium (Excluding Basmah & VAT)",
                           [format_aed(t.gross) for t in totals], 'subtotal')
        y = self._draw_row(y, report.basmah_label, [format_aed(t.basmah) for t in totals], 'subtotal')
        y = self._draw_row(y, "VAT (5%)", [format_aed(t.vat) for t in totals], 'subtotal')
        y = self._draw_row(y, "Grand Total", [format_aed(t.total) for t in totals], 'total')
        return y

    def _draw_notes(self, y: float):
        if self.report.advisor_comment:
            y = self._draw_box(y, "Advisor Comment:", self.report.advisor_comment, 'comment_bg') - 6
        self._draw_box(y, "Disclaimer:", self.report.disclaimer, 'disclaimer_bg')

    def _draw_footer(self):
        self.c.setStrokeColor(HexColor(COLORS['border']))
        self.c.setLineWidth(0.5)
        line_y = self.MARGIN + self.FOOTER_HEIGHT - 4
        self.c.line(self.MARGIN, line_y, self.PAGE_WIDTH - self.MARGIN, line_y)

        self.c.setFillColor(HexColor(COLORS['muted_text']))
        self.c.setFont('Helvetica', 6.5)
        for i, text in enumerate(self.report.footer_left):
            self.c.drawString(self.MARGIN, line_y - 10 - i * 8, text)
        for i, text in enumerate(self.report.footer_right):
            self.c.drawRightString(self.PAGE_WIDTH - self.MARGIN, line_y - 10 - i * 8, text)


def generate_pdf_report(report: ConsolidatedReport) -> BytesIO:
    """
    Generate the comparison PDF.

    Args:
        report: ConsolidatedReport from report_builder.build_report

    Returns:
        BytesIO buffer containing PDF data
    """
    renderer = PDFReportRenderer(report)
    return renderer.generate()


if __name__ == "__main__":
    # Test with sample data
    from datetime import date
    from portal_types import FamilyMember, MemberResult, ResolvedPlan, SharedSettings
    from report_builder import build_report

    principal = FamilyMember(id=1, name="Ahmed", dob="1985-03-10", sponsorship="Principal")
    plans = [
        ResolvedPlan(id="ORIENT_DMED_LSB", provider="ORIENT", plan="DMED LSB",
                     premium=720.0, selected=True, status="renewal"),
        ResolvedPlan(id="WATANIA_TAKAFUL_DUBAI_BASIC", provider="WATANIA TAKAFUL",
                     plan="DUBAI BASIC", premium=680.0, selected=True, status="recommended"),
    ]
    results = {1: MemberResult(member=principal, age=40, comparison=plans)}

    report = build_report([principal], results, SharedSettings(), "Renewal terms attached.",
                          report_date=date(2025, 1, 15))
    buffer = generate_pdf_report(report)

    with open(f'/tmp/{report.file_name}.pdf', 'wb') as f:
        f.write(buffer.getvalue())

    print(f"Generated test PDF: {len(buffer.getvalue())} bytes")
    print(f"Saved to /tmp/{report.file_name}.pdf")
