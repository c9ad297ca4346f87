"""
PDF export service for the School ERP backend
Renders report summaries and record tables with ReportLab
"""

from io import BytesIO
from xml.sax.saxutils import escape as xml_escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from services.excel_export_service import excel_number

MARGIN = 18 * mm
PAGE_WIDTH = A4[0] - 2 * MARGIN

class PdfExportService:
    """Service for exporting reports to PDF"""

    @staticmethod
    def _cell_style(header=False):
        """Compact Paragraph style so table cells word-wrap"""
        return ParagraphStyle(
            'HeaderCell' if header else 'Cell',
            parent=getSampleStyleSheet()['Normal'],
            fontSize=9,
            leading=11,
            textColor=colors.white if header else colors.black,
        )

    @staticmethod
    def _to_paragraph(value, style):
        text = '' if value is None else xml_escape(str(excel_number(value))).replace('\n', '<br/>')
        return Paragraph(text, style)

    @staticmethod
    def _wrap_table_data(rows):
        """Map table cells to Paragraphs for word-wrap; the first row is the header"""
        if not rows:
            return rows
        header_style = PdfExportService._cell_style(header=True)
        cell_style = PdfExportService._cell_style()
        wrapped_rows = [[PdfExportService._to_paragraph(cell, header_style) for cell in rows[0]]]
        for row in rows[1:]:
            wrapped_rows.append([PdfExportService._to_paragraph(cell, cell_style) for cell in row])
        return wrapped_rows

    @staticmethod
    def _full_width_colwidths(total_width, num_columns):
        """Equal column widths that use the full available width"""
        if num_columns <= 0:
            return []
        col = total_width / float(num_columns)
        return [col] * num_columns

    @staticmethod
    def export_report(title, generated_at, summary, headers, rows, records_heading='Details'):
        """Build a report PDF and return its bytes.

        ``summary`` is a list of (label, value) pairs shown in a two-column box,
        ``headers``/``rows`` form the records table.
        """
        buffer = BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, leftMargin=MARGIN, rightMargin=MARGIN,
                                topMargin=MARGIN, bottomMargin=MARGIN, title=title)
        styles = getSampleStyleSheet()
        header_title = ParagraphStyle('HeaderTitle', parent=styles['Title'], alignment=0, fontSize=16, leading=19)
        header_sub = ParagraphStyle('HeaderSub', parent=styles['Normal'], alignment=0, fontSize=10, leading=12)

        elements = [
            Paragraph(xml_escape(title), header_title),
            Paragraph(f"Generated on {generated_at.strftime('%Y-%m-%d %H:%M')}", header_sub),
            Spacer(1, 10)
        ]

        if summary:
            summary_rows = [[label, excel_number(value)] for label, value in summary]
            summary_table = Table(summary_rows, colWidths=[55 * mm, PAGE_WIDTH - 55 * mm])
            summary_table.setStyle(TableStyle([
                ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
                ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.lightgrey),
                ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
                ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ]))
            elements.extend([Paragraph('Summary', styles['Heading2']), Spacer(1, 6), summary_table, Spacer(1, 10)])

        table_rows = [list(headers)] + [list(row) for row in rows]
        if len(table_rows) == 1:
            table_rows.append(['No data'] + [''] * (len(headers) - 1))

        table = Table(
            PdfExportService._wrap_table_data(table_rows),
            repeatRows=1,
            colWidths=PdfExportService._full_width_colwidths(PAGE_WIDTH, len(headers))
        )
        table.setStyle(TableStyle([
            ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
            ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ('BACKGROUND', (0, 0), (-1, 0), colors.black),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold')
        ]))
        elements.extend([Paragraph(xml_escape(records_heading), styles['Heading2']), Spacer(1, 6), table])

        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes
