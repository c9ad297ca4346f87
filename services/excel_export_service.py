"""
Excel export service for the School ERP backend
Renders a report as a single worksheet
"""

from io import BytesIO

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
_THIN = Side(style="thin")
THIN_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)
MAX_COLUMN_WIDTH = 50

def excel_number(value):
    """Whole numbers stay integers, anything else is rounded to 2 dp"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    return int(value) if float(value).is_integer() else round(value, 2)

class ExcelExportService:
    """Service for exporting reports to Excel"""

    @staticmethod
    def write_summary(ws, start_row, summary):
        """Write label/value pairs in columns A and B, return the next free row"""
        row = start_row
        for label, value in summary:
            ws.cell(row=row, column=1, value=label).font = Font(bold=True)
            ws.cell(row=row, column=2, value=excel_number(value)).alignment = Alignment(horizontal="left")
            row += 1
        return row

    @staticmethod
    def write_table(ws, header_row, headers, rows, percent_columns=()):
        """Styled header followed by one bordered row per record"""
        for col_num, header in enumerate(headers, 1):
            cell = ws.cell(row=header_row, column=col_num, value=header)
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
            cell.border = THIN_BORDER
            cell.alignment = Alignment(horizontal="center", vertical="center")

        for row_num, values in enumerate(rows, header_row + 1):
            for col_num, value in enumerate(values, 1):
                cell = ws.cell(row=row_num, column=col_num)
                cell.border = THIN_BORDER
                if col_num - 1 in percent_columns and value is not None:
                    # stored as a fraction so Excel treats it as a number
                    cell.value = float(value) / 100.0
                    cell.number_format = '0.00%'
                else:
                    cell.value = excel_number(value)

    @staticmethod
    def fit_columns(ws):
        for column in ws.columns:
            widest = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            ws.column_dimensions[get_column_letter(column[0].column)].width = min(widest + 2, MAX_COLUMN_WIDTH)

    @staticmethod
    def export_report(title, generated_at, summary, headers, rows, percent_columns=(), sheet_title='Report'):
        """Export a report to a single worksheet.

        Layout: title row, timestamp row, one row per summary pair, a blank
        row, then the styled records table. Columns listed in
        ``percent_columns`` are written as numeric percentages.
        """
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = sheet_title[:31]

        ws.cell(row=1, column=1, value=title).font = Font(bold=True, size=14)
        ws.cell(row=2, column=1, value=f"Generated on {generated_at.strftime('%Y-%m-%d %H:%M')}")

        next_row = ExcelExportService.write_summary(ws, 4, summary)
        ExcelExportService.write_table(ws, next_row + 1, headers, rows, percent_columns)
        ExcelExportService.fit_columns(ws)

        output = BytesIO()
        wb.save(output)
        return output.getvalue()
