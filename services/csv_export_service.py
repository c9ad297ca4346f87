"""
CSV export service for the School ERP backend
"""

import csv
import io

class CsvExportService:
    """Service for exporting report records to CSV"""

    @staticmethod
    def export_report(headers, rows):
        """Header line followed by one line per record, UTF-8 encoded"""
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(headers)
        for row in rows:
            writer.writerow(['' if value is None else value for value in row])
        return output.getvalue().encode('utf-8')
