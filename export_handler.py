import csv
import io

import pandas as pd
import openpyxl
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter
import os
import logging
from datetime import datetime
from typing import Optional, Dict, List

from models import STATUS_AT_RISK, STATUS_AVERAGE, STATUS_SAFE

CSV_HEADERS = ['ID', 'Name', 'Attendance %', 'Marks', 'GPA', 'Status']

STATUS_FILLS = {
    STATUS_SAFE: 'E2F0D9',
    STATUS_AVERAGE: 'FFF2CC',
    STATUS_AT_RISK: 'FFE6E6',
}


def _csv_number(value):
    """Whole numbers are written without a decimal point, others to 2 places."""
    value = float(value)
    if value.is_integer():
        return int(value)
    return round(value, 2)


class ExportHandler:
    def __init__(self, export_folder: str = 'exports'):
        self.logger = logging.getLogger(__name__)
        self.export_folder = export_folder

    def read_student_data(self, filepath: str) -> Optional[pd.DataFrame]:
        """
        Read student data for bulk admission from an Excel file.
        Expected columns: ID (optional), Name, Attendance, Marks
        """
        try:
            df = pd.read_excel(filepath)

            # Normalize column names (handle case variations and spaces)
            df.columns = df.columns.astype(str).str.strip().str.lower().str.replace(' ', '_')

            column_mappings = {
                'id': ['id', 'student_id', 'roll_number', 'roll_no'],
                'name': ['name', 'student_name', 'full_name'],
                'attendance': ['attendance', 'attendance_%', 'attendance_percentage'],
                'marks': ['marks', 'marks_%', 'percentage', 'score'],
            }

            mapped_columns = {}
            for expected_col, possible_names in column_mappings.items():
                for possible_name in possible_names:
                    if possible_name in df.columns:
                        mapped_columns[expected_col] = possible_name
                        break

            missing_columns = [c for c in ('name', 'attendance', 'marks') if c not in mapped_columns]
            if missing_columns:
                self.logger.error(f"Missing columns: {missing_columns}")
                return None

            result_df = pd.DataFrame()
            for standard_name, original_name in mapped_columns.items():
                result_df[standard_name] = df[original_name]
            if 'id' not in result_df.columns:
                result_df['id'] = ''

            return self._clean_student_data(result_df)

        except Exception as e:
            self.logger.error(f"Error reading Excel file: {str(e)}")
            return None

    def _clean_student_data(self, df: pd.DataFrame) -> pd.DataFrame:
        df = df.dropna(subset=['name', 'attendance', 'marks'])

        df['name'] = df['name'].astype(str).str.strip()
        df['id'] = df['id'].fillna('').astype(str).str.strip()
        df['attendance'] = pd.to_numeric(df['attendance'], errors='coerce')
        df['marks'] = pd.to_numeric(df['marks'], errors='coerce')
        df = df.dropna(subset=['attendance', 'marks'])

        # Rows without an id get one assigned on admission
        with_id = df[df['id'] != ''].drop_duplicates(subset=['id'], keep='first')
        without_id = df[df['id'] == '']
        return pd.concat([with_id, without_id]).reset_index(drop=True)

    def students_to_csv(self, students: List[Dict]) -> str:
        """
        CSV with columns ID, Name, Attendance %, Marks, GPA, Status.
        Text fields (id, name, status) are always quoted; numbers never are.
        """
        buffer = io.StringIO()
        csv.writer(buffer, lineterminator='\n').writerow(CSV_HEADERS)

        writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator='\n')
        for s in students:
            writer.writerow([
                str(s['id']),
                str(s['name']),
                _csv_number(s['attendance']),
                _csv_number(s['marks']),
                _csv_number(s['gpa']),
                s['status'],
            ])
        return buffer.getvalue().rstrip('\n')

    def csv_filename(self) -> str:
        return f"tenacity_students_{datetime.now().strftime('%Y-%m-%d')}.csv"

    def export_students_excel(self, students: List[Dict]) -> Optional[str]:
        """
        Export the student register to a styled Excel workbook.
        """
        try:
            wb = openpyxl.Workbook()
            ws = wb.active
            ws.title = "Students"

            header_font = Font(bold=True, size=12, color="FFFFFF")
            header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
            border = Border(
                left=Side(style='thin'),
                right=Side(style='thin'),
                top=Side(style='thin'),
                bottom=Side(style='thin')
            )
            center_alignment = Alignment(horizontal='center', vertical='center')

            ws['A1'] = "Tenacity ERP - Student Register"
            ws['A1'].font = Font(bold=True, size=14)
            ws.merge_cells('A1:F1')

            ws['A2'] = f"Generated on: {datetime.now().strftime('%Y-%m-%d %H:%M')}"
            ws.merge_cells('A2:F2')

            for col, header in enumerate(CSV_HEADERS, 1):
                cell = ws.cell(row=4, column=col, value=header)
                cell.font = header_font
                cell.fill = header_fill
                cell.border = border
                cell.alignment = center_alignment

            row_num = 5
            for s in students:
                row_data = [s['id'], s['name'], s['attendance'], s['marks'], round(s['gpa'], 2), s['status']]
                fill_color = STATUS_FILLS.get(s['status'])

                for col, value in enumerate(row_data, 1):
                    cell = ws.cell(row=row_num, column=col, value=value)
                    cell.border = border
                    if col != 2:
                        cell.alignment = center_alignment
                    # Color coding by status
                    if fill_color:
                        cell.fill = PatternFill(start_color=fill_color, end_color=fill_color, fill_type="solid")

                row_num += 1

            # Summary
            ws.cell(row=row_num + 1, column=1, value="Summary:").font = Font(bold=True)
            for offset, status in enumerate((STATUS_SAFE, STATUS_AVERAGE, STATUS_AT_RISK), 2):
                count = sum(1 for s in students if s['status'] == status)
                ws.cell(row=row_num + offset, column=1, value=f"{status}: {count}")

            # Auto-adjust column widths
            for col_idx in range(1, len(CSV_HEADERS) + 1):
                max_length = 0
                column_letter = get_column_letter(col_idx)
                for row_idx in range(4, row_num):
                    cell = ws.cell(row=row_idx, column=col_idx)
                    if cell.value is not None:
                        max_length = max(max_length, len(str(cell.value)))
                ws.column_dimensions[column_letter].width = min(max_length + 2, 50)

            os.makedirs(self.export_folder, exist_ok=True)
            filename = f"students_export_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
            filepath = os.path.join(self.export_folder, filename)
            wb.save(filepath)

            self.logger.info(f"Exported student register to {filepath}")
            return filepath

        except Exception as e:
            self.logger.error(f"Error exporting students: {str(e)}")
            return None
