"""
PDF exports: student portfolio, fee receipt and the institution summary
(NAAC) report.

Each document is described as a list of (style, text) lines by a *_lines
function and rendered with reportlab by render_pdf.
"""
import io
import re
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer

from cohort_stats import quality_indicators, status_distribution, summarize
from fee_ledger import format_currency
from models import FEE_TYPES

INSTITUTION = 'TENACITY ERP'

# Helvetica has no rupee glyph
PDF_CURRENCY = 'Rs. '

Line = Tuple[str, str]


def _styles() -> Dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        'title': ParagraphStyle(
            'ErpTitle', parent=base['Heading1'], fontSize=20,
            textColor=colors.HexColor('#1a365d'), alignment=TA_CENTER, spaceAfter=6,
        ),
        'subtitle': ParagraphStyle(
            'ErpSubtitle', parent=base['Heading2'], fontSize=16,
            textColor=colors.HexColor('#2d3748'), alignment=TA_CENTER, spaceAfter=18,
        ),
        'heading': ParagraphStyle(
            'ErpHeading', parent=base['Heading3'], fontSize=13,
            alignment=TA_LEFT, spaceBefore=10, spaceAfter=6,
        ),
        'body': ParagraphStyle(
            'ErpBody', parent=base['Normal'], fontSize=12, leading=16, spaceAfter=4,
        ),
        'bullet': ParagraphStyle(
            'ErpBullet', parent=base['Normal'], fontSize=12, leading=16, leftIndent=14,
        ),
        'footer': ParagraphStyle(
            'ErpFooter', parent=base['Normal'], fontSize=9,
            textColor=colors.HexColor('#718096'), alignment=TA_CENTER, spaceBefore=30,
        ),
    }


def _today(on: Optional[date]) -> str:
    return (on or date.today()).strftime('%d/%m/%Y')


def portfolio_lines(student: Dict, generated_on: Optional[date] = None) -> List[Line]:
    lines = [
        ('title', INSTITUTION),
        ('subtitle', 'Student Academic Portfolio'),
        ('heading', f"Student: {student['name']}"),
        ('heading', f"ID: {student['id']}"),
        ('body', f"Attendance: {student['attendance']}%"),
        ('body', f"Current Marks: {student['marks']}%"),
        ('body', f"CGPA: {student['gpa']:.2f}"),
        ('body', f"Status: {student['status']}"),
    ]

    for title, field in (('Achievements', 'achievements'), ('Certificates', 'certificates')):
        entries = student.get(field) or []
        if entries:
            lines.append(('heading', f"{title}:"))
            lines.extend(('bullet', f"• {entry}") for entry in entries)

    lines.append(('footer', f"Generated on: {_today(generated_on)}"))
    lines.append(('footer', 'Tenacity ERP - Education Management System'))
    return lines


def receipt_lines(transaction: Dict) -> List[Line]:
    paid_on = datetime.strptime(transaction['date'], '%Y-%m-%d').date()
    fee_type = FEE_TYPES.get(transaction.get('fee_type', 'tuition'), 'Tuition Fee')

    return [
        ('title', INSTITUTION),
        ('subtitle', 'Fee Receipt'),
        ('body', f"Receipt ID: {transaction['receipt_id']}"),
        ('body', f"Date: {paid_on.strftime('%d/%m/%Y')}"),
        ('body', f"Student Name: {transaction['student_name']}"),
        ('body', f"Student ID: {transaction['student_id']}"),
        ('body', f"Fee Type: {fee_type}"),
        ('heading', f"Amount Paid: {format_currency(transaction['amount'], PDF_CURRENCY)}"),
        ('footer', 'This is a computer-generated receipt.'),
        ('footer', 'Thank you for your payment.'),
    ]


def institution_report_lines(students: List[Dict], total_collected: Optional[float] = None,
                             occupancy: Optional[Dict] = None,
                             generated_on: Optional[date] = None) -> List[Line]:
    """Lines of the institution-wide summary. Raises ValidationError for an empty cohort."""
    stats = summarize(students)
    shares = status_distribution(stats)
    quality = quality_indicators(stats)

    lines = [
        ('title', INSTITUTION),
        ('subtitle', 'NAAC Assessment Report'),
        ('heading', 'Institutional Summary'),
        ('body', f"Total Students: {stats['count']}"),
        ('body', f"Average Attendance: {stats['avg_attendance']}%"),
        ('body', f"Average CGPA: {stats['avg_gpa']}"),
        ('heading', 'Performance Distribution:'),
        ('bullet', f"Safe Students: {stats['safe_count']} ({shares['Safe']:.1f}%)"),
        ('bullet', f"Average Students: {stats['average_count']} ({shares['Average']:.1f}%)"),
        ('bullet', f"At-Risk Students: {stats['at_risk_count']} ({shares['At-Risk']:.1f}%)"),
        ('heading', 'Quality Indicators:'),
        ('bullet', f"• Academic Performance: {quality['academic_performance']}"),
        ('bullet', f"• Attendance Rate: {quality['attendance_rate']}"),
        ('bullet', f"• Student Retention: {quality['student_retention']}"),
    ]

    if total_collected is not None or occupancy is not None:
        lines.append(('heading', 'Operations:'))
        if total_collected is not None:
            lines.append(('bullet', f"• Fees Collected: {format_currency(total_collected, PDF_CURRENCY)}"))
        if occupancy is not None:
            lines.append((
                'bullet',
                f"• Hostel Occupancy: {occupancy['total_occupied']}/{occupancy['total_capacity']} "
                f"({occupancy['occupancy_rate']:.1f}%)",
            ))

    lines.append(('footer', f"Report generated on: {_today(generated_on)}"))
    lines.append(('footer', 'Tenacity ERP - Institutional Excellence'))
    return lines


def render_pdf(lines: List[Line], title: str = INSTITUTION) -> bytes:
    """Render (style, text) lines to an A4 PDF document."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=2 * cm,
        leftMargin=2 * cm,
        topMargin=2 * cm,
        bottomMargin=2 * cm,
        title=title,
    )
    styles = _styles()

    content = []
    for style, text in lines:
        content.append(Paragraph(escape(text), styles[style]))
        if style == 'subtitle':
            content.append(Spacer(1, 0.3 * cm))

    doc.build(content)
    return buffer.getvalue()


def student_portfolio(student: Dict) -> bytes:
    return render_pdf(portfolio_lines(student), title=f"{student['name']} Portfolio")


def fee_receipt(transaction: Dict) -> bytes:
    return render_pdf(receipt_lines(transaction), title=f"Receipt {transaction['receipt_id']}")


def institution_report(students: List[Dict], total_collected: Optional[float] = None,
                       occupancy: Optional[Dict] = None) -> bytes:
    return render_pdf(
        institution_report_lines(students, total_collected, occupancy),
        title='NAAC Assessment Report',
    )


def portfolio_filename(student: Dict) -> str:
    name = re.sub(r'\s+', '_', student['name'])
    return f"{name}_Portfolio.pdf"


def receipt_filename(transaction: Dict) -> str:
    return f"Receipt_{transaction['receipt_id']}.pdf"


def report_filename(on: Optional[date] = None) -> str:
    return f"NAAC_Report_{(on or date.today()).isoformat()}.pdf"
