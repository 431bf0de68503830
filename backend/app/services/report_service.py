"""
Report Generation Service
Renders grade sheets, fee receipts and timetables as PDF, and builds the
plain-text admin reports stored in the reports table.
"""

import csv
import io
import uuid
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from app.core.config import settings
from app.core.exceptions import ReportGenerationError
from app.core.logging_config import logger
from app.services.grading import points_for_letter

INSTITUTION_NAME = "University Management System"

TIMETABLE_COLUMNS = [
    "Day", "Start", "End", "Subject", "Code", "Faculty", "Room", "Type", "Year", "Semester",
]


class ReportService:
    """Constructed once per application; stateless apart from styles"""

    def __init__(self, output_dir: Optional[Path] = None):
        self.output_dir = Path(output_dir or settings.REPORTS_DIR)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        self.styles.add(ParagraphStyle(
            name='Institution',
            parent=self.styles['Title'],
            fontSize=20,
            textColor=HexColor('#1a1a1a'),
            spaceAfter=6,
            alignment=TA_CENTER,
            fontName='Helvetica-Bold'
        ))
        self.styles.add(ParagraphStyle(
            name='DocHeading',
            parent=self.styles['Normal'],
            fontSize=15,
            textColor=HexColor('#2c3e50'),
            spaceAfter=14,
            alignment=TA_CENTER,
            fontName='Helvetica-Bold'
        ))
        self.styles.add(ParagraphStyle(
            name='Field',
            parent=self.styles['Normal'],
            fontSize=11,
            textColor=HexColor('#333333'),
            spaceAfter=4,
            fontName='Helvetica'
        ))
        self.styles.add(ParagraphStyle(
            name='Footer',
            parent=self.styles['Normal'],
            fontSize=8,
            textColor=HexColor('#6b7280'),
            alignment=TA_CENTER
        ))

    # ==================== PDF plumbing ====================

    def _new_path(self, prefix: str) -> Path:
        return self.output_dir / f"{prefix}_{uuid.uuid4().hex}.pdf"

    def _header(self, heading: str) -> List:
        return [
            Paragraph(INSTITUTION_NAME, self.styles['Institution']),
            Paragraph(heading, self.styles['DocHeading']),
        ]

    def _field(self, label: str, value) -> Paragraph:
        return Paragraph(f"<b>{label}:</b> {value if value is not None else '-'}", self.styles['Field'])

    def _table(self, header: Sequence[str], rows: Iterable[Sequence], col_widths=None) -> Table:
        table = Table([list(header)] + [list(map(str, row)) for row in rows], colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), HexColor('#1e3a8a')),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, HexColor('#f3f4f6')]),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ]))
        return table

    def _footer(self, text: str) -> List:
        return [
            Spacer(1, 0.4 * inch),
            Paragraph(text, self.styles['Footer']),
            Paragraph(f"Generated on: {datetime.utcnow().strftime('%d %b %Y %H:%M UTC')}", self.styles['Footer']),
        ]

    def _build(self, path: Path, story: List, report_type: str, pagesize=A4) -> Path:
        try:
            doc = SimpleDocTemplate(
                str(path),
                pagesize=pagesize,
                rightMargin=54,
                leftMargin=54,
                topMargin=54,
                bottomMargin=54
            )
            doc.build(story)
        except Exception as e:
            logger.error(f"Error generating {report_type} PDF: {e}", exc_info=True)
            path.unlink(missing_ok=True)
            raise ReportGenerationError(report_type=report_type) from e

        logger.info(f"Generated {report_type} PDF: {path.name}")
        return path

    # ==================== Documents ====================

    def generate_fee_receipt(self, payment, fee, student) -> Path:
        """Receipt for one FeePayment"""
        currency = settings.PAYMENT_CURRENCY
        story = self._header("Fee Payment Receipt")
        story += [
            self._field("Receipt Number", payment.receipt_number),
            self._field("Date", payment.payment_date.strftime('%d %b %Y') if payment.payment_date else None),
            Spacer(1, 0.15 * inch),
            self._field("Student Name", student.full_name),
            self._field("Registration ID", student.registration_id),
            self._field("Semester", f"{fee.semester} ({fee.year})"),
            Spacer(1, 0.15 * inch),
            self._table(
                ["Description", "Amount"],
                [
                    ("Amount Paid", f"{currency} {payment.amount}"),
                    ("Payment Mode", payment.payment_mode),
                    ("Transaction ID", payment.transaction_id),
                    ("Status", payment.status.value),
                    ("Total Fee", f"{currency} {fee.total_amount}"),
                    ("Total Paid", f"{currency} {fee.paid_amount}"),
                    ("Balance Pending", f"{currency} {fee.pending_amount}"),
                ],
                col_widths=[2.5 * inch, 3.5 * inch],
            ),
        ]
        story += self._footer("Thank you for your payment! This is a computer generated receipt.")
        return self._build(self._new_path(f"fee_receipt_{payment.receipt_number}"), story, "fee_receipt")

    def generate_grade_sheet(self, student, results: Sequence, cgpa: float, total_credits: int) -> Path:
        """Grade sheet over a student's Result rows"""
        story = self._header("Grade Sheet")
        story += [
            self._field("Student Name", student.full_name),
            self._field("Registration ID", student.registration_id),
            self._field("Department", student.department.name if student.department else None),
            Spacer(1, 0.2 * inch),
        ]
        rows = [
            (
                r.year,
                r.semester,
                r.subject_code,
                r.subject_name,
                r.credits,
                f"{r.total_marks:g}/{r.max_marks:g}",
                r.grade or "-",
                points_for_letter(r.grade),
            )
            for r in results
        ]
        story.append(self._table(
            ["Year", "Sem", "Code", "Subject", "Credits", "Marks", "Grade", "Points"],
            rows,
        ))
        story += [
            Spacer(1, 0.25 * inch),
            self._field("Total Credits", total_credits),
            self._field("CGPA", f"{cgpa:.2f}"),
        ]
        story += self._footer("This is a computer generated grade sheet.")
        return self._build(self._new_path(f"grade_sheet_{student.registration_id}"), story, "grade_sheet")

    def generate_timetable_pdf(self, entries: Sequence, title: str = "Class Timetable") -> Path:
        story = self._header(title)
        story.append(self._table(TIMETABLE_COLUMNS, [self._timetable_row(e) for e in entries]))
        story += self._footer("Timetable subject to change. Check the portal for updates.")
        return self._build(self._new_path("timetable"), story, "timetable", pagesize=landscape(A4))

    @staticmethod
    def _timetable_row(entry) -> List:
        return [
            entry.day_of_week.value,
            entry.start_time,
            entry.end_time,
            entry.subject_name,
            entry.subject_code or "",
            entry.faculty.name if entry.faculty else "",
            entry.room_number or "",
            entry.class_type.value if entry.class_type else "",
            entry.year,
            entry.semester,
        ]

    def timetable_csv(self, entries: Sequence) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(TIMETABLE_COLUMNS)
        for entry in entries:
            writer.writerow(self._timetable_row(entry))
        return buffer.getvalue()

    # ==================== Text reports ====================

    @staticmethod
    def student_registration_text(students: Sequence) -> str:
        lines = [
            f"{s.full_name} - {s.registration_status.value} - {s.department.name if s.department else 'N/A'}"
            for s in students
        ]
        return f"Student Registration Report\nTotal Students: {len(students)}\n\nDetails:\n" + "\n".join(lines)

    @staticmethod
    def resource_usage_text(resources: Sequence) -> str:
        lines = [
            f"{r.name} - {r.status.value} - Assigned to: {r.assigned_to.full_name if r.assigned_to else 'None'}"
            for r in resources
        ]
        return f"Resource Usage Report\nTotal Resources: {len(resources)}\n\nDetails:\n" + "\n".join(lines)

    @staticmethod
    def inventory_text(items: Sequence) -> str:
        lines = [f"{i.item_name} - {i.quantity} - {i.status.value}" for i in items]
        return f"Inventory Report\nTotal Items: {len(items)}\n\nDetails:\n" + "\n".join(lines)
