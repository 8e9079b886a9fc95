"""
Prescription PDF Generator

Renders a prescription as a branded A4 PDF using fpdf2. Nothing is stored;
the bytes are produced on demand for download.
"""

import logging
from datetime import date
from typing import Optional

from fpdf import FPDF

from cureconnect.domain.entities import Doctor, Prescription

logger = logging.getLogger(__name__)


def _latin1(text: Optional[str]) -> str:
    # Core PDF fonts only cover latin-1
    return (text or "").encode("latin-1", "replace").decode("latin-1")


class PrescriptionPDFGenerator:
    """
    Generates prescription PDFs with:
    - CureConnect branding and the prescribing doctor
    - Patient and appointment details
    - Medication table
    - Notes, follow-up and status footer
    """

    PAGE_WIDTH = 210
    MARGIN = 20

    PRIMARY_COLOR = (37, 99, 235)
    SECONDARY_COLOR = (100, 100, 100)
    TEXT_COLOR = (50, 50, 50)
    HEADER_FILL = (230, 238, 253)

    # Column widths of the medication table (sum = usable page width)
    COLUMNS = (("Medication", 50), ("Dosage", 35), ("Frequency", 45), ("Duration", 40))

    def __init__(self, brand_name: str = "CureConnect"):
        self.brand_name = brand_name

    def generate(self, prescription: Prescription, doctor: Optional[Doctor] = None) -> bytes:
        """
        Render ``prescription`` to PDF.

        Args:
            prescription: The prescription to render
            doctor: Prescribing doctor, used for specialization and location

        Returns:
            PDF content as bytes
        """
        logger.info(
            "Generating prescription PDF",
            extra={
                "context": {
                    "prescription_id": prescription.id,
                    "medications": len(prescription.medications),
                }
            },
        )

        pdf = FPDF()
        pdf.add_page()
        pdf.set_auto_page_break(auto=True, margin=15)
        pdf.set_font("Helvetica", size=10)

        self._add_header(pdf, prescription, doctor)
        self._add_title(pdf)
        self._add_details(pdf, prescription)
        self._add_medications(pdf, prescription)
        self._add_notes(pdf, prescription)
        self._add_footer(pdf, prescription)

        pdf_bytes = bytes(pdf.output())
        logger.info(f"Prescription PDF generated: {len(pdf_bytes)} bytes")
        return pdf_bytes

    def _add_header(
        self, pdf: FPDF, prescription: Prescription, doctor: Optional[Doctor]
    ) -> None:
        pdf.set_y(self.MARGIN)

        pdf.set_font("Helvetica", "B", 20)
        pdf.set_text_color(*self.PRIMARY_COLOR)
        pdf.cell(0, 10, self.brand_name, align="C", new_x="LMARGIN", new_y="NEXT")

        pdf.set_font("Helvetica", "B", 12)
        pdf.set_text_color(*self.TEXT_COLOR)
        pdf.cell(
            0,
            7,
            _latin1(f"Dr. {prescription.doctor_name}"),
            align="C",
            new_x="LMARGIN",
            new_y="NEXT",
        )

        if doctor is not None:
            pdf.set_font("Helvetica", size=9)
            pdf.set_text_color(*self.SECONDARY_COLOR)
            parts = [doctor.specialization]
            if doctor.location:
                parts.append(doctor.location)
            pdf.cell(
                0, 5, _latin1(" | ".join(parts)), align="C", new_x="LMARGIN", new_y="NEXT"
            )

        pdf.ln(5)

    def _add_title(self, pdf: FPDF) -> None:
        pdf.set_draw_color(*self.PRIMARY_COLOR)
        pdf.set_line_width(0.5)
        y_pos = pdf.get_y()
        pdf.line(self.MARGIN, y_pos, self.PAGE_WIDTH - self.MARGIN, y_pos)

        pdf.ln(6)
        pdf.set_font("Helvetica", "B", 16)
        pdf.set_text_color(*self.PRIMARY_COLOR)
        pdf.cell(0, 10, "PRESCRIPTION", align="C", new_x="LMARGIN", new_y="NEXT")
        pdf.ln(6)

    def _add_details(self, pdf: FPDF, prescription: Prescription) -> None:
        pdf.set_text_color(*self.TEXT_COLOR)
        issued = prescription.created_at.date() if prescription.created_at else date.today()
        rows = [
            ("Patient:", prescription.patient_name),
            ("Date:", issued.strftime("%B %d, %Y")),
            ("Prescription ID:", prescription.id or "-"),
        ]
        for label, value in rows:
            pdf.set_font("Helvetica", "B", 10)
            pdf.cell(40, 7, label, new_x="RIGHT")
            pdf.set_font("Helvetica", size=10)
            pdf.cell(0, 7, _latin1(value), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(6)

    def _add_medications(self, pdf: FPDF, prescription: Prescription) -> None:
        pdf.set_font("Helvetica", "B", 10)
        pdf.set_fill_color(*self.HEADER_FILL)
        pdf.set_draw_color(200, 200, 200)
        for title, width in self.COLUMNS:
            pdf.cell(width, 8, title, border=1, fill=True, new_x="RIGHT")
        pdf.ln(8)

        pdf.set_font("Helvetica", size=10)
        for medication in prescription.medications:
            values = (
                medication.name,
                medication.dosage,
                medication.frequency,
                medication.duration,
            )
            for (_, width), value in zip(self.COLUMNS, values):
                pdf.cell(width, 8, _latin1(value), border=1, new_x="RIGHT")
            pdf.ln(8)
        pdf.ln(6)

    def _add_notes(self, pdf: FPDF, prescription: Prescription) -> None:
        if prescription.notes:
            pdf.set_font("Helvetica", "B", 10)
            pdf.cell(0, 7, "Notes", new_x="LMARGIN", new_y="NEXT")
            pdf.set_font("Helvetica", size=10)
            pdf.multi_cell(0, 6, _latin1(prescription.notes), new_x="LMARGIN", new_y="NEXT")
            pdf.ln(4)

        if prescription.follow_up_date:
            pdf.set_font("Helvetica", "B", 10)
            pdf.cell(40, 7, "Follow-up:", new_x="RIGHT")
            pdf.set_font("Helvetica", size=10)
            pdf.cell(
                0,
                7,
                prescription.follow_up_date.strftime("%B %d, %Y"),
                new_x="LMARGIN",
                new_y="NEXT",
            )

    def _add_footer(self, pdf: FPDF, prescription: Prescription) -> None:
        pdf.ln(10)
        pdf.set_font("Helvetica", "I", 8)
        pdf.set_text_color(*self.SECONDARY_COLOR)
        status = f"Status: {prescription.status}"
        if prescription.expiry_date:
            status += f" (expired {prescription.expiry_date.isoformat()})"
        pdf.cell(0, 5, status, align="C", new_x="LMARGIN", new_y="NEXT")
        pdf.cell(
            0,
            5,
            f"Generated by {self.brand_name}. Valid only with the prescribing doctor's approval.",
            align="C",
            new_x="LMARGIN",
            new_y="NEXT",
        )
