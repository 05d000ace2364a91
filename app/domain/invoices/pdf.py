"""
Invoice PDF Generator
Renders a printable invoice with line items, payments and balance
"""

import io
import logging

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ...models import Clinic
from ...models_invoice import Invoice

logger = logging.getLogger(__name__)

STATUS_LABELS = {"paid": "PAID", "partial": "PARTIALLY PAID", "unpaid": "UNPAID"}


class InvoicePDFGenerator:
    """Generate an invoice PDF for a patient"""

    def __init__(self, invoice: Invoice, clinic: Clinic):
        self.invoice = invoice
        self.clinic = clinic
        self.currency = clinic.currency if clinic and clinic.currency else "USD"

        self.margin = 0.75 * inch
        self.brand_color = colors.HexColor("#0284c7")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f1f5f9")

    def _money(self, value) -> str:
        return f"{self.currency} {value or 0:,.2f}"

    def generate(self) -> bytes:
        """Generate PDF and return bytes"""
        logger.info(f"📄 Generating invoice PDF for {self.invoice.invoice_number}")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=f"Invoice {self.invoice.invoice_number}",
        )

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "InvoiceTitle", parent=styles["Heading1"], fontSize=22, textColor=self.brand_color
        )
        body_style = ParagraphStyle(
            "InvoiceBody", parent=styles["Normal"], fontSize=10, textColor=self.dark_gray, leading=14
        )

        story = [Paragraph(self.clinic.name if self.clinic else "Invoice", title_style)]
        if self.clinic:
            contact = [v for v in (self.clinic.address, self.clinic.phone, self.clinic.email) if v]
            if contact:
                story.append(Paragraph("<br/>".join(contact), body_style))
        story.append(Spacer(1, 0.3 * inch))

        patient = self.invoice.patient
        status = STATUS_LABELS.get(self.invoice.status, self.invoice.status)
        issued = self.invoice.created_at.strftime("%Y-%m-%d") if self.invoice.created_at else ""
        due = self.invoice.due_date.isoformat() if self.invoice.due_date else ""
        meta = [
            ["Invoice #", self.invoice.invoice_number, "Status", status],
            ["Patient", patient.full_name if patient else "", "Issued", issued],
            ["Phone", patient.phone if patient else "", "Due", due],
        ]
        meta_table = Table(meta, colWidths=[1.0 * inch, 2.4 * inch, 0.8 * inch, 1.8 * inch])
        meta_table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                    ("FONTNAME", (2, 0), (2, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 10),
                    ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        story.extend([meta_table, Spacer(1, 0.3 * inch)])

        rows = [["Description", "Qty", "Unit price", "Amount"]]
        for item in self.invoice.line_items or []:
            quantity = item.get("quantity", 1)
            unit_price = item.get("unit_price", 0)
            rows.append(
                [
                    Paragraph(str(item.get("description", "")), body_style),
                    f"{quantity:g}",
                    self._money(unit_price),
                    self._money(quantity * unit_price),
                ]
            )

        paid = self.invoice.amount_paid or 0
        rows.append(["", "", "Total", self._money(self.invoice.total_amount)])
        rows.append(["", "", "Paid", self._money(paid)])
        rows.append(["", "", "Balance", self._money(self.invoice.total_amount - paid)])

        items_table = Table(rows, colWidths=[3.2 * inch, 0.6 * inch, 1.2 * inch, 1.2 * inch])
        items_table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -4), [colors.white, self.light_gray]),
                    ("LINEABOVE", (2, -3), (-1, -3), 1, self.dark_gray),
                    ("FONTNAME", (2, -3), (-1, -1), "Helvetica-Bold"),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        story.append(items_table)

        if self.invoice.notes:
            story.extend([Spacer(1, 0.3 * inch), Paragraph(f"<b>Notes:</b> {self.invoice.notes}", body_style)])

        doc.build(story)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.info(f"✅ Invoice PDF generated ({len(pdf_bytes)} bytes)")
        return pdf_bytes
