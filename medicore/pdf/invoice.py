from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path

from fpdf import FPDF

from medicore.invoice.renderer import InvoiceDocument, TotalsLine
from medicore.models import format_inr

logger = logging.getLogger(__name__)

FONT = "Helvetica"
# Core PDF fonts are latin-1 only, so the rupee sign is spelled out.
PDF_CURRENCY = "Rs. "

COLORS = {
    "primary": (37, 99, 235),
    "text_color": (17, 24, 39),
    "text_contrast": (255, 255, 255),
    "muted_text": (107, 114, 128),
    "row_alt": (249, 250, 251),
    "border_color": (229, 231, 235),
    "discount": (220, 38, 38),
    "notes_bg": (254, 252, 232),
    "notes_text": (133, 77, 14),
}

BADGE_COLORS = {
    "green": ((220, 252, 231), (21, 128, 61)),
    "yellow": ((254, 249, 195), (161, 98, 7)),
    "orange": ((255, 237, 213), (194, 65, 12)),
}


def _pdf_text(value: str) -> str:
    return value.encode("latin-1", "replace").decode("latin-1")


def _money(amount: Decimal) -> str:
    return format_inr(amount, symbol=PDF_CURRENCY)


class InvoicePDF:
    def generate(self, document: InvoiceDocument) -> bytes:
        pdf = FPDF()
        pdf.add_page()
        pdf.set_auto_page_break(auto=True, margin=20)

        page_w = pdf.w - pdf.l_margin - pdf.r_margin

        self._draw_header(pdf, page_w, document)
        self._draw_patient(pdf, page_w, document)
        self._draw_table(pdf, page_w, document)
        self._draw_totals(pdf, page_w, document.totals)

        if document.notes:
            self._draw_notes(pdf, page_w, document.notes)

        self._draw_footer(pdf, page_w, document.footer)

        output = bytes(pdf.output())
        logger.debug(
            "PDF generated: invoice=%s rows=%d size=%d bytes",
            document.header.invoice_number,
            len(document.rows),
            len(output),
        )
        return output

    def _draw_header(self, pdf: FPDF, page_w: float, document: InvoiceDocument) -> None:
        c = COLORS
        header = document.header
        issuer = header.issuer
        x = pdf.l_margin
        y = pdf.get_y()
        left_w = page_w * 0.62
        box_w = page_w - left_w

        # Issuer identity
        pdf.set_xy(x, y)
        pdf.set_text_color(*c["text_color"])
        pdf.set_font(FONT, "B", 18)
        pdf.cell(left_w, 9, _pdf_text(issuer.name), new_x="LMARGIN", new_y="NEXT")
        pdf.set_font(FONT, "", 9)
        pdf.set_text_color(*c["muted_text"])
        if issuer.tagline:
            pdf.cell(left_w, 5, _pdf_text(issuer.tagline), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(2)
        pdf.set_font(FONT, "", 7)
        if issuer.address:
            pdf.cell(left_w, 4, _pdf_text(issuer.address), new_x="LMARGIN", new_y="NEXT")
        contact_parts = []
        if issuer.phone:
            contact_parts.append(f"Phone: {issuer.phone}")
        if issuer.gst:
            contact_parts.append(f"GST: {issuer.gst}")
        if contact_parts:
            pdf.cell(left_w, 4, _pdf_text(" | ".join(contact_parts)), new_x="LMARGIN", new_y="NEXT")
        left_bottom = pdf.get_y()

        # Invoice number box
        box_x = x + left_w
        pdf.set_fill_color(*c["primary"])
        pdf.rect(box_x, y, box_w, 18, "F")
        pdf.set_xy(box_x, y + 2)
        pdf.set_text_color(*c["text_contrast"])
        pdf.set_font(FONT, "", 8)
        pdf.cell(box_w, 4, "INVOICE", align="C")
        pdf.set_xy(box_x, y + 7)
        pdf.set_font(FONT, "B", 13)
        pdf.cell(box_w, 8, _pdf_text(header.invoice_number), align="C")

        pdf.set_xy(box_x, y + 20)
        pdf.set_font(FONT, "", 8)
        pdf.set_text_color(*c["muted_text"])
        pdf.cell(box_w, 5, f"Date: {header.issue_date_label}", align="R")

        # Status badge
        badge_bg, badge_fg = BADGE_COLORS.get(header.status_color, BADGE_COLORS["yellow"])
        badge_w = 24
        badge_y = y + 26
        pdf.set_fill_color(*badge_bg)
        pdf.rect(box_x + box_w - badge_w, badge_y, badge_w, 6, "F")
        pdf.set_xy(box_x + box_w - badge_w, badge_y)
        pdf.set_font(FONT, "B", 8)
        pdf.set_text_color(*badge_fg)
        pdf.cell(badge_w, 6, header.payment_status.value, align="C")

        bottom = max(left_bottom, badge_y + 6) + 4
        pdf.set_draw_color(*c["primary"])
        pdf.set_line_width(0.8)
        pdf.line(x, bottom, x + page_w, bottom)
        pdf.set_y(bottom + 6)

    def _draw_info_card(self, pdf: FPDF, x: float, y: float, w: float, label: str, value: str) -> None:
        c = COLORS
        pdf.set_xy(x + 4, y + 3)
        pdf.set_font(FONT, "", 7)
        pdf.set_text_color(*c["muted_text"])
        pdf.cell(w - 8, 4, label, new_x="LEFT", new_y="NEXT")
        pdf.set_x(x + 4)
        pdf.set_font(FONT, "B", 10)
        pdf.set_text_color(*c["text_color"])
        pdf.cell(w - 8, 7, _pdf_text(value))

    def _draw_patient(self, pdf: FPDF, page_w: float, document: InvoiceDocument) -> None:
        c = COLORS
        x = pdf.l_margin
        y = pdf.get_y()
        card_h = 32
        col_w = page_w / 2

        pdf.set_fill_color(*c["row_alt"])
        pdf.rect(x, y, page_w, card_h, "F")

        patient = document.patient
        self._draw_info_card(pdf, x, y, col_w, "PATIENT NAME", patient.name)
        self._draw_info_card(pdf, x + col_w, y, col_w, "PATIENT TYPE", patient.type_and_ward)
        self._draw_info_card(pdf, x, y + 15, col_w, "CONTACT", patient.contact)

        pdf.set_y(y + card_h + 8)

    def _draw_table(self, pdf: FPDF, page_w: float, document: InvoiceDocument) -> None:
        c = COLORS
        col_idx = page_w * 0.08
        col_desc = page_w * 0.44
        col_qty = page_w * 0.12
        col_price = page_w * 0.18
        col_amount = page_w * 0.18
        line_h = 10

        # Table header
        pdf.set_fill_color(*c["primary"])
        pdf.set_text_color(*c["text_contrast"])
        pdf.set_font(FONT, "B", 9)
        pdf.cell(col_idx, line_h, "  #", fill=True)
        pdf.cell(col_desc, line_h, "Service Description", fill=True)
        pdf.cell(col_qty, line_h, "Qty", fill=True, align="C")
        pdf.cell(col_price, line_h, "Unit Price", fill=True, align="R")
        pdf.cell(col_amount, line_h, "Amount  ", fill=True, align="R", new_x="LMARGIN", new_y="NEXT")

        # Table rows
        pdf.set_text_color(*c["text_color"])
        for i, row in enumerate(document.rows):
            if i % 2 == 0:
                pdf.set_fill_color(*c["text_contrast"])
            else:
                pdf.set_fill_color(*c["row_alt"])

            pdf.set_font(FONT, "", 9)
            pdf.cell(col_idx, line_h, f"  {row.index}", fill=True)
            pdf.set_font(FONT, "B", 9)
            pdf.cell(col_desc, line_h, _pdf_text(row.service_name), fill=True)
            pdf.set_font(FONT, "", 9)
            pdf.cell(col_qty, line_h, str(row.quantity), fill=True, align="C")
            pdf.cell(col_price, line_h, _money(row.unit_price), fill=True, align="R")
            pdf.set_font(FONT, "B", 9)
            pdf.cell(
                col_amount,
                line_h,
                f"{_money(row.amount)}  ",
                fill=True,
                align="R",
                new_x="LMARGIN",
                new_y="NEXT",
            )

        # Bottom border
        pdf.set_draw_color(*c["border_color"])
        pdf.set_line_width(0.3)
        y = pdf.get_y()
        pdf.line(pdf.l_margin, y, pdf.l_margin + page_w, y)

    def _draw_totals(self, pdf: FPDF, page_w: float, totals: list[TotalsLine]) -> None:
        c = COLORS
        pdf.ln(6)

        block_w = page_w * 0.45
        block_x = pdf.l_margin + page_w - block_w
        col_label = block_w * 0.5
        col_amount = block_w * 0.5

        for line in totals:
            pdf.set_x(block_x)
            if line.key == "total":
                pdf.ln(2)
                pdf.set_x(block_x)
                pdf.set_fill_color(*c["primary"])
                pdf.set_text_color(*c["text_contrast"])
                pdf.set_font(FONT, "B", 12)
                pdf.cell(col_label, 12, f"  {line.label}", fill=True)
                pdf.cell(
                    col_amount,
                    12,
                    f"{_money(line.amount)}  ",
                    fill=True,
                    align="R",
                    new_x="LMARGIN",
                    new_y="NEXT",
                )
                continue

            pdf.set_font(FONT, "", 9)
            pdf.set_text_color(*c["muted_text"])
            pdf.cell(col_label, 8, _pdf_text(line.label))
            pdf.set_font(FONT, "B", 9)
            if line.deduction:
                pdf.set_text_color(*c["discount"])
                amount = f"-{_money(line.amount)}"
            else:
                pdf.set_text_color(*c["text_color"])
                amount = _money(line.amount)
            pdf.cell(col_amount, 8, amount, align="R", new_x="LMARGIN", new_y="NEXT")

    def _draw_notes(self, pdf: FPDF, page_w: float, notes: str) -> None:
        c = COLORS
        pdf.ln(10)

        x = pdf.l_margin
        y = pdf.get_y()
        pdf.set_fill_color(*c["notes_bg"])
        pdf.rect(x, y, page_w, 16, "F")
        pdf.set_xy(x + 4, y + 4)
        pdf.set_text_color(*c["notes_text"])
        pdf.set_font(FONT, "B", 9)
        pdf.cell(14, 6, "Notes:")
        pdf.set_font(FONT, "", 9)
        pdf.multi_cell(page_w - 22, 6, _pdf_text(notes))

    def _draw_footer(self, pdf: FPDF, page_w: float, footer: str) -> None:
        c = COLORS
        pdf.set_y(-30)
        pdf.set_draw_color(*c["border_color"])
        pdf.set_line_width(0.3)
        y = pdf.get_y()
        pdf.line(pdf.l_margin, y, pdf.l_margin + page_w, y)
        pdf.ln(5)
        pdf.set_font(FONT, "", 7)
        pdf.set_text_color(*c["muted_text"])
        pdf.cell(0, 5, _pdf_text(footer), align="C")


def write_invoice_pdf(document: InvoiceDocument, output_dir: str) -> Path:
    """Print an invoice to ``<output_dir>/<invoice number>.pdf`` and return the path."""
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{document.header.invoice_number}.pdf"
    path.write_bytes(InvoicePDF().generate(document))
    logger.info("Invoice %s written to %s", document.header.invoice_number, path)
    return path
