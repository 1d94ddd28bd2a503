from datetime import datetime

from medicore.constants import SERVICE_TEMPLATES, STATUS_COLORS, format_invoice_date
from medicore.models.bill import PaymentStatus


class TestFormatInvoiceDate:
    def test_format(self):
        assert format_invoice_date(datetime(2025, 3, 5, 14, 0)) == "05 Mar 2025"

    def test_none(self):
        assert format_invoice_date(None) == ""


class TestStatusColors:
    def test_every_status_has_a_color(self):
        assert set(STATUS_COLORS) == set(PaymentStatus)


class TestServiceTemplates:
    def test_unique(self):
        assert len(SERVICE_TEMPLATES) == len(set(SERVICE_TEMPLATES))
        assert "Consultation Fee" in SERVICE_TEMPLATES
