from datetime import datetime
from zoneinfo import ZoneInfo

from medicore.models.bill import PaymentStatus

IST_TZ = ZoneInfo("Asia/Kolkata")

SERVICE_TEMPLATES = [
    "Consultation Fee",
    "Ward Charges",
    "ICU Charges",
    "Nursing Care",
    "Blood Test (CBC)",
    "Urine Test",
    "X-Ray",
    "ECG",
    "Ultrasound",
    "MRI Scan",
    "CT Scan",
    "Surgery",
    "Anesthesia",
    "Medicine",
    "IV Fluid",
    "Oxygen",
    "Physiotherapy",
    "Ambulance",
    "Vaccination",
    "Dressing",
]

STATUS_COLORS = {
    PaymentStatus.PAID: "green",
    PaymentStatus.PENDING: "yellow",
    PaymentStatus.PARTIAL: "orange",
}


def format_invoice_date(value: datetime | None) -> str:
    """05 Mar 2025"""
    if value is None:
        return ""
    return value.strftime("%d %b %Y")
