import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="MEDICORE_", extra="ignore")

    db_url: str = "sqlite:///medicore.db"

    invoice_output_dir: str = "./invoices"
    patient_list_limit: int = 100
    currency_symbol: str = "₹"

    hospital_name: str = "MediCore Hospital"
    hospital_tagline: str = "Excellence in Healthcare"
    hospital_address: str = "123 Medical Center, Healthcare District, City - 400001"
    hospital_phone: str = "+91 98765 43210"
    hospital_gst: str = "27XXXXX1234X1Z5"

    log_level: str = "INFO"
    log_json: bool = False
    log_file: str = ""


settings = Settings()
