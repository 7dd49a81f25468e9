import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./axleworks.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Frontend origins allowed by CORS (comma separated)
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS", "http://localhost:8081,http://localhost:3000"
).split(",")

# Shop rates - injected into the document services, never hard-coded there
LABOUR_RATE = float(os.getenv("SHOP_LABOUR_RATE", "80"))
TAX_RATE = float(os.getenv("SHOP_TAX_RATE", "13"))
INVOICE_DUE_DAYS = int(os.getenv("SHOP_INVOICE_DUE_DAYS", "30"))
ESTIMATE_VALID_DAYS = int(os.getenv("SHOP_ESTIMATE_VALID_DAYS", "30"))
# Fraction of a part's sell price recorded as its cost when an estimate is
# converted (0.7 assumes a 30% markup)
PARTS_COST_FACTOR = float(os.getenv("SHOP_PARTS_COST_FACTOR", "0.7"))

# Booking window, HH:MM in shop local time
BUSINESS_HOURS_START = os.getenv("SHOP_BUSINESS_HOURS_START", "08:00")
BUSINESS_HOURS_END = os.getenv("SHOP_BUSINESS_HOURS_END", "18:00")
SLOT_GRANULARITY_MINUTES = int(os.getenv("SHOP_SLOT_GRANULARITY_MINUTES", "30"))
# false: a slot is taken only by an appointment starting at exactly that time
SLOT_OVERLAP_MATCHING = os.getenv("SHOP_SLOT_OVERLAP_MATCHING", "false").lower() == "true"

AUTO_INVOICE_ON_COMPLETION = os.getenv("SHOP_AUTO_INVOICE_ON_COMPLETION", "true").lower() == "true"

# Pagination defaults
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))


@dataclass(frozen=True)
class ShopSettings:
    """Rates and booking rules used by the document and scheduling services"""

    labour_rate: float = 80.0
    tax_rate: float = 13.0
    invoice_due_days: int = 30
    estimate_valid_days: int = 30
    parts_cost_factor: float = 0.7
    business_hours_start: str = "08:00"
    business_hours_end: str = "18:00"
    slot_granularity_minutes: int = 30
    slot_overlap_matching: bool = False
    auto_invoice_on_completion: bool = True


def get_shop_settings() -> ShopSettings:
    """Dependency returning the shop settings built from the environment"""
    return ShopSettings(
        labour_rate=LABOUR_RATE,
        tax_rate=TAX_RATE,
        invoice_due_days=INVOICE_DUE_DAYS,
        estimate_valid_days=ESTIMATE_VALID_DAYS,
        parts_cost_factor=PARTS_COST_FACTOR,
        business_hours_start=BUSINESS_HOURS_START,
        business_hours_end=BUSINESS_HOURS_END,
        slot_granularity_minutes=SLOT_GRANULARITY_MINUTES,
        slot_overlap_matching=SLOT_OVERLAP_MATCHING,
        auto_invoice_on_completion=AUTO_INVOICE_ON_COMPLETION,
    )
