"""Engine configuration.

The deny-list, category rule table, taxonomy, home-category rules, ROI
threshold and cohort size are data, not code. Defaults live here and can be
overridden with a JSON file or environment variables.
"""

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

from propfin.domain.errors import ValidationError

# Internal reporting taxonomy
REVENUE = "Revenue"
OWNER_DISTRIBUTIONS = "Owner Distributions"
PROPERTY_ACQUISITION = "Property Acquisition"
UTILITIES = "Utilities"
MAINTENANCE = "Maintenance"
CLEANING = "Cleaning"
SUPPLIES = "Supplies"
MARKETING = "Marketing"
INSURANCE = "Insurance"
MANAGEMENT_FEES = "Management Fees"
OTHER_OPERATING = "Other Operating"

INTERNAL_CATEGORIES = (
    REVENUE,
    OWNER_DISTRIBUTIONS,
    PROPERTY_ACQUISITION,
    UTILITIES,
    MAINTENANCE,
    CLEANING,
    SUPPLIES,
    MARKETING,
    INSURANCE,
    MANAGEMENT_FEES,
    OTHER_OPERATING,
)

# Substrings that mark balance-sheet accounts (bank, card, personal) mixed
# into the accounting export.
BANK_ACCOUNT_PATTERNS = (
    "chk",
    "checking",
    "savings",
    "bank account",
    "chase bank",
    "amex",
    "visa",
    "mastercard",
    "credit card",
    "capital one",
    "wells fargo",
    "bofa",
    "bank of america",
    "paypal",
    "complete ok",
    "bus complete",
)

# Masked account number such as "Owner Card (0561)"
MASKED_ACCOUNT_REGEX = r"\(\d{4}\)\s*$"

# Sub-account suffix such as "Operating - 2"
SUB_ACCOUNT_REGEX = r"\s-\s\d+$"

# Ordered (pattern, standard category) pairs. First match wins, so more
# specific patterns come before the generic ones they contain.
CATEGORY_RULES = (
    ("darko distribution", "Darko Distribution"),
    ("darko dist", "Darko Distribution"),
    ("darko payout", "Darko Distribution"),
    ("distribution:darko", "Darko Distribution"),
    ("louis distribution", "Louis Distribution"),
    ("louis dist", "Louis Distribution"),
    ("louis payout", "Louis Distribution"),
    ("distribution:louis", "Louis Distribution"),
    ("owner payout", "Owner Payout"),
    ("owner distribution", "Owner Payout"),
    ("owner payment", "Owner Payout"),
    ("homeowner payout", "Owner Payout"),
    ("arbitrage acquisition", "Arbitrage Acquisition"),
    ("arbitrage furnishing", "Arbitrage Acquisition"),
    ("arbitrage setup", "Arbitrage Acquisition"),
    ("arb acquisition", "Arbitrage Acquisition"),
    ("arb furnishing", "Arbitrage Acquisition"),
    ("acquisition:arbitrage", "Arbitrage Acquisition"),
    ("home owner acquisition", "Home Owner Acquisition"),
    ("homeowner acquisition", "Home Owner Acquisition"),
    ("owner acquisition", "Home Owner Acquisition"),
    ("pm acquisition", "Home Owner Acquisition"),
    ("onboarding expense", "Home Owner Acquisition"),
    ("pm furnishing", "Home Owner Acquisition"),
    ("management fee", "Management Fee"),
    ("pm fee", "Management Fee"),
    ("employee base pay", "Employee Pay"),
    ("employee commission", "Employee Pay"),
    ("payroll", "Employee Pay"),
    ("wages", "Employee Pay"),
    ("salary", "Employee Pay"),
    ("commission", "Employee Pay"),
    ("sales tax", "Tax"),
    ("rental income", "Rental Income"),
    ("booking revenue", "Rental Income"),
    ("revenue", "Rental Income"),
    ("sales", "Rental Income"),
    ("airbnb", "Rental Income"),
    ("vrbo", "Rental Income"),
    ("cleaning fee income", "Rental Income"),
    ("cleaning supplies", "Cleaning"),
    ("cleaning", "Cleaning"),
    ("housekeeping", "Cleaning"),
    ("janitorial", "Cleaning"),
    ("laundry", "Cleaning"),
    ("repairs and maintenance", "Maintenance"),
    ("maintenance", "Maintenance"),
    ("repair", "Maintenance"),
    ("r&m", "Maintenance"),
    ("hvac", "Maintenance"),
    ("plumbing", "Maintenance"),
    ("handyman", "Maintenance"),
    ("utilities", "Utility"),
    ("utility", "Utility"),
    ("electric", "Utility"),
    ("water", "Utility"),
    ("sewer", "Utility"),
    ("internet", "Utility"),
    ("cable", "Utility"),
    ("gas", "Utility"),
    ("supplies", "Supplies"),
    ("amenities", "Supplies"),
    ("toiletries", "Supplies"),
    ("linens", "Supplies"),
    ("photography", "Marketing"),
    ("photographer", "Marketing"),
    ("listing photos", "Marketing"),
    ("advertising", "Marketing"),
    ("marketing", "Marketing"),
    ("insurance", "Insurance"),
    ("mortgage", "Mortgage"),
    ("home loan", "Mortgage"),
    ("lease payment", "Rent"),
    ("rent", "Rent"),
    ("review refund", "Review Refund"),
    ("guest refund", "Review Refund"),
    ("guest compensation", "Review Refund"),
    ("chargeback", "Chargeback"),
    ("charge back", "Chargeback"),
    ("payment dispute", "Chargeback"),
    ("legal", "Legal"),
    ("attorney", "Legal"),
    ("lawyer", "Legal"),
    ("property tax", "Tax"),
    ("occupancy tax", "Tax"),
    ("lodging tax", "Tax"),
    ("taxes", "Tax"),
    ("tax", "Tax"),
    ("software", "Software Subscription"),
    ("subscription", "Software Subscription"),
    ("saas", "Software Subscription"),
    ("pricelabs", "Software Subscription"),
    ("hostaway", "Software Subscription"),
    ("guesty", "Software Subscription"),
    ("wheelhouse", "Software Subscription"),
)

# Standard category to internal taxonomy
TAXONOMY = {
    "Rental Income": REVENUE,
    "Darko Distribution": OWNER_DISTRIBUTIONS,
    "Louis Distribution": OWNER_DISTRIBUTIONS,
    "Owner Payout": OWNER_DISTRIBUTIONS,
    "Arbitrage Acquisition": PROPERTY_ACQUISITION,
    "Home Owner Acquisition": PROPERTY_ACQUISITION,
    "Utility": UTILITIES,
    "Maintenance": MAINTENANCE,
    "Cleaning": CLEANING,
    "Supplies": SUPPLIES,
    "Marketing": MARKETING,
    "Insurance": INSURANCE,
    "Management Fee": MANAGEMENT_FEES,
    "Employee Pay": MANAGEMENT_FEES,
    "Software Subscription": MANAGEMENT_FEES,
    "Rent": OTHER_OPERATING,
    "Mortgage": OTHER_OPERATING,
    "Review Refund": OTHER_OPERATING,
    "Chargeback": OTHER_OPERATING,
    "Legal": OTHER_OPERATING,
    "Tax": OTHER_OPERATING,
}

# Ordered (substring of normalized label, home category key) pairs
HOME_CATEGORY_RULES = (
    ("property-management", "pm"),
    ("pm", "pm"),
    ("arbitrage", "arbitrage"),
    ("owned", "owned"),
    ("shared", "shared"),
    ("partnership", "shared"),
)

DEFAULT_ROI_THRESHOLD = 20.0
DEFAULT_COHORT_SIZE = 5
DEFAULT_ROLLING_WINDOW_DAYS = 30


def _pairs(value: Any) -> tuple[tuple[str, str], ...]:
    return tuple((str(pattern), str(result)) for pattern, result in value)


@dataclass(frozen=True)
class EngineConfig:
    """Configuration constants for the aggregation engine."""

    bank_account_patterns: tuple[str, ...] = BANK_ACCOUNT_PATTERNS
    masked_account_regex: str = MASKED_ACCOUNT_REGEX
    sub_account_regex: str = SUB_ACCOUNT_REGEX
    category_rules: tuple[tuple[str, str], ...] = CATEGORY_RULES
    taxonomy: dict[str, str] = field(default_factory=lambda: dict(TAXONOMY))
    home_category_rules: tuple[tuple[str, str], ...] = HOME_CATEGORY_RULES
    roi_threshold: float = DEFAULT_ROI_THRESHOLD
    cohort_size: int = DEFAULT_COHORT_SIZE
    rolling_window_days: int = DEFAULT_ROLLING_WINDOW_DAYS

    def with_overrides(self, overrides: dict[str, Any]) -> "EngineConfig":
        """Return a copy with the given fields replaced.

        Raises:
            ValidationError: If an override names an unknown field or has a bad value
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValidationError(f"Unknown configuration keys: {', '.join(unknown)}")

        values: dict[str, Any] = {}
        try:
            for key, value in overrides.items():
                if key == "bank_account_patterns":
                    values[key] = tuple(str(p).lower() for p in value)
                elif key in ("category_rules", "home_category_rules"):
                    values[key] = _pairs(value)
                elif key == "taxonomy":
                    values[key] = {str(k): str(v) for k, v in value.items()}
                elif key == "roi_threshold":
                    values[key] = float(value)
                elif key in ("cohort_size", "rolling_window_days"):
                    values[key] = int(value)
                else:
                    values[key] = str(value)
        except (TypeError, ValueError, AttributeError) as e:
            raise ValidationError(f"Invalid configuration value for '{key}': {e}")

        if values.get("cohort_size", self.cohort_size) < 1:
            raise ValidationError("cohort_size must be at least 1")
        if values.get("rolling_window_days", self.rolling_window_days) < 1:
            raise ValidationError("rolling_window_days must be at least 1")
        return replace(self, **values)


def load_config(config_path: Optional[str] = None) -> EngineConfig:
    """Load engine configuration.

    Args:
        config_path: Path to a JSON file of overrides. If None, checks the
            PROPFIN_CONFIG environment variable.

    Environment variables PROPFIN_ROI_THRESHOLD and PROPFIN_COHORT_SIZE
    override the file.

    Returns:
        EngineConfig with defaults and overrides applied

    Raises:
        ValidationError: If the file cannot be read or contains bad values
    """
    if config_path is None:
        config_path = os.environ.get("PROPFIN_CONFIG")

    overrides: dict[str, Any] = {}
    if config_path:
        path = Path(config_path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ValidationError(f"Could not read configuration '{config_path}': {e}")
        if not isinstance(loaded, dict):
            raise ValidationError(f"Configuration '{config_path}' must be a JSON object")
        overrides.update(loaded)

    threshold = os.environ.get("PROPFIN_ROI_THRESHOLD")
    if threshold:
        overrides["roi_threshold"] = threshold
    cohort_size = os.environ.get("PROPFIN_COHORT_SIZE")
    if cohort_size:
        overrides["cohort_size"] = cohort_size

    config = EngineConfig()
    if overrides:
        config = config.with_overrides(overrides)
    return config
