"""
Core shared library for the Agency Portal.

This package contains the logic used by the web/ package:
- exceptions: Custom exception hierarchy
- validators: Input validation functions
- aggregation: Metric summing, rates and campaign ranking
- config: Centralized configuration
"""

# Import in dependency order
from core.exceptions import (
    ProviderError,
    ProviderConnectionError,
    ProviderAPIError,
    ProviderDataError,
    ValidationError,
    NotFoundError,
)

from core.validators import (
    validate_date_string,
    validate_date_range,
    validate_days,
    validate_limit,
    validate_entity_id,
    validate_email,
)

from core.aggregation import (
    compute_rate,
    merge_daily,
    rank_campaigns,
)

from core.config import config

__all__ = [
    # Exceptions
    "ProviderError",
    "ProviderConnectionError",
    "ProviderAPIError",
    "ProviderDataError",
    "ValidationError",
    "NotFoundError",
    # Validators
    "validate_date_string",
    "validate_date_range",
    "validate_days",
    "validate_limit",
    "validate_entity_id",
    "validate_email",
    # Aggregation
    "compute_rate",
    "merge_daily",
    "rank_campaigns",
    # Config
    "config",
]
