"""
Config -> Kernel Bridges.

Functions that turn StockSettings into kernel inputs.  They live here
because the kernel must NEVER import stock_config.

Usage:
    from stock_config import get_active_settings
    from stock_config.bridges import bootstrap, to_lot_validation_policy

    settings = get_active_settings()
    bootstrap(settings)
    policy = to_lot_validation_policy(settings)
"""

from __future__ import annotations

from stock_config.settings import StockSettings
from stock_kernel.db.engine import init_engine_from_url
from stock_kernel.domain.policy import LotValidationPolicy
from stock_kernel.logging_config import configure_logging


def to_lot_validation_policy(settings: StockSettings) -> LotValidationPolicy:
    v = settings.validation
    return LotValidationPolicy(
        min_purchase_year=v.min_purchase_year,
        max_future_months=v.max_future_months,
        max_quantity=v.max_quantity,
    )


def bootstrap(settings: StockSettings) -> None:
    """Configure logging, then initialize the engine from ``settings``."""
    configure_logging(level=settings.logging.level.upper())
    db = settings.database
    init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
    )
