"""Folio -- portfolio valuation and performance analytics.

Public API::

    from folio import (
        compute_position,
        compute_portfolio_totals,
        resolve_range,
        compute_analytics,
    )
"""

__version__ = "0.3.0"

from folio.engine.analytics import compute_analytics  # noqa: E402
from folio.engine.ranges import resolve_range  # noqa: E402
from folio.portfolio.allocation import compute_portfolio_totals  # noqa: E402
from folio.portfolio.positions import compute_position  # noqa: E402

__all__ = [
    "__version__",
    "compute_analytics",
    "compute_portfolio_totals",
    "compute_position",
    "resolve_range",
]
