"""GU Market Feed - Gods Unchained marketplace data from Immutable X.

Provides:
- Async retryable job runner (etl)
- Immutable X API client, valuation, and DuckDB persistence
- CLI scripts for assets, trades and price exports
"""

__version__ = "0.1.0"

from . import etl
from . import immutable
from . import scripts

__all__ = ["etl", "immutable", "scripts", "__version__"]
