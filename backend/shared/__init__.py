"""
Shared module for code used by the data store, the REST API and the CLI.

STRUCTURE:
- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging
  - constants.py: UserRole, categories, storage keys, limits

- shared.infrastructure: Cross-cutting plumbing
  - correlation.py: Correlation IDs for requests and background operations

- shared.utils: Utilities
  - exceptions.py: Store errors and HTTP exceptions with auto-logging
  - validators.py: Quantity/price/partner-name normalization
  - schemas.py: API envelope and request/response schemas

IMPORT EXAMPLES:
    from shared.config.settings import settings
    from shared.config.constants import UserRole, requires_partner_name
    from shared.utils.exceptions import NotFoundError, RemoteApiError
    from shared.utils.validators import normalize_quantity
"""
