"""
Shared module for common utilities used by the REST API.

STRUCTURE:
- shared.security: Authentication and hotel membership
  - auth.py: JWT signing/verification, current_user_context

- shared.infrastructure: Database and request tracing
  - db.py: SQLAlchemy sessions, safe_commit()
  - correlation.py: X-Request-ID middleware and logging filter

- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging
  - constants.py: Roles, OrderStatus ordering, departments

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - schemas.py: Pydantic request/response schemas

IMPORT EXAMPLES:
    from shared.security.auth import current_user_context
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import OrderStatus, compare_status
    from shared.utils.exceptions import NotFoundError, ForbiddenError
"""
