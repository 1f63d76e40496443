"""
Account deletion feature package.

Domain models, the user-store repository, the deletion service, the sweep
job and the HTTP router live together in this vertical slice.
"""

from .api.router import router as account_deletion_router  # noqa: F401
from .domain.models import Active, Due, Scheduled, SweepReport  # noqa: F401
from .services import AccountDeletionService, build_account_deletion_service  # noqa: F401
