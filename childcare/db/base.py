# Import all models here so Base.metadata sees every table (used by alembic and tests)
from childcare.db.base_class import Base  # noqa: F401
from childcare.models.assignment import Assignment  # noqa: F401
from childcare.models.submission import Submission  # noqa: F401
from childcare.models.user import User  # noqa: F401
