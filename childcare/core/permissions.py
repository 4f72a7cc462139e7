from fastapi import Depends, HTTPException, status

from childcare.core.current_user import get_current_user
from childcare.models.user import ROLE_ADMIN, ROLE_PARENT, ROLE_TEACHER, User


def require_role(*roles: str):
    def guard(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return guard


# admins can do everything teachers can
require_teacher = require_role(ROLE_TEACHER, ROLE_ADMIN)
require_parent = require_role(ROLE_PARENT)
