from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from childcare.core.config import ACCESS_TOKEN_EXPIRE
from childcare.core.current_user import get_current_user
from childcare.core.deps import get_db
from childcare.core.security import create_access_token, hash_password, verify_password
from childcare.models.user import ROLE_PARENT, User
from childcare.schemas.auth import LoginRequest, Token
from childcare.schemas.envelope import Envelope, success_response
from childcare.schemas.user import UserCreate, UserRead

router = APIRouter()


@router.post(
    "/register",
    response_model=Envelope[UserRead],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Email already registered"},
    },
)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    """Self-registration creates parent accounts; staff accounts are provisioned by an admin."""
    existing_user = db.query(User).filter(User.email == payload.email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    user = User(
        email=payload.email,
        full_name=payload.full_name,
        child_name=payload.child_name,
        role=ROLE_PARENT,
        hashed_password=hash_password(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return success_response(UserRead.model_validate(user))


@router.post(
    "/login",
    response_model=Envelope[Token],
    responses={
        401: {"description": "Invalid email or password"},
    },
)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    access_token = create_access_token(
        data={"sub": str(user.id), "role": user.role},
        expires_delta=ACCESS_TOKEN_EXPIRE,
    )

    return success_response(Token(access_token=access_token))


@router.get("/me", response_model=Envelope[UserRead])
def me(current_user: User = Depends(get_current_user)):
    return success_response(UserRead.model_validate(current_user))
