from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.models.user import User
from portal.schemas.user import UserCreate, UserOut
from portal.utils.auth import create_access_token, get_current_user
from portal.utils.hashing import hash_password, verify_password

import logging
logger = logging.getLogger("portal.auth")


router = APIRouter(prefix="/auth", tags=["Auth"])


# 註冊 (students only; staff accounts are provisioned by admins)
@router.post("/register", response_model=UserOut)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    exists = db.query(User).filter(User.username == user_data.username).first()
    if exists:
        raise HTTPException(status_code=409, detail={"kind": "conflict", "message": "Username already exists"})

    new_user = User(
        username=user_data.username,
        password_hash=hash_password(user_data.password),
        role="student",
        name=user_data.name,
        email=user_data.email,
        roll_number=user_data.roll_number,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    logger.info("registered student %s (id=%s)", new_user.username, new_user.id)
    return new_user


# 登入
@router.post("/login")
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == form_data.username).first()
    if not user or not verify_password(form_data.password, user.password_hash):
        logger.warning("failed login for %s", form_data.username)
        raise HTTPException(status_code=403, detail="Invalid credentials")
    token = create_access_token({"sub": user.username, "role": user.role})
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=UserOut)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
