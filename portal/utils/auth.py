from datetime import datetime, timedelta
from jose import jwt, JWTError
from fastapi import HTTPException, Depends
from fastapi.security import OAuth2PasswordBearer

from portal.config import settings
from portal.database import get_db
from sqlalchemy.orm import Session
from portal.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

STAFF_ROLES = ("instructor", "admin")


def create_access_token(data: dict, expires_minutes=None):
    to_encode = data.copy()
    minutes = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    expire = datetime.utcnow() + timedelta(minutes=minutes)
    to_encode.update({"exp": expire})
    token = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        username: str = payload.get("sub")
        if username is None:
            raise HTTPException(status_code=403, detail="Invalid token")

        user = db.query(User).filter(User.username == username).first()
        if not user:
            raise HTTPException(status_code=401, detail="User not found")

        return user

    except JWTError:
        raise HTTPException(status_code=403, detail="Invalid authentication token")


def require_admin(user=Depends(get_current_user)):
    if getattr(user, "role", None) != "admin":
        raise HTTPException(status_code=403, detail="Admin only")
    return user


def require_staff(user=Depends(get_current_user)):
    if getattr(user, "role", None) not in STAFF_ROLES:
        raise HTTPException(status_code=403, detail="Instructor or admin only")
    return user


def require_student(user=Depends(get_current_user)):
    if getattr(user, "role", None) != "student":
        raise HTTPException(status_code=403, detail="Students only")
    return user
