import logging

from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer
from sqlmodel import select

from mermanager.auth.auth_handler import hash_password, verify_password, create_access_token, user_id_from_token
from mermanager.db import get_session
from mermanager.errors import AuthError
from mermanager.models.auth import UserRegistration, Token, User
from mermanager.models.user_db import User as DBUser

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_current_user(token: str = Depends(oauth2_scheme)) -> str:
    try:
        return user_id_from_token(token)
    except AuthError:
        raise HTTPException(status_code=401, detail="Invalid token")


@router.post("/register")
def register(user: UserRegistration):
    with get_session() as session:
        existing = session.get(DBUser, user.username)
        if existing:
            raise HTTPException(status_code=400, detail="Username already registered")
        email_exists = session.exec(
            select(DBUser).where(DBUser.email == user.email)
        ).first()
        if email_exists:
            raise HTTPException(status_code=400, detail="Email already registered")

        db_user = DBUser(
            username=user.username,
            email=user.email,
            hashed_password=hash_password(user.password)
        )
        session.add(db_user)
        session.commit()

    logger.info("Registered user %s", user.username)
    return {"message": "User registered successfully"}


@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends()):
    username = form_data.username
    password = form_data.password

    with get_session() as session:
        db_user = session.get(DBUser, username)
        if not db_user or not verify_password(password, db_user.hashed_password):
            logger.warning("Failed login for %s", username)
            raise HTTPException(status_code=401, detail="Invalid credentials")

    access_token = create_access_token({"sub": username})
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=User)
def get_current_user_info(user_id: str = Depends(get_current_user)):
    with get_session() as session:
        user = session.get(DBUser, user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return User(uid=user.username, display_name=user.display_name or user.username, email=user.email)
