from fastapi import APIRouter, Cookie, Depends, Header, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from almoxtrack.config import settings
from almoxtrack.database import get_db
from almoxtrack.models.user import User, UserRole
from almoxtrack.services import auth_service

router = APIRouter(prefix="/auth", tags=["Auth"])

TOKEN_COOKIE = "token"


class Credentials(BaseModel):
    username: str
    password: str


class NewAccount(Credentials):
    display_name: str = ""
    role: UserRole = UserRole.STAFF


class AccountOut(BaseModel):
    id: str
    username: str
    display_name: str
    role: UserRole
    active: bool

    model_config = {"from_attributes": True}


def _bearer(authorization: str | None) -> str | None:
    scheme, _, credentials = (authorization or "").partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def get_current_user(
    token: str | None = Cookie(default=None, alias=TOKEN_COOKIE),
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the caller from the session cookie or an ``Authorization: Bearer`` header.

    Both are tried, so a stale cookie does not shadow a valid header.
    """
    candidates = [raw for raw in (token, _bearer(authorization)) if raw]
    if not candidates:
        raise HTTPException(401, "Not authenticated")
    for raw in candidates:
        claims = auth_service.decode_token(raw)
        user = auth_service.get_user_by_id(db, claims["sub"]) if claims else None
        if user is not None and user.active:
            return user
    raise HTTPException(401, "Invalid or expired session")


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN:
        raise HTTPException(403, "Only administrators can manage accounts")
    return user


def responsible_name(user: User) -> str:
    """Name written to ``Movement.responsible`` for what this user finalizes."""
    return user.display_name or user.username


@router.post("/login")
def login(credentials: Credentials, response: Response, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, credentials.username, credentials.password)
    if user is None:
        raise HTTPException(401, "Invalid username or password")
    token = auth_service.create_access_token(user)
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        httponly=True,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_HOURS * 3600,
    )
    return {"token": token, "user": AccountOut.model_validate(user)}


@router.post("/logout", status_code=204)
def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE)


@router.get("/me", response_model=AccountOut)
def whoami(user: User = Depends(get_current_user)):
    return user


@router.get("/users", response_model=list[AccountOut], dependencies=[Depends(require_admin)])
def list_accounts(db: Session = Depends(get_db)):
    return auth_service.list_users(db)


@router.post("/users", response_model=AccountOut, status_code=201, dependencies=[Depends(require_admin)])
def create_account(account: NewAccount, db: Session = Depends(get_db)):
    return auth_service.create_user(db, account.username, account.password, account.display_name, account.role)
