# backend/routes/auth.py
# Login happens in the front-end; the API only reads the session token
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User
from schemas import user as schemas
from utils.tokenJWT import get_current_user
from utils.audit import write_log

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    response.delete_cookie(settings.ACCESS_TOKEN_COOKIE)
    write_log(db, user_id=current_user.id, action="LOGOUT", resource="auth", ip=request.client.host)
    return {"detail": "Logged out"}
