from fastapi import APIRouter, Depends, HTTPException, status, Response
from sqlmodel import Session, select
from pydantic import BaseModel
import logging
from app.api.deps import get_db, access_security, admin_required
from app.models.user import AdminUser
from app.core.security import verify_password

router = APIRouter(prefix="/api/auth", tags=["auth"])

logger = logging.getLogger(__name__)


# === Schemas ===

class LoginRequest(BaseModel):
    username: str
    password: str


class AdminResponse(BaseModel):
    id: int
    username: str
    is_active: bool

    class Config:
        from_attributes = True


# === Routes ===

@router.post("/login", response_model=AdminResponse)
def login(data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    admin = db.exec(select(AdminUser).where(AdminUser.username == data.username)).first()
    
    if not admin or not verify_password(data.password, admin.password_hash):
        logger.info("Failed admin login for %r", data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )
    
    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )
    
    # JWT cookie
    access_token = access_security.create_access_token(subject={"id": admin.id})
    access_security.set_access_cookie(response, access_token)
    
    return admin


@router.post("/logout")
def logout(response: Response):
    access_security.unset_access_cookie(response)
    return {"message": "Logged out"}


@router.get("/me", response_model=AdminResponse)
def me(current_admin: AdminUser = Depends(admin_required)):
    return current_admin
