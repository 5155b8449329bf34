import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt
from sqlalchemy.orm import Session

from .config import SECRET_KEY, STAFF_TOKEN_ALGORITHM
from .database import get_db
from .models import StaffUser

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def verify_staff_token(token: str) -> dict:
    """
    Verify a staff access token issued by the identity provider.

    Only signature and expiry are checked here; issuing tokens happens elsewhere.
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[STAFF_TOKEN_ALGORITHM])
    except ExpiredSignatureError as e:
        logger.info("ℹ️ Expired staff token")
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        ) from e
    except JWTError as e:
        logger.warning(f"⚠️ Staff token verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token") from e


async def get_current_staff(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> StaffUser:
    """Get the current staff user from the bearer token"""

    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    payload = verify_staff_token(token)
    uid = payload.get("sub")
    if not uid:
        logger.error(f"❌ Token missing subject. Available claims: {list(payload.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    staff = db.query(StaffUser).filter(StaffUser.external_uid == uid).first()
    if not staff or not staff.is_active:
        logger.warning(f"⚠️ No active staff account for subject {uid}")
        raise HTTPException(status_code=403, detail="Staff access required")

    if not staff.is_admin and staff.employee_id is None:
        logger.error(f"❌ Employee account {staff.id} is not linked to an employee profile")
        raise HTTPException(status_code=403, detail="Staff account is not linked to an employee")

    logger.debug(f"✅ Staff authenticated: {staff.email} ({staff.role})")
    return staff


async def require_admin(staff: StaffUser = Depends(get_current_staff)) -> StaffUser:
    """
    Get the current staff user and verify the admin role.
    Use this dependency for catalog and notification management routes.
    """
    if not staff.is_admin:
        logger.warning(f"⚠️ Staff {staff.email} attempted to access an admin route")
        raise HTTPException(status_code=403, detail="Admin access required")
    return staff
