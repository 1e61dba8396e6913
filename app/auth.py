import base64
import json
import logging
import time
from typing import Optional

import httpx
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import ADMIN_EMAILS, FIREBASE_PROJECT_ID
from .database import get_db
from .models import Creator, User

logger = logging.getLogger(__name__)

GOOGLE_CERTS_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

# Cache for Google's public keys
_cached_keys = None


async def get_google_public_keys(force_refresh: bool = False):
    """Fetch Google's public keys for Firebase token verification"""
    global _cached_keys
    if _cached_keys and not force_refresh:
        return _cached_keys

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(GOOGLE_CERTS_URL)
        if response.status_code == 200:
            _cached_keys = response.json()
            logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
            return _cached_keys
        logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"❌ Error fetching Google public keys: {str(e)}")
    return None


def _b64url_decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _check_claims(claims: dict) -> None:
    if claims.get("aud") != FIREBASE_PROJECT_ID:
        raise HTTPException(status_code=401, detail="Invalid token audience")

    if claims.get("iss") != f"https://securetoken.google.com/{FIREBASE_PROJECT_ID}":
        raise HTTPException(status_code=401, detail="Invalid token issuer")

    now = time.time()
    if claims.get("exp", 0) < now:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        )

    # 60 seconds of clock skew
    if claims.get("iat", 0) > now + 60:
        raise HTTPException(status_code=401, detail="Invalid token")

    if "auth_time" not in claims:
        raise HTTPException(status_code=401, detail="Invalid token claims")


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token and return its claims.

    The RS256 signature is checked against Google's x509 certificates, then the
    audience, issuer, expiry, issued-at and auth_time claims are validated.
    """
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Authentication not configured")

    parts = token.split(".")
    if len(parts) != 3:
        raise HTTPException(status_code=401, detail="Invalid token format")
    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64url_decode(header_b64))
        claims = json.loads(_b64url_decode(payload_b64))
        signature = _b64url_decode(signature_b64)
    except ValueError as e:
        raise HTTPException(status_code=401, detail="Malformed token") from e

    if header.get("alg") != "RS256":
        raise HTTPException(status_code=401, detail="Invalid token algorithm")

    kid = header.get("kid")
    if not kid:
        raise HTTPException(status_code=401, detail="Token missing key ID")

    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        logger.warning(f"⚠️ Key ID {kid} not found in public keys, refreshing")
        public_keys = await get_google_public_keys(force_refresh=True)
        if not public_keys or kid not in public_keys:
            raise HTTPException(status_code=401, detail="Unable to verify token signature")

    public_key = load_pem_x509_certificate(public_keys[kid].encode()).public_key()
    try:
        public_key.verify(
            signature, f"{header_b64}.{payload_b64}".encode(), padding.PKCS1v15(), hashes.SHA256()
        )
    except Exception as e:
        logger.warning(f"⚠️ Token signature verification failed: {type(e).__name__}")
        raise HTTPException(status_code=401, detail="Invalid token signature") from e

    _check_claims(claims)
    return claims


def _resolve_user(db: Session, claims: dict) -> User:
    """Find the user for verified claims, creating or migrating the row if needed."""
    firebase_uid = claims.get("sub") or claims.get("user_id")
    if not firebase_uid:
        raise HTTPException(status_code=401, detail="Invalid token claims")

    email = (claims.get("email") or "").lower()
    name = claims.get("name") or None

    user = db.query(User).filter(User.firebase_uid == firebase_uid).first()
    if user:
        return user

    # Same email signing in through another provider gets a new UID
    if email:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            logger.info(f"🔄 Migrating user {email} to a new auth UID")
            existing.firebase_uid = firebase_uid
            if name and not existing.full_name:
                existing.full_name = name
            db.commit()
            db.refresh(existing)
            return existing

    logger.info(f"🆕 Creating new user: {email}")
    user = User(firebase_uid=firebase_uid, email=email or f"{firebase_uid}@users.odim", full_name=name)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail="This email is already registered. Please sign in with your existing account.",
        ) from e
    db.refresh(user)
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from Firebase token"""
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")

    claims = await verify_firebase_token(credentials.credentials)
    return _resolve_user(db, claims)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user but returns None for anonymous requests."""
    if not credentials:
        return None
    claims = await verify_firebase_token(credentials.credentials)
    return _resolve_user(db, claims)


async def get_current_creator(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Creator:
    creator = db.query(Creator).filter(Creator.user_id == user.id).first()
    if not creator:
        raise HTTPException(status_code=404, detail="Creator profile not found")
    return creator


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.is_admin or user.email.lower() in ADMIN_EMAILS:
        return user
    logger.warning(f"⚠️ Non-admin {user.email} attempted to access an admin route")
    raise HTTPException(status_code=403, detail="Admin access required")
