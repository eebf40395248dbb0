import logging
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.collection import Collection

from app.api.deps import get_current_session, require_registered_session
from app.core.config import settings
from app.core.database import get_revoked_tokens_collection, get_users_collection
from app.core.errors import FRIENDLY_ERROR_MESSAGES
from app.models.models import SessionContext
from app.schemas.schemas import (
    LoginRequest, PasswordUpdateRequest, RefreshRequest, RegisterRequest, SessionUser, TokenResponse
)
from app.services.users import (
    EmailAlreadyInUse, create_user_profile, get_user_by_email, get_user_profile, revoke_token,
    update_user_profile,
)
from app.utils.sanitization import (
    is_valid_email, is_valid_name, is_valid_password, sanitize_email, sanitize_name, sanitize_phone
)

router = APIRouter()
logger = logging.getLogger(__name__)

# Configuración de encriptación
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def auth_error(code: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> HTTPException:
    return HTTPException(status_code=status_code, detail=FRIENDLY_ERROR_MESSAGES[code])


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica si la contraseña coincide con el hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Genera hash de la contraseña"""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: timedelta = None) -> str:
    """Crea token JWT"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_refresh_token(data: dict, expires_delta: timedelta = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.refresh_token_expire_days))
    to_encode.update({"exp": expire, "type": "refresh", "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def session_claims(user: dict) -> dict:
    return {"sub": user["_id"], "email": user.get("email", ""), "name": user.get("displayName", "")}


def build_token_response(user: dict) -> TokenResponse:
    claims = session_claims(user)
    return TokenResponse(
        token=create_access_token(claims),
        refresh_token=create_refresh_token({"sub": user["_id"]}),
        user=SessionUser(id=user["_id"], email=claims["email"], display_name=claims["name"]),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, users: Collection = Depends(get_users_collection)):
    """Registro con correo y contraseña"""
    email = sanitize_email(data.email)
    display_name = sanitize_name(data.display_name)
    phone_number = sanitize_phone(data.phone_number)

    if not is_valid_email(email):
        raise auth_error("auth/invalid-email")
    if not is_valid_password(data.password):
        raise auth_error("auth/weak-password")
    if not is_valid_name(display_name):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El nombre no es válido.")

    try:
        user = create_user_profile(users, email, display_name, phone_number, get_password_hash(data.password))
    except EmailAlreadyInUse:
        raise auth_error("auth/email-already-in-use", status.HTTP_409_CONFLICT)

    logger.info(f"Usuario registrado: {user['_id']}")
    return build_token_response(user)


@router.post("/login", response_model=TokenResponse)
def login(login_data: LoginRequest, users: Collection = Depends(get_users_collection)):
    """Login de usuario"""
    email = sanitize_email(login_data.email)
    user = get_user_by_email(users, email)
    if not user or not verify_password(login_data.password, user.get("password_hash", "")):
        logger.info(f"Intento de login fallido para {email}")
        raise auth_error("auth/invalid-credential", status.HTTP_401_UNAUTHORIZED)

    logger.info(f"Usuario autenticado: {user['_id']}")
    return build_token_response(user)


@router.post("/guest", response_model=TokenResponse)
def guest_login():
    """Sesión de invitado: puede consultar pero no publicar ni editar su cuenta"""
    guest_id = f"invitado-{uuid.uuid4().hex}"
    token = create_access_token({"sub": guest_id, "guest": True})
    return TokenResponse(token=token, user=SessionUser(id=guest_id, is_guest=True))


@router.post("/refresh")
def refresh_token_endpoint(
    data: RefreshRequest,
    users: Collection = Depends(get_users_collection),
):
    """Recibe un refresh token y devuelve un nuevo access token si es válido."""
    try:
        payload = jwt.decode(data.refresh_token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise HTTPException(status_code=401, detail="Refresh token inválido o expirado")

    if payload.get("type") != "refresh":
        raise HTTPException(status_code=400, detail="Token inválido para refresh")
    user = get_user_profile(users, payload.get("sub"))
    if not user:
        raise HTTPException(status_code=400, detail="Refresh token inválido")
    return {"token": create_access_token(session_claims(user))}


@router.post("/logout")
def logout(
    session: SessionContext = Depends(get_current_session),
    revoked: Collection = Depends(get_revoked_tokens_collection),
):
    """Cierra la sesión revocando el token actual"""
    if session.token_id:
        revoke_token(revoked, session.token_id)
    logger.info(f"Sesión cerrada: {session.user_id}")
    return {"message": "Sesión cerrada"}


@router.get("/me", response_model=SessionUser)
def get_current_user_info(session: SessionContext = Depends(get_current_session)):
    """Obtener información de la sesión actual"""
    return SessionUser(
        id=session.user_id,
        email=session.email,
        display_name=session.display_name,
        is_guest=session.is_guest,
    )


@router.put("/password")
def update_password(
    data: PasswordUpdateRequest,
    session: SessionContext = Depends(require_registered_session),
    users: Collection = Depends(get_users_collection),
):
    """Actualiza la contraseña del usuario actual"""
    if not is_valid_password(data.new_password):
        raise auth_error("auth/weak-password")
    if not get_user_profile(users, session.user_id):
        raise auth_error("auth/user-not-found", status.HTTP_404_NOT_FOUND)
    update_user_profile(users, session.user_id, {"password_hash": get_password_hash(data.new_password)})
    return {"message": "Contraseña actualizada"}
