import logging
from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pymongo.collection import Collection

from app.core.config import settings
from app.core.database import (
    get_feed_collection,
    get_messages_collection,
    get_revoked_tokens_collection,
    get_users_collection,
)
from app.core.errors import FRIENDLY_ERROR_MESSAGES
from app.models.models import SessionContext
from app.services.narrative import NarrativeGenerator
from app.services.report_cache import ReportCache
from app.services.stats_client import StatsApiClient
from app.services.surveys_repository import SurveyRepository
from app.services.users import is_token_revoked

logger = logging.getLogger(__name__)

# Configuración de seguridad
security = HTTPBearer()


def decode_session_token(token: str, revoked: Collection) -> SessionContext:
    """Construye la sesión a partir del token JWT; lanza 401 si no es válido"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudieron validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning(f"Token inválido: {e}")
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id or payload.get("type") == "refresh":
        raise credentials_exception

    token_id = payload.get("jti")
    if is_token_revoked(revoked, token_id):
        logger.info(f"Token revocado usado por {user_id}")
        raise credentials_exception

    return SessionContext(
        user_id=user_id,
        email=payload.get("email", ""),
        display_name=payload.get("name", ""),
        is_guest=bool(payload.get("guest", False)),
        token_id=token_id,
    )


def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    revoked: Collection = Depends(get_revoked_tokens_collection),
) -> SessionContext:
    """Obtiene la sesión actual (registrada o invitada)"""
    return decode_session_token(credentials.credentials, revoked)


def require_registered_session(session: SessionContext = Depends(get_current_session)) -> SessionContext:
    """Las sesiones de invitado no pueden entrar a las secciones de cuenta ni publicar"""
    if session.is_guest:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=FRIENDLY_ERROR_MESSAGES["auth/guest-not-allowed"],
        )
    return session


def get_survey_repository(feed: Collection = Depends(get_feed_collection)) -> SurveyRepository:
    return SurveyRepository(feed)


@lru_cache
def get_report_cache() -> ReportCache:
    """Una sola instancia para que las generaciones concurrentes se compartan"""
    return ReportCache(SurveyRepository(get_feed_collection()))


@lru_cache
def get_narrative_generator() -> NarrativeGenerator:
    return NarrativeGenerator()


@lru_cache
def get_stats_client() -> StatsApiClient:
    return StatsApiClient()

