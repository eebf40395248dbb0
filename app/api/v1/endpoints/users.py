from fastapi import APIRouter, Depends, HTTPException, status
from pymongo.collection import Collection

from app.api.deps import require_registered_session
from app.core.database import get_users_collection
from app.models.models import SessionContext
from app.schemas.schemas import UserProfileResponse, UserProfileUpdate
from app.services.users import get_user_profile, profile_to_response, update_user_profile
from app.utils.sanitization import is_valid_name, is_valid_phone, sanitize_name, sanitize_phone

router = APIRouter()


@router.get("/me", response_model=UserProfileResponse)
def get_my_profile(
    session: SessionContext = Depends(require_registered_session),
    users: Collection = Depends(get_users_collection),
):
    """Perfil del usuario actual"""
    profile = get_user_profile(users, session.user_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")
    return profile_to_response(profile)


@router.put("/me", response_model=UserProfileResponse)
def update_my_profile(
    data: UserProfileUpdate,
    session: SessionContext = Depends(require_registered_session),
    users: Collection = Depends(get_users_collection),
):
    """Actualizar nombre y teléfono del usuario actual"""
    if not get_user_profile(users, session.user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")

    changes = {}
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("display_name") is not None:
        name = sanitize_name(update_data["display_name"])
        if not is_valid_name(name):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El nombre no es válido.")
        changes["displayName"] = name
    if update_data.get("phone_number") is not None:
        if not is_valid_phone(update_data["phone_number"]):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El teléfono debe tener entre 10 y 15 dígitos.")
        changes["phoneNumber"] = sanitize_phone(update_data["phone_number"])

    return profile_to_response(update_user_profile(users, session.user_id, changes))
