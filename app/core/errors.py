"""
Errores de la aplicación y traducción de códigos técnicos a mensajes amigables.
"""
from typing import Optional

GENERIC_ERROR_MESSAGE = "Ocurrió un error. Por favor, intenta de nuevo."

# Mensajes de error amigables por código de proveedor
FRIENDLY_ERROR_MESSAGES = {
    # Autenticación
    "auth/user-not-found": "No encontramos una cuenta con ese correo electrónico.",
    "auth/wrong-password": "La contraseña es incorrecta. Por favor, inténtalo de nuevo.",
    "auth/invalid-email": "El correo electrónico no es válido.",
    "auth/user-disabled": "Esta cuenta ha sido deshabilitada. Contacta al administrador.",
    "auth/too-many-requests": "Demasiados intentos fallidos. Por favor, espera un momento e intenta de nuevo.",
    "auth/email-already-in-use": "Este correo electrónico ya está registrado.",
    "auth/operation-not-allowed": "Esta operación no está permitida en este momento.",
    "auth/weak-password": "La contraseña es muy débil. Usa al menos 6 caracteres.",
    "auth/requires-recent-login": "Por seguridad, necesitas volver a iniciar sesión para realizar esta acción.",
    "auth/invalid-credential": "Las credenciales proporcionadas no son válidas.",
    "auth/network-request-failed": "Error de conexión. Verifica tu conexión a internet.",
    "auth/guest-not-allowed": "Necesitas crear una cuenta para acceder a esta sección.",

    # Almacén de documentos
    "permission-denied": "No tienes permiso para realizar esta acción.",
    "not-found": "No se encontró la información solicitada.",
    "already-exists": "Este elemento ya existe.",
    "resource-exhausted": "Se ha excedido el límite de recursos. Intenta más tarde.",
    "failed-precondition": "No se puede completar esta acción en este momento.",
    "aborted": "La operación fue cancelada. Intenta de nuevo.",
    "out-of-range": "El valor proporcionado está fuera del rango permitido.",
    "unimplemented": "Esta funcionalidad no está disponible todavía.",
    "unavailable": "El servicio no está disponible temporalmente. Intenta más tarde.",
    "data-loss": "Se perdieron algunos datos. Por favor, contacta al soporte.",

    # Genéricos
    "network-error": "Error de conexión. Verifica tu conexión a internet e intenta de nuevo.",
    "timeout": "La operación tardó demasiado tiempo. Por favor, intenta de nuevo.",
    "unknown": "Ocurrió un error inesperado. Por favor, intenta de nuevo.",
}

# Marcas que delatan un mensaje técnico que no debe llegar al usuario
TECHNICAL_MARKERS = ("auth/", "Error:", "firebase", "FirebaseError", "Traceback", "pymongo")

MAX_FRIENDLY_LENGTH = 100


class StatsApiError(Exception):
    """Fallo al consultar la API de estadísticas."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (status: {self.status_code})"
        return self.message


class NarrativeGenerationError(Exception):
    """El proveedor de análisis narrativo no pudo generar el texto."""


class SurveyNotFoundError(LookupError):
    """No existe una encuesta con el id solicitado."""


def extract_error_code(message: str) -> Optional[str]:
    """Busca un código conocido dentro del mensaje."""
    for code in FRIENDLY_ERROR_MESSAGES:
        if code in message:
            return code
    return None


def get_friendly_error_message(error) -> str:
    """Convierte un error técnico (código, mensaje o excepción) en un mensaje amigable."""
    if isinstance(error, str):
        message = error
    elif isinstance(error, BaseException):
        message = str(error)
    else:
        return GENERIC_ERROR_MESSAGE

    code = extract_error_code(message)
    if code:
        return FRIENDLY_ERROR_MESSAGES[code]

    if message and len(message) < MAX_FRIENDLY_LENGTH and not any(m in message for m in TECHNICAL_MARKERS):
        return message

    return GENERIC_ERROR_MESSAGE
