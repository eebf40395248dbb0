"""
Sanitización y validación de datos capturados por el usuario.
"""
import re

DANGEROUS_CHARS = re.compile(r"['\"`;{}|<>\\]")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
NAME_ALLOWED = re.compile(r"[^a-zA-ZáéíóúÁÉÍÓÚñÑüÜ0-9\s'-]")

MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 254
MAX_PHONE_DIGITS = 15
MAX_PASSWORD_LENGTH = 128
MIN_PASSWORD_LENGTH = 6


def sanitize_name(name: str) -> str:
    """Deja letras (con acentos), números, espacios, guiones y apóstrofes."""
    if not name:
        return ""
    cleaned = NAME_ALLOWED.sub("", DANGEROUS_CHARS.sub("", name))
    return cleaned.strip()[:MAX_NAME_LENGTH]


def sanitize_email(email: str) -> str:
    if not email:
        return ""
    cleaned = DANGEROUS_CHARS.sub("", email.lower().strip())
    return re.sub(r"\s", "", cleaned)[:MAX_EMAIL_LENGTH]


def sanitize_phone(phone: str) -> str:
    """Solo dígitos, máximo 15 (estándar internacional)."""
    if not phone:
        return ""
    return re.sub(r"\D", "", phone)[:MAX_PHONE_DIGITS]


def is_valid_email(email: str) -> bool:
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(sanitize_email(email)))


def is_valid_phone(phone: str) -> bool:
    if not phone:
        return False
    return 10 <= len(sanitize_phone(phone)) <= MAX_PHONE_DIGITS


def is_valid_name(name: str) -> bool:
    if not name:
        return False
    return 0 < len(sanitize_name(name)) <= MAX_NAME_LENGTH


def is_valid_password(password: str, min_length: int = MIN_PASSWORD_LENGTH) -> bool:
    if not password:
        return False
    return min_length <= len(password) <= MAX_PASSWORD_LENGTH
