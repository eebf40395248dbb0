from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime

# Schemas para Auth
class LoginRequest(BaseModel):
    email: str
    password: str

class RegisterRequest(BaseModel):
    email: str
    password: str
    display_name: str
    phone_number: str

class RefreshRequest(BaseModel):
    refresh_token: str

class PasswordUpdateRequest(BaseModel):
    new_password: str

class SessionUser(BaseModel):
    id: str
    email: str = ""
    display_name: str = ""
    is_guest: bool = False

class TokenResponse(BaseModel):
    token: str
    refresh_token: Optional[str] = None
    user: SessionUser

# Schemas para perfil de usuario
class UserProfileResponse(BaseModel):
    uid: str
    display_name: str
    email: EmailStr
    phone_number: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class UserProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    phone_number: Optional[str] = None

# Schemas para la API de estadísticas
class Categoria(BaseModel):
    id: int
    nombre: str
    descripcion: Optional[str] = None

class CategoriaRef(BaseModel):
    id: int
    nombre: str

class OpcionRespuesta(BaseModel):
    value: int
    label: str

class Pregunta(BaseModel):
    identificador: str
    pregunta: str
    categoria: Optional[CategoriaRef] = None
    opciones: List[OpcionRespuesta] = []

class RangoEdad(BaseModel):
    min: Optional[int] = None
    max: Optional[int] = None

class Filtros(BaseModel):
    """Restricciones opcionales; una clave ausente significa sin restricción."""
    calidad_vida: Optional[int] = None
    municipio: Optional[int] = None
    sexo: Optional[int] = None
    edad: Optional[RangoEdad] = None
    escolaridad: Optional[int] = None
    nse: Optional[int] = None

    def to_body(self) -> Dict[str, Any]:
        body = self.model_dump(exclude_none=True)
        if "edad" in body and not body["edad"]:
            del body["edad"]
        return body

class RespuestaItem(BaseModel):
    value: int
    label: str
    count: Optional[int] = None
    percentage: Optional[float] = None

class RespuestasResponse(BaseModel):
    identificador: str
    pregunta: str
    tipo_respuesta: Literal["cantidad", "porcentaje"]
    respuestas: List[RespuestaItem]
    total_respuestas: int
    filtros_aplicados: Optional[Filtros] = None

    def suma_cantidades(self) -> int:
        return sum(r.count or 0 for r in self.respuestas)

    def is_consistent(self) -> bool:
        """Para `cantidad`, total_respuestas debe ser la suma de los conteos."""
        if self.tipo_respuesta != "cantidad":
            return True
        return self.suma_cantidades() == self.total_respuestas

# Schemas para el feed
class FeedStatsResponse(BaseModel):
    totalSurveys: int
    distinctCategories: int
    distinctChartTypes: int

class ReportResponse(BaseModel):
    survey_id: str
    report: str

# Schemas para el foro
class MessageCreate(BaseModel):
    text: str = Field(max_length=2000)
