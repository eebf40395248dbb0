"""
Cliente de la API de estadísticas (mini-spss).

Tres consultas sin estado: categorías, preguntas por categoría y respuestas
filtradas. No hay caché ni reintentos; cualquier status no exitoso o error de
transporte se convierte en StatsApiError.
"""
import logging
from typing import Any, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from app.core.config import settings
from app.core.errors import StatsApiError
from app.schemas.schemas import Categoria, Filtros, Pregunta, RespuestasResponse

logger = logging.getLogger(__name__)

TIPOS_RESPUESTA = ("cantidad", "porcentaje")

# Etiquetas de los valores de cada filtro
FILTER_LABELS = {
    "calidad_vida": {1: "1-2 (Baja)", 2: "3 (Media)", 3: "4-5 (Alta)"},
    "municipio": {
        1: "El Salto",
        2: "Guadalajara",
        3: "San Pedro Tlaquepaque",
        4: "Tlajomulco de Zúñiga",
        5: "Tonalá",
        6: "Zapopan",
    },
    "sexo": {1: "Hombre", 2: "Mujer"},
    "escolaridad": {1: "Sec<", 2: "Prep", 3: "Univ+"},
    "nse": {1: "D+/D/E", 2: "C/C-", 3: "A/B/C+", 4: "Sin datos suficientes"},
}

_categorias_adapter = TypeAdapter(List[Categoria])
_preguntas_adapter = TypeAdapter(List[Pregunta])


class StatsApiClient:
    def __init__(self, base_url: Optional[str] = None, http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = (base_url or settings.stats_api_base_url).rstrip("/")
        self._http_client = http_client

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(base_url=self.base_url)
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(self, method: str, path: str, error_message: str, **kwargs) -> Any:
        try:
            response = await self._client().request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Error de transporte en {method} {path}: {e}")
            raise StatsApiError(error_message) from e

        if not response.is_success:
            logger.error(f"{method} {path} respondió {response.status_code}")
            raise StatsApiError(error_message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Respuesta no JSON en {method} {path}: {e}")
            raise StatsApiError(error_message, status_code=response.status_code) from e

    async def list_categorias(self) -> List[Categoria]:
        data = await self._request("GET", "/categorias", "No se pudieron cargar las categorías")
        return self._parse(_categorias_adapter, data, "No se pudieron cargar las categorías")

    async def list_preguntas_por_categoria(self, categoria_id: int) -> List[Pregunta]:
        message = "No se pudieron cargar las preguntas de la categoría"
        data = await self._request("GET", f"/preguntas/categoria/{categoria_id}", message)
        return self._parse(_preguntas_adapter, data, message)

    async def list_preguntas(self) -> List[Pregunta]:
        message = "No se pudieron cargar las preguntas"
        data = await self._request("GET", "/preguntas", message)
        return self._parse(_preguntas_adapter, data, message)

    async def get_respuestas_con_filtros(
        self,
        question_id: str,
        filtros: Optional[Filtros] = None,
        tipo: str = "cantidad",
    ) -> RespuestasResponse:
        """Respuestas agregadas de una pregunta; sin filtros equivale a todos los encuestados."""
        if tipo not in TIPOS_RESPUESTA:
            raise ValueError(f"tipo debe ser uno de {TIPOS_RESPUESTA}, no '{tipo}'")

        body = filtros.to_body() if filtros is not None else {}
        message = "No se pudieron cargar las respuestas de la pregunta"
        data = await self._request(
            "POST",
            f"/respuestas/{question_id}/filtros",
            message,
            params={"tipo": tipo},
            json=body,
        )
        result = self._parse(RespuestasResponse, data, message)
        if tipo == "cantidad" and not result.is_consistent():
            logger.warning(
                f"total_respuestas ({result.total_respuestas}) no coincide con la suma de "
                f"conteos ({result.suma_cantidades()}) para {question_id}"
            )
        return result

    @staticmethod
    def _parse(model, data: Any, error_message: str):
        try:
            if isinstance(model, TypeAdapter):
                return model.validate_python(data)
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"Respuesta inesperada de la API de estadísticas: {e}")
            raise StatsApiError(error_message) from e
