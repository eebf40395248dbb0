import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from app.api.deps import get_current_session, get_stats_client
from app.core.errors import StatsApiError
from app.models.models import SessionContext
from app.schemas.schemas import Categoria, Filtros, Pregunta, RespuestasResponse
from app.services.stats_client import FILTER_LABELS, StatsApiClient

router = APIRouter()
logger = logging.getLogger(__name__)


def stats_error(e: StatsApiError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"message": e.message, "status": e.status_code},
    )


@router.get("/categorias", response_model=List[Categoria])
async def get_categorias(
    session: SessionContext = Depends(get_current_session),
    client: StatsApiClient = Depends(get_stats_client),
):
    try:
        return await client.list_categorias()
    except StatsApiError as e:
        raise stats_error(e)


@router.get("/preguntas", response_model=List[Pregunta])
async def get_preguntas(
    session: SessionContext = Depends(get_current_session),
    client: StatsApiClient = Depends(get_stats_client),
):
    try:
        return await client.list_preguntas()
    except StatsApiError as e:
        raise stats_error(e)


@router.get("/preguntas/categoria/{categoria_id}", response_model=List[Pregunta])
async def get_preguntas_por_categoria(
    categoria_id: int,
    session: SessionContext = Depends(get_current_session),
    client: StatsApiClient = Depends(get_stats_client),
):
    try:
        return await client.list_preguntas_por_categoria(categoria_id)
    except StatsApiError as e:
        raise stats_error(e)


@router.post("/respuestas/{question_id}/filtros", response_model=RespuestasResponse)
async def get_respuestas_filtradas(
    question_id: str,
    filtros: Optional[Filtros] = Body(default=None),
    tipo: Literal["cantidad", "porcentaje"] = Query(default="cantidad"),
    session: SessionContext = Depends(get_current_session),
    client: StatsApiClient = Depends(get_stats_client),
):
    """Cada cambio de filtros es una consulta nueva; no hay caché"""
    try:
        return await client.get_respuestas_con_filtros(question_id, filtros, tipo)
    except StatsApiError as e:
        raise stats_error(e)


@router.get("/filtros/etiquetas")
def get_filter_labels():
    return FILTER_LABELS
