import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pymongo.errors import PyMongoError

from app.api.deps import get_current_session, get_narrative_generator, get_report_cache, get_survey_repository
from app.core.errors import NarrativeGenerationError, SurveyNotFoundError, get_friendly_error_message
from app.models.models import SessionContext, Survey
from app.schemas.schemas import FeedStatsResponse, ReportResponse
from app.services.narrative import NarrativeGenerator
from app.services.report_cache import ReportCache
from app.services.surveys_repository import SurveyRepository

router = APIRouter()
logger = logging.getLogger(__name__)


def survey_to_response(survey: Survey) -> dict:
    return survey.model_dump(by_alias=True)


@router.get("/")
def list_feed(
    session: SessionContext = Depends(get_current_session),
    repository: SurveyRepository = Depends(get_survey_repository),
):
    """Feed principal; se ordena por categoría y título para mostrarlo estable"""
    try:
        surveys = repository.fetch_all()
    except Exception as e:
        logger.error(f"Error cargando el feed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No se pudieron cargar los datos de las encuestas",
        )
    surveys.sort(key=lambda s: (s.category.lower(), s.title.lower()))
    return [survey_to_response(s) for s in surveys]


@router.get("/categories", response_model=List[str])
def list_categories(
    session: SessionContext = Depends(get_current_session),
    repository: SurveyRepository = Depends(get_survey_repository),
):
    return repository.list_categories()


@router.get("/stats", response_model=FeedStatsResponse)
def feed_stats(
    session: SessionContext = Depends(get_current_session),
    repository: SurveyRepository = Depends(get_survey_repository),
):
    return repository.stats()


@router.get("/search")
def search_by_category(
    category: str = Query(..., min_length=1),
    session: SessionContext = Depends(get_current_session),
    repository: SurveyRepository = Depends(get_survey_repository),
):
    return [survey_to_response(s) for s in repository.fetch_by_category(category)]


@router.get("/{survey_id}")
def get_survey(
    survey_id: str,
    session: SessionContext = Depends(get_current_session),
    repository: SurveyRepository = Depends(get_survey_repository),
):
    try:
        survey = repository.fetch_by_id(survey_id)
    except Exception as e:
        logger.error(f"Error cargando la encuesta {survey_id}: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=get_friendly_error_message("unavailable"))
    if survey is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Encuesta no encontrada")
    return survey_to_response(survey)


@router.get("/{survey_id}/report", response_model=ReportResponse)
async def get_survey_report(
    survey_id: str,
    session: SessionContext = Depends(get_current_session),
    cache: ReportCache = Depends(get_report_cache),
    generator: NarrativeGenerator = Depends(get_narrative_generator),
):
    """Análisis narrativo de la encuesta: el guardado o uno recién generado"""
    try:
        report = await cache.get_or_generate(survey_id, generator.generate)
    except SurveyNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Encuesta no encontrada")
    except NarrativeGenerationError as e:
        logger.error(f"No se pudo generar el análisis de {survey_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": "No se pudo generar el análisis. Intenta de nuevo.", "reintentar": True},
        )
    except PyMongoError as e:
        logger.error(f"Error cargando la encuesta {survey_id} para su reporte: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=get_friendly_error_message("unavailable"))
    return ReportResponse(survey_id=survey_id, report=report)
