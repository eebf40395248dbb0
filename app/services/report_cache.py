"""
Caché de reportes narrativos guardados sobre el documento de la encuesta.

Si la encuesta ya tiene `report` se devuelve tal cual; si no, se genera,
se intenta guardar (los fallos al guardar solo se registran) y se devuelve
el texto recién generado. Las generaciones concurrentes para la misma
encuesta comparten una sola llamada al generador.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

from app.core.errors import NarrativeGenerationError, SurveyNotFoundError
from app.models.models import NarrativeContext
from app.services.surveys_repository import SurveyRepository

logger = logging.getLogger(__name__)

GenerateFn = Callable[[NarrativeContext], Awaitable[str]]


class _GenerationAbandoned(Exception):
    """La tarea que generaba el reporte fue cancelada antes de terminar."""


class ReportCache:
    def __init__(self, repository: SurveyRepository):
        self.repository = repository
        self._in_flight: Dict[str, asyncio.Future] = {}

    async def get_or_generate(
        self,
        survey_id: Optional[str],
        generate_fn: GenerateFn,
        context: Optional[NarrativeContext] = None,
    ) -> str:
        if not survey_id:
            if context is None:
                raise ValueError("Se requiere survey_id o context para generar el reporte")
            return await self._generate(generate_fn, context)

        survey = await asyncio.to_thread(self.repository.fetch_by_id, survey_id)
        if survey is not None and survey.has_report():
            logger.info(f"Reporte en caché para la encuesta {survey_id}")
            return survey.report
        if survey is not None:
            context = NarrativeContext.from_survey(survey)
        elif context is None:
            raise SurveyNotFoundError(survey_id)

        while True:
            pending = self._in_flight.get(survey_id)
            if pending is None:
                break
            logger.info(f"Esperando generación en curso para la encuesta {survey_id}")
            try:
                return await asyncio.shield(pending)
            except _GenerationAbandoned:
                # Quien esperaba toma el relevo de la generación
                logger.info(f"Generación cancelada para la encuesta {survey_id}, se reintenta")

        future = asyncio.get_running_loop().create_future()
        self._in_flight[survey_id] = future
        try:
            text = await self._generate(generate_fn, context)
            await asyncio.to_thread(self._persist, survey_id, text)
        except asyncio.CancelledError:
            future.set_exception(_GenerationAbandoned(survey_id))
            future.exception()
            raise
        except Exception as e:
            future.set_exception(e)
            # Evita "Future exception was never retrieved" si nadie más esperaba
            future.exception()
            raise
        else:
            future.set_result(text)
            return text
        finally:
            self._in_flight.pop(survey_id, None)

    async def _generate(self, generate_fn: GenerateFn, context: NarrativeContext) -> str:
        try:
            return await generate_fn(context)
        except NarrativeGenerationError:
            raise
        except Exception as e:
            logger.error(f"Error generando el análisis narrativo: {e}")
            raise NarrativeGenerationError(str(e)) from e

    def _persist(self, survey_id: str, text: str) -> None:
        try:
            self.repository.save_report(survey_id, text)
            logger.info(f"Reporte guardado en la encuesta {survey_id}")
        except Exception as e:
            logger.warning(f"No se pudo guardar el reporte de la encuesta {survey_id}: {e}")
