"""
Repositorio de encuestas de satisfacción ciudadana (colección `feed`).

Todas las consultas cargan la colección completa y filtran en memoria.
`fetch_all` propaga los errores del almacén; las consultas derivadas
(`fetch_by_category`, `list_categories`, `stats`) los registran y devuelven
resultados vacíos.
"""
import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.collection import Collection

from app.models.models import REQUIRED_SURVEY_FIELDS, Survey

logger = logging.getLogger(__name__)


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def _document_id_query(survey_id: str) -> Dict[str, Any]:
    """Los documentos sembrados usan ObjectId; los importados pueden traer un _id de texto."""
    try:
        return {"_id": {"$in": [ObjectId(survey_id), survey_id]}}
    except (InvalidId, TypeError):
        return {"_id": survey_id}


class SurveyRepository:
    def __init__(self, collection: Collection):
        self.collection = collection

    def _to_survey(self, doc: Dict[str, Any]) -> Optional[Survey]:
        missing = [f for f in REQUIRED_SURVEY_FIELDS if not _is_present(doc.get(f))]
        if missing:
            logger.warning(f"Encuesta {doc.get('_id')} descartada, faltan campos: {missing}")
            return None
        try:
            return Survey.from_document(doc)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Encuesta {doc.get('_id')} descartada, datos inválidos: {e}")
            return None

    def fetch_all(self) -> List[Survey]:
        """Devuelve todas las encuestas válidas en el orden del almacén."""
        surveys = []
        for doc in self.collection.find({}):
            survey = self._to_survey(doc)
            if survey is not None:
                surveys.append(survey)
        logger.info(f"{len(surveys)} encuestas cargadas desde el feed")
        return surveys

    def fetch_by_id(self, survey_id: str) -> Optional[Survey]:
        if not survey_id:
            return None
        doc = self.collection.find_one(_document_id_query(survey_id))
        if doc is None:
            return None
        return self._to_survey(doc)

    def fetch_by_category(self, category: str) -> List[Survey]:
        """Coincidencia parcial, sin distinguir mayúsculas, sobre `category`."""
        try:
            surveys = self.fetch_all()
        except Exception as e:
            logger.error(f"Error cargando encuestas de categoría {category}: {e}")
            return []
        needle = (category or "").lower()
        return [s for s in surveys if needle in s.category.lower()]

    def list_categories(self) -> List[str]:
        try:
            surveys = self.fetch_all()
        except Exception as e:
            logger.error(f"Error cargando categorías: {e}")
            return []
        return sorted({s.category for s in surveys})

    def stats(self) -> Dict[str, int]:
        try:
            surveys = self.fetch_all()
        except Exception as e:
            logger.error(f"Error calculando estadísticas: {e}")
            surveys = []
        return {
            "totalSurveys": len(surveys),
            "distinctCategories": len({s.category for s in surveys}),
            "distinctChartTypes": len({s.chart_type for s in surveys}),
        }

    def save_report(self, survey_id: str, report: str) -> None:
        """Sobrescribe el campo `report` de la encuesta."""
        self.collection.update_one(_document_id_query(survey_id), {"$set": {"report": report}})
