from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChartType(str, Enum):
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    PROGRESS = "progress"
    CONTRIBUTION = "contribution"
    STACKED_BAR = "stackedBar"
    BEZIER_LINE = "bezierLine"
    AREA_CHART = "areaChart"
    HORIZONTAL_BAR = "horizontalBar"


# Modelos para chartData (una variante por familia de chartType)
class LabeledValuesChartData(BaseModel):
    """Etiquetas con un valor cada una: barras, líneas, pastel, progreso."""
    labels: List[str]
    values: List[float]

    @model_validator(mode="after")
    def check_lengths(self):
        if len(self.labels) != len(self.values):
            raise ValueError("labels y values deben tener la misma longitud")
        return self


class Dataset(BaseModel):
    name: str
    data: List[float]


class MultiSeriesChartData(BaseModel):
    """Varias series con nombre sobre las mismas etiquetas (barras apiladas)."""
    labels: List[str]
    datasets: List[Dataset]

    @model_validator(mode="after")
    def check_lengths(self):
        for dataset in self.datasets:
            if len(dataset.data) != len(self.labels):
                raise ValueError(f"La serie '{dataset.name}' no coincide con labels")
        return self


class ContributionPoint(BaseModel):
    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    count: int


class ContributionChartData(BaseModel):
    """Conteos por fecha (YYYY-MM-DD)."""
    values: List[ContributionPoint]


ChartData = Union[LabeledValuesChartData, MultiSeriesChartData, ContributionChartData]

CHART_DATA_MODELS = {
    ChartType.BAR: LabeledValuesChartData,
    ChartType.LINE: LabeledValuesChartData,
    ChartType.PIE: LabeledValuesChartData,
    ChartType.PROGRESS: LabeledValuesChartData,
    ChartType.BEZIER_LINE: LabeledValuesChartData,
    ChartType.AREA_CHART: LabeledValuesChartData,
    ChartType.HORIZONTAL_BAR: LabeledValuesChartData,
    ChartType.STACKED_BAR: MultiSeriesChartData,
    ChartType.CONTRIBUTION: ContributionChartData,
}


def parse_chart_data(chart_type: ChartType, raw: Dict[str, Any]) -> ChartData:
    """Valida chartData contra la variante que corresponde a su chartType."""
    return CHART_DATA_MODELS[ChartType(chart_type)].model_validate(raw)


REQUIRED_SURVEY_FIELDS = ("title", "category", "question", "chartType", "description", "chartData")


class Survey(BaseModel):
    """Una tarjeta del feed respaldada por una gráfica."""
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    id: str
    title: str
    category: str
    question: str
    description: str
    chart_type: ChartType = Field(alias="chartType")
    chart_data: ChartData = Field(alias="chartData")
    report: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Survey":
        chart_type = ChartType(doc["chartType"])
        return cls(
            id=str(doc["_id"]),
            title=doc["title"],
            category=doc["category"],
            question=doc["question"],
            description=doc["description"],
            chartType=chart_type,
            chartData=parse_chart_data(chart_type, doc["chartData"]),
            report=doc.get("report"),
        )

    def has_report(self) -> bool:
        return bool(self.report and self.report.strip())


class ChatMessage(BaseModel):
    id: str
    user_name: str
    text: str
    timestamp: Optional[datetime] = None
    is_own: bool = False

    @classmethod
    def from_document(cls, doc: Dict[str, Any], current_user_id: Optional[str]) -> "ChatMessage":
        author_id = doc.get("userId")
        return cls(
            id=str(doc["_id"]),
            user_name=doc.get("userName") or "Anónimo",
            text=doc.get("text", ""),
            timestamp=doc.get("timestamp"),
            is_own=current_user_id is not None and author_id == current_user_id,
        )


@dataclass(frozen=True)
class NarrativeContext:
    """Datos de la gráfica que se entregan al generador de análisis."""
    title: str
    category: str
    question: str
    chart_type: str
    chart_data: Dict[str, Any]

    @classmethod
    def from_survey(cls, survey: Survey) -> "NarrativeContext":
        return cls(
            title=survey.title,
            category=survey.category,
            question=survey.question,
            chart_type=str(survey.chart_type),
            chart_data=survey.chart_data.model_dump(),
        )


@dataclass(frozen=True)
class SessionContext:
    """Sesión explícita del usuario; se construye a partir del token en cada petición."""
    user_id: str
    email: str = ""
    display_name: str = ""
    is_guest: bool = False
    token_id: Optional[str] = None
