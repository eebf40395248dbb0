import json
import logging
from typing import Optional

from openai import AsyncAzureOpenAI

from app.core.config import settings
from app.core.errors import NarrativeGenerationError
from app.models.models import NarrativeContext

logger = logging.getLogger(__name__)

ANALYST_SYSTEM_PROMPT = (
    "Eres un analista de datos especializado en encuestas de satisfacción ciudadana y "
    "administración pública. Generas análisis claros y útiles de gráficas que miden la "
    "percepción ciudadana sobre servicios públicos."
)

ANALYSIS_PROMPT_LINES = [
    "Genera un análisis detallado en español para una gráfica de satisfacción ciudadana con las siguientes características:",
    "",
    "Título: {title}",
    "Categoría: {category}",
    "Pregunta de la encuesta: {question}",
    "Tipo de gráfica: {chart_type}",
    "Datos: {data}",
    "",
    "CONTEXTO IMPORTANTE:",
    'Esta gráfica forma parte de un sistema de medición de satisfacción ciudadana. La categoría "{category}" agrupa preguntas relacionadas, y esta visualización específica responde a la pregunta: "{question}".',
    "",
    "IMPORTANTE: La respuesta debe estar en formato Markdown válido.",
    "",
    "El análisis debe incluir:",
    "1. Interpretación de los resultados de satisfacción ciudadana",
    '2. Análisis específico de la pregunta "{question}" dentro de la categoría "{category}"',
    "3. Insights y patrones identificados en los datos de la encuesta",
    "4. Recomendaciones para mejorar la satisfacción ciudadana basadas en estos resultados",
    "5. Conclusiones relevantes para la administración pública",
    "",
    "Estructura sugerida en Markdown:",
    "- Usar encabezados (##, ###) para organizar las secciones",
    "- Usar listas con viñetas (-) o numeradas (1.) según corresponda",
    "- Usar **negritas** para resaltar puntos importantes",
    "- Usar *cursivas* para enfatizar términos técnicos",
    "",
    "El texto debe ser profesional, informativo y estar en español. Debe tener entre 200-300 palabras.",
]
ANALYSIS_PROMPT = "\n".join(ANALYSIS_PROMPT_LINES)

DEFAULT_ANALYSIS_TEMPLATE = """
## Análisis de Satisfacción Ciudadana: {title}

### Información de la Encuesta

**Categoría:** {category}
**Pregunta:** {question}

Esta visualización presenta los resultados de satisfacción ciudadana para la pregunta específica dentro de la categoría evaluada. Los datos proporcionan información valiosa sobre la percepción ciudadana de los servicios públicos.

### Características de la Visualización

La visualización de tipo **{chart_type}** permite identificar el nivel de satisfacción ciudadana y áreas de oportunidad. Esta información es fundamental para:

- **Evaluar** la percepción ciudadana sobre servicios públicos
- **Identificar** áreas prioritarias de mejora en la administración
- **Monitorear** la evolución de la satisfacción a lo largo del tiempo
- **Tomar decisiones** informadas para mejorar la gestión pública

### Contextualización

Los resultados de esta pregunta dentro de la categoría **"{category}"** reflejan aspectos específicos de la experiencia ciudadana que requieren atención y seguimiento continuo.

> **Nota:** Este análisis utiliza contenido predeterminado. Para obtener análisis personalizados con IA, habilita el modo AI en la configuración.
"""


def build_analysis_prompt(context: NarrativeContext) -> str:
    return ANALYSIS_PROMPT.format(
        title=context.title,
        category=context.category,
        question=context.question,
        chart_type=context.chart_type,
        data=json.dumps(context.chart_data, indent=2, ensure_ascii=False, default=str),
    )


def get_default_text(context: NarrativeContext) -> str:
    """Texto predeterminado cuando el modo AI está deshabilitado."""
    return DEFAULT_ANALYSIS_TEMPLATE.format(
        title=context.title,
        category=context.category,
        question=context.question,
        chart_type=context.chart_type,
    ).strip()


class NarrativeGenerator:
    """Genera el análisis narrativo de una gráfica con Azure OpenAI."""

    def __init__(self, client: Optional[AsyncAzureOpenAI] = None, ai_mode_enabled: Optional[bool] = None):
        self._client = client
        self.ai_mode_enabled = settings.ai_mode_enabled if ai_mode_enabled is None else ai_mode_enabled

    @property
    def client(self) -> AsyncAzureOpenAI:
        if self._client is None:
            if not settings.azure_openai_api_key or not settings.azure_openai_endpoint:
                raise NarrativeGenerationError("API key de Azure OpenAI no configurada")
            self._client = AsyncAzureOpenAI(
                api_version=settings.azure_openai_api_version,
                azure_endpoint=settings.azure_openai_endpoint,
                api_key=settings.azure_openai_api_key,
            )
        return self._client

    async def generate(self, context: NarrativeContext) -> str:
        if not self.ai_mode_enabled:
            return get_default_text(context)

        client = self.client
        try:
            response = await client.chat.completions.create(
                model=settings.azure_openai_deployment,
                messages=[
                    {"role": "system", "content": ANALYST_SYSTEM_PROMPT},
                    {"role": "user", "content": build_analysis_prompt(context)},
                ],
                max_tokens=settings.narrative_max_tokens,
                temperature=settings.narrative_temperature,
            )
        except Exception as e:
            logger.error(f"Error al generar análisis con IA: {e}")
            raise NarrativeGenerationError(f"Error al generar análisis con IA: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise NarrativeGenerationError("El proveedor no devolvió texto para el análisis")
        logger.info(f"Análisis generado para '{context.title}' ({len(content)} caracteres)")
        return content
