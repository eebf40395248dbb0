import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.api.v1.api import api_router
from app.api.deps import get_stats_client

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Iniciando {settings.app_name} v{settings.app_version}")
    yield
    # Cierra el cliente HTTP compartido de la API de estadísticas
    await get_stats_client().aclose()


# Crear aplicación FastAPI
app = FastAPI(
    title=settings.app_name,
    description="Backend API para resultados de encuestas de satisfacción ciudadana",
    version=settings.app_version,
    debug=settings.debug,
    redirect_slashes=False,
    lifespan=lifespan,
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,  # Debe ser False cuando allow_origins es "*"
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Incluir rutas de la API
app.include_router(api_router, prefix="/api")


@app.get("/")
def read_root():
    return {
        "message": "Servidor backend de Jalisco Cómo Vamos en ejecución",
        "version": settings.app_version,
        "docs": "/docs",
    }


# Ruta de salud
@app.get("/health")
def health_check():
    return {"status": "healthy", "message": "Servidor funcionando correctamente"}
