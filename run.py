#!/usr/bin/env python3
"""
Script principal para ejecutar la aplicación FastAPI
"""

from dotenv import load_dotenv

load_dotenv()  # Cargar variables de entorno desde .env antes de leer la configuración

import uvicorn
from app.core.config import settings

if __name__ == "__main__":
    print("🚀 Iniciando servidor FastAPI...")
    print(f"📡 Servidor corriendo en http://{settings.host}:{settings.port}")
    print(f"📚 Documentación disponible en http://localhost:{settings.port}/docs")

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info"
    )
