from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Configuración de la aplicación
    app_name: str = "Jalisco Cómo Vamos API"
    app_version: str = "1.0.0"
    debug: bool = False

    # Configuración de servidor
    host: str = "0.0.0.0"
    port: int = 3000

    # Configuración JWT
    jwt_secret: str = "your-super-secret-key-change-this-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440
    refresh_token_expire_days: int = 7

    # Configuración CORS
    cors_origins: List[str] = ["*"]

    # Configuración de MongoDB
    mongo_uri: str = "mongodb://localhost:27017/"
    mongo_db_name: str = "jalisco_como_vamos"
    feed_collection: str = "feed"
    messages_collection: str = "mensajes"
    users_collection: str = "users"
    revoked_tokens_collection: str = "revoked_tokens"

    # API de estadísticas (mini-spss)
    stats_api_base_url: str = "https://mini-spss-production.up.railway.app"

    # Configuración de Azure OpenAI
    azure_openai_endpoint: Optional[str] = None
    azure_openai_api_key: Optional[str] = None
    azure_openai_deployment: str = "gpt-4.1-2"
    azure_openai_api_version: str = "2024-02-15-preview"

    # Análisis narrativo de gráficas
    ai_mode_enabled: bool = False
    narrative_max_tokens: int = 500
    narrative_temperature: float = 0.7

# Instancia global de configuración
settings = Settings()
