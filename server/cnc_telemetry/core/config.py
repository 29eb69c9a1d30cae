from __future__ import annotations
"""server/cnc_telemetry/core/config.py
~~~~~~~~~~~~~~~~~~~~~~~~
Paramètres (pydantic-settings).
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+pysqlite:///./database.sqlite"
    DB_CONNECT_TIMEOUT: int = Field(5, env="DB_CONNECT_TIMEOUT")
    # Crée le schéma au démarrage (dev / SQLite). En prod : alembic upgrade.
    DB_AUTO_CREATE: bool = True
    CORS_ALLOW_ORIGINS: Optional[str] = None

    # Rôle de l'appelant, posé par la passerelle d'authentification amont
    ROLE_HEADER: str = "X-User-Role"

    HISTORY_WINDOW_MINUTES: int = 15

    # Cadences de génération (secondes)
    GENERATOR_ENABLED: bool = True
    TOOL_OFFSET_INTERVAL_SECONDS: float = 60.0
    FEEDRATE_INTERVAL_SECONDS: float = 60.0
    TOOL_IN_USE_INTERVAL_SECONDS: float = 30.0

    # Parc de démo créé au démarrage si la table machines est vide (0 = désactivé)
    SEED_DEMO_MACHINES: int = 0
    SEED_TOOL_CAPACITY: int = 24

    # Canal live : file bornée par connexion + délai max d'un envoi
    LIVE_QUEUE_SIZE: int = Field(100, ge=1)
    LIVE_SEND_TIMEOUT_SECONDS: float = 5.0

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

settings = Settings()
