"""
Core settings and environment variables for RoadBlock Alerts.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """
    
    # Application
    APP_NAME: str = "RoadBlock Alerts"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"
    
    # CORS - Frontend URLs allowed to access this API
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5000,http://localhost:5173"
    
    # Storage backend: "firestore" or "memory" (local development / tests)
    STORAGE_BACKEND: str = "firestore"
    
    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    FIREBASE_CLIENT_EMAIL: Optional[str] = None
    FIREBASE_PRIVATE_KEY: Optional[str] = None  # Inline key, "\n" sequences are expanded
    
    # Authentication: "firebase" verifies ID tokens, "header" trusts X-User-ID (dev only)
    AUTH_MODE: str = "firebase"
    
    # Incident lifecycle
    DISMISS_THRESHOLD: int = 3
    NEARBY_DEFAULT_RADIUS_METERS: int = 5000
    
    # Proximity alerts
    PROXIMITY_COOLDOWN_SECONDS: float = 5.0
    ALERT_DISTANCE_DEFAULT_METERS: int = 500
    ALERT_DISTANCE_MIN_METERS: int = 100
    ALERT_DISTANCE_MAX_METERS: int = 2000
    # Per-user notifier state is dropped after this long without an update
    PROXIMITY_IDLE_EVICT_SECONDS: float = 3600.0
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


# Global settings instance
settings = Settings()
