"""
Application settings for the PetrolMate crawler
Values come from the environment or a local .env file
"""
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    PORT: int = 4000
    CRON_SECRET: Optional[str] = None

    # Firebase Realtime Database
    USE_MOCK_FIREBASE: bool = False
    FIREBASE_DATABASE_URL: str = "https://petrolmate-default-rtdb.asia-southeast1.firebasedatabase.app"
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = None
    FIREBASE_CREDENTIALS_JSON: Optional[str] = None

    # Service account fields (deployments without a key file)
    TYPE: str = "service_account"
    PROJECT_ID: Optional[str] = None
    PRIVATE_KEY_ID: Optional[str] = None
    PRIVATE_KEY_BASE64: Optional[str] = None
    CLIENT_EMAIL: Optional[str] = None
    CLIENT_ID: Optional[str] = None
    AUTH_URI: str = "https://accounts.google.com/o/oauth2/auth"
    TOKEN_URI: str = "https://oauth2.googleapis.com/token"
    AUTH_PROVIDER_X509_CERT_URL: str = "https://www.googleapis.com/oauth2/v1/certs"
    CLIENT_X509_CERT_URL: Optional[str] = None
    UNIVERSE_DOMAIN: str = "googleapis.com"

    # Price comparison site
    SOURCE_BASE_URL: str = "https://petrolspy.com.au"
    NAVIGATION_TIMEOUT_MS: int = 120000
    ZOOM_OUT_STEPS: int = 5
    HEADLESS: bool = True
    BROWSER_EXECUTABLE_PATH: Optional[str] = None

    # Orchestration
    CONCURRENT_CITIES: bool = False
    CITY_STAGGER_SECONDS: float = 30.0
    CATALOG_PATH: Optional[str] = None

    # Geocoding (OpenStreetMap Nominatim)
    GEOCODE_URL: str = "https://nominatim.openstreetmap.org/search"
    GEOCODE_COUNTRY: str = "AU"
    GEOCODE_TIMEOUT_SECONDS: float = 10.0
    GEOCODE_USER_AGENT: str = "petrolmate-crawler/1.0"
    GEOCODE_CACHE_ENABLED: bool = True

    # Open behaviours, both observed in production data
    INTERSECTION_MODE: str = "keep"
    WRITE_MODE: str = "merge"

    TIMEZONE: str = "Australia/Adelaide"

    @field_validator("INTERSECTION_MODE")
    @classmethod
    def validate_intersection_mode(cls, v: str) -> str:
        v = v.lower()
        if v not in ("keep", "truncate"):
            raise ValueError("INTERSECTION_MODE must be 'keep' or 'truncate'")
        return v

    @field_validator("WRITE_MODE")
    @classmethod
    def validate_write_mode(cls, v: str) -> str:
        v = v.lower()
        if v not in ("merge", "replace"):
            raise ValueError("WRITE_MODE must be 'merge' or 'replace'")
        return v


settings = Settings()
