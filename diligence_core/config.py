"""Settings for the import and scoring batch job"""
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Read from the environment or a .env file"""
    # Persistence
    DATABASE_URL: str = Field("sqlite:///diligence.db", description="SQLAlchemy database URL")

    # Logging
    LOG_LEVEL: str = Field("INFO", description="Root log level")

    # Import settings
    PREVIEW_ROWS: int = Field(10, ge=0, description="Transactions shown in an import preview")

    # Batch run context - imports are only persisted when a client is given
    CLIENT_ID: Optional[str] = Field(None, description="Client the imported transactions belong to")
    ORGANIZATION_ID: Optional[str] = Field(None, description="Organization owning the client")
    CASE_ID: Optional[str] = Field(None, description="Case whose cached risk score is refreshed")

    # Batch input and results locations
    INPUT_DIR: str = Field("/input", description="Directory holding CSV exports and findings.json")
    OUTPUT_DIR: str = Field("/output", description="Directory results.json is written to")

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True
    )


settings = Settings()
