"""
Configuration: Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed application configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Missing required fields raise a validation error at import time.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from sales_agent.database.config.config import settings

# Example
db_host = settings.DB_HOST
completion_model = settings.COMPLETION_MODEL

Security
--------
- Never commit secrets or the `.env` file to source control.
- Prefer runtime environment variables in production (K8s/Secrets Manager/etc.).
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    FRONTEND_URL: str = Field(..., description="Base URL of the chat widget frontend (allowed CORS origin).")
    INIT_MODE: str = Field("runtime", description="Initialization mode. 'runtime' creates tables and the completion client on startup.")
    LOG_LEVEL: str = Field("INFO", description="Root log level (DEBUG, INFO, WARNING, ...).")

    DB_DRIVER_NAME: str = Field(..., description="Database driver (e.g., `postgresql+psycopg`, `sqlite`).")
    DB_DATABASE_NAME: str = Field(..., description="Name of the application’s database (file path for sqlite).")
    DB_USERNAME: Optional[str] = Field(None, description="Database username credential.")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password credential.")
    DB_HOST: Optional[str] = Field(None, description="Hostname or IP address of the database server.")
    DB_PORT: Optional[int] = Field(None, description="Port of the database server.")

    API_KEY: str = Field(..., description="API key of the OpenAI-compatible completion endpoint.")
    COMPLETION_BASE_URL: str = Field("https://openrouter.ai/api/v1", description="Base URL of the OpenAI-compatible completion endpoint.")
    COMPLETION_MODEL: str = Field("openai/gpt-3.5-turbo", description="Model identifier sent with every completion request.")
    COMPLETION_TIMEOUT_SECONDS: float = Field(20.0, description="Timeout applied to each individual completion call.")
    TURN_DEADLINE_SECONDS: float = Field(60.0, description="Deadline for a whole chat turn (all stages plus persistence).")
    LABEL_MATCHING: Literal["strict", "lenient"] = Field("strict", description="How classifier output is matched against its label set.")

    SECRET_KEY: str = Field(..., description="Secret key for signing OAuth state tokens.")
    ALGORITHM: str = Field("HS256", description="JWT signing algorithm (e.g., `HS256`).")
    STATE_TOKEN_EXPIRE_MINUTES: int = Field(10, description="Lifetime (in minutes) of the signed OAuth `state` parameter.")

    GOOGLE_CLIENT_ID: str = Field(..., description="OAuth client id of the Google Cloud project.")
    GOOGLE_CLIENT_SECRET: str = Field(..., description="OAuth client secret of the Google Cloud project.")
    GOOGLE_CALLBACK_URL: str = Field(..., description="Redirect URI registered for the OAuth callback endpoint.")
    GOOGLE_AUTH_SUCCESS_REDIRECT: str = Field(
        "http://localhost:3000/dashboard?googleAuthSuccess=true",
        description="Where the browser is sent after a successful calendar connection.",
    )
    CALENDAR_TIME_ZONE: str = Field("America/Los_Angeles", description="IANA time zone used for calendar events.")
    MEETING_DURATION_MINUTES: int = Field(30, description="Length of the calendar event created for a meeting.")

# Singleton instance of Settings, ready to be imported across the app
settings = Settings()
"""Defines a Settings object that contains the contents of the .env file"""
