from pydantic_settings import BaseSettings
from typing import Optional, List
from enum import Enum


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    # Environment
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True

    # Database
    database_url: str
    database_pool_size: int = 10
    database_max_overflow: int = 20
    database_pool_timeout: int = 30
    database_echo: bool = False

    # Security
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    password_hash_rounds: int = 10

    # OpenAI Assistants
    openai_api_key: str
    openai_timeout: int = 60
    assistant_id: str = "asst_FLYPSgOOB3IEUTgUsa4j3a75"
    assistant_instructions: str = (
        "You are FloBotz Assistant. Respond clearly, with helpful and brand-consistent answers."
    )
    assistant_error_message: str = "⚠️ An error occurred while generating a response."

    # Title generation
    title_model: str = "gpt-4.1-mini"
    title_temperature: float = 0.5
    title_max_length: int = 80

    # LangSmith tracing configuration
    langsmith_tracing: Optional[str] = None
    langsmith_endpoint: Optional[str] = None
    langsmith_api_key: Optional[str] = None
    langsmith_project: Optional[str] = None

    # Webhook (n8n automation)
    webhook_enabled: bool = True
    webhook_url: str = "https://flobotzai.app.n8n.cloud/webhook/flo-chat"
    webhook_timeout: float = 10.0

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100
    rate_limit_window: int = 60
    chat_submit_rate_limit: str = "20/minute"
    chat_delete_rate_limit: str = "30/minute"
    redis_url: Optional[str] = "redis://localhost:6379"

    # CORS
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    # Monitoring
    metrics_enabled: bool = True

    # Application
    app_name: str = "FloBotz Chat API"
    app_version: str = "1.0.0"
    app_description: str = "Chat backend streaming FloBotz Assistant replies"

    # Chat settings
    history_page_size: int = 20
    history_max_page_size: int = 100

    # Production settings
    workers: int = 4
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING

    @property
    def langsmith_enabled(self) -> bool:
        return bool(self.langsmith_tracing) and self.langsmith_tracing.lower() == "true"

    def get_cors_config(self) -> dict:
        """Get CORS configuration"""
        return {
            "allow_origins": self.cors_origins,
            "allow_credentials": self.cors_allow_credentials,
            "allow_methods": self.cors_allow_methods,
            "allow_headers": self.cors_allow_headers,
        }

    def get_database_config(self) -> dict:
        """Get database engine keyword arguments"""
        config = {"echo": self.database_echo, "pool_pre_ping": True}
        if self.database_url.startswith("sqlite"):
            # SQLite connections are shared between the event loop and worker threads
            config["connect_args"] = {"check_same_thread": False}
        else:
            config.update(
                pool_size=self.database_pool_size,
                max_overflow=self.database_max_overflow,
                pool_timeout=self.database_pool_timeout,
                pool_recycle=3600,
            )
        return config

    def get_assistant_config(self) -> dict:
        """Get OpenAI Assistants configuration"""
        return {
            "api_key": self.openai_api_key,
            "assistant_id": self.assistant_id,
            "instructions": self.assistant_instructions,
            "timeout": self.openai_timeout,
        }

    def get_title_config(self) -> dict:
        """Get title generation model configuration"""
        return {
            "api_key": self.openai_api_key,
            "model": self.title_model,
            "temperature": self.title_temperature,
            "max_length": self.title_max_length,
            "timeout": self.openai_timeout,
        }

    def get_webhook_config(self) -> dict:
        """Get webhook configuration"""
        return {
            "url": self.webhook_url,
            "timeout": self.webhook_timeout,
            "enabled": self.webhook_enabled,
        }


# Global settings instance
settings = Settings()


# Environment-specific configurations
def get_environment_config():
    """Get environment-specific configuration overrides"""
    if settings.is_production:
        return {
            "debug": False,
            "log_level": "WARNING",
            "rate_limit_enabled": True,
            "metrics_enabled": True,
        }
    elif settings.is_testing:
        return {
            "debug": False,
            "log_level": "DEBUG",
            "rate_limit_enabled": False,
            "webhook_enabled": False,
        }
    elif settings.is_development:
        return {
            "debug": True,
            "log_level": "DEBUG",
            "log_format": "console",
            "rate_limit_enabled": False,
        }
    else:  # staging
        return {
            "debug": False,
        }


# Apply environment-specific settings
env_config = get_environment_config()
for key, value in env_config.items():
    if hasattr(settings, key):
        setattr(settings, key, value)
