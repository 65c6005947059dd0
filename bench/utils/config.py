"""
Configuration management with schema validation.
Single source of truth for Sulphuric Bench backend configuration.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .exceptions import ConfigError
from .logger import get_logger

logger = get_logger(__name__)

# Load environment variables
load_dotenv()

CONFIG_DIR = Path(os.getenv("BENCH_CONFIG_DIR", "config"))
SETTINGS_FILE = CONFIG_DIR / "settings.yaml"


class AppSettings(BaseModel):
    name: str = "Sulphuric Bench"
    version: str = "1.0.0"
    environment: str = "development"


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = "logs/bench.log"
    max_bytes: int = 10485760
    backup_count: int = 5


class CredentialConfig(BaseModel):
    """One privileged account. Give either ``password`` or ``password_hash``."""
    email: str
    name: str
    password: Optional[str] = None
    password_hash: Optional[str] = None


def _default_credentials() -> List[CredentialConfig]:
    return [
        CredentialConfig(
            email="abdullahusimin1@gmail.com",
            name="Abdullah Usimin",
            password=os.getenv("SUPER_ADMIN_1_PASSWORD", "@abdullah1"),
        ),
        CredentialConfig(
            email="stv7168@gmail.com",
            name="STV Admin",
            password=os.getenv("SUPER_ADMIN_2_PASSWORD", "12345678"),
        ),
        CredentialConfig(
            email="abdullahabeer003@gmail.com",
            name="Abdullah Abeer",
            password=os.getenv("SUPER_ADMIN_3_PASSWORD", "12345678"),
        ),
    ]


class AuthSettings(BaseModel):
    session_ttl_hours: int = 24
    bcrypt_rounds: int = 12
    credentials: List[CredentialConfig] = Field(default_factory=_default_credentials)


class StoreSettings(BaseModel):
    backend: str = "json"  # json | postgrest
    data_dir: str = "data"
    url: Optional[str] = None
    service_key: Optional[str] = None
    timeout_seconds: float = 10.0


class ReaperSettings(BaseModel):
    enabled: bool = True
    interval_minutes: int = 60


class EmailSettings(BaseModel):
    transport: str = "log"  # log | http
    function_url: Optional[str] = None
    from_address: str = "Sulphuric Bench <noreply@sulphuricbench.com>"
    timeout_seconds: float = 10.0


class StorageSettings(BaseModel):
    upload_dir: str = "uploads"
    public_base_url: str = "http://localhost:8000/uploads"


class CorsSettings(BaseModel):
    origins: List[str] = Field(default_factory=lambda: ["*"])


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    reaper: ReaperSettings = Field(default_factory=ReaperSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)


class ConfigManager:
    """Singleton configuration manager"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self.settings_path = SETTINGS_FILE
        self._settings: Optional[Settings] = None
        self._initialized = True

    def _substitute_env_vars(self, value: Any) -> Any:
        """Recursively substitute ${VAR} and ${VAR:default} references"""
        if isinstance(value, str):
            if value.startswith("${") and value.endswith("}"):
                var_expr = value[2:-1]
                if ":" in var_expr:
                    var_name, default = var_expr.split(":", 1)
                    return os.getenv(var_name.strip(), default.strip())
                else:
                    return os.getenv(var_expr, value)
        elif isinstance(value, dict):
            return {k: self._substitute_env_vars(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [self._substitute_env_vars(item) for item in value]
        return value

    def load_settings(self, path: Optional[Path] = None) -> Settings:
        """Load and validate settings.yaml. A missing file yields defaults."""
        settings_path = Path(path) if path else self.settings_path
        if not settings_path.exists():
            logger.info("Settings file not found, using defaults", path=str(settings_path))
            self._settings = Settings()
            return self._settings

        try:
            with open(settings_path, "r", encoding="utf-8") as f:
                raw_data: Dict[str, Any] = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read settings from {settings_path}: {e}")

        processed_data = self._substitute_env_vars(raw_data)
        try:
            self._settings = Settings(**processed_data)
        except ValueError as e:
            raise ConfigError(f"Invalid settings in {settings_path}: {e}")
        return self._settings

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            return self.load_settings()
        return self._settings


# Global instance
config_manager = ConfigManager()
