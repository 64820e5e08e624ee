# === FILE: site_watch/config.py ===
"""
Модуль для загрузки и валидации конфигурации монитора SiteWatch.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Annotated, Any, List, Literal, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    SecretStr,
    ValidationError,
    field_validator,
)


class SmtpNotifierConfig(BaseModel):
    """Отправка оповещений через SMTP-сервер."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["smtp"] = "smtp"
    host: str = Field(..., min_length=1)
    port: int = Field(25, gt=0, lt=65536)
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    use_tls: bool = True
    timeout: float = Field(10.0, gt=0)
    sender: str = Field(..., min_length=1)
    recipients: List[str] = Field(..., min_length=1)
    subject: str = "WebSite Status!"


class HttpApiNotifierConfig(BaseModel):
    """Отправка оповещений через HTTP API почтового сервиса."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["http_api"] = "http_api"
    endpoint: HttpUrl
    api_key: SecretStr
    sender: str = Field(..., min_length=1)
    recipients: List[str] = Field(..., min_length=1)
    subject: str = "WebSite Status!"


NotifierConfig = Annotated[
    Union[SmtpNotifierConfig, HttpApiNotifierConfig], Field(discriminator="kind")
]


class MonitorConfig(BaseModel):
    """Конфигурация одного процесса мониторинга."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    target_urls: List[HttpUrl] = Field(..., min_length=1, description="Опрашиваемые URL.")
    worker_count: int = Field(3, ge=1, description="Число параллельных воркеров.")
    poll_interval: float = Field(60.0, gt=0, description="Базовый интервал опроса (секунд).")
    report_interval: float = Field(10.0, gt=0, description="Период отчёта (секунд).")
    error_penalty: float = Field(10.0, ge=0, description="Надбавка к интервалу за каждую ошибку.")
    request_timeout: float = Field(10.0, gt=0, description="Таймаут на один запрос (секунд).")
    user_agent: str = Field("SiteWatchBot/1.0", min_length=1, description="Заголовок User-Agent.")
    maintenance_markers: List[str] = Field(
        default_factory=lambda: ["under maintenance"],
        min_length=1,
        description="Признаки страницы техобслуживания (без учёта регистра).",
    )
    prune_healthy: bool = Field(False, description="Удалять здоровые URL после каждого отчёта.")
    inbox_size: int = Field(100, ge=1, description="Размер очереди агрегатора.")
    notifier: Optional[NotifierConfig] = None

    @field_validator("target_urls", mode="after")
    def _dedupe_targets(cls, v: List[HttpUrl]) -> List[HttpUrl]:
        # первый встреченный URL сохраняет свою позицию
        return list({str(u): u for u in v}.values())

    @field_validator("maintenance_markers", mode="after")
    def _non_empty_markers(cls, v: List[str]) -> List[str]:
        markers = [m.strip() for m in v if m.strip()]
        if not markers:
            raise ValueError("maintenance_markers must contain at least one non-blank marker")
        return markers

    @property
    def urls(self) -> List[str]:
        return [str(u) for u in self.target_urls]


DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> MonitorConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект MonitorConfig.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    if path is None:
        if not DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(DEFAULT_CFG))
        path_obj = DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return MonitorConfig(**data)


__all__ = [
    "MonitorConfig",
    "SmtpNotifierConfig",
    "HttpApiNotifierConfig",
    "NotifierConfig",
    "load_config",
    "DEFAULT_CFG",
    "ValidationError",
]
