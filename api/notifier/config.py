import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError
from pydantic_settings import BaseSettings

from notifier.errors import ConfigurationError
from notifier.schemas import ProviderConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class Settings(BaseSettings):
    app_name: str = "event-notifier"
    log_level: str = "INFO"

    # Per-request deadline for outbound calls (seconds)
    request_timeout: float = 15.0

    # Providers as a JSON list, and/or a JSON file holding the same list
    providers: list[ProviderConfig] = []
    providers_file: str = ""

    model_config = {"env_file": ".env", "env_prefix": "NOTIFIER_", "extra": "ignore"}


settings = Settings()


def load_provider_configs(cfg: Settings) -> list[ProviderConfig]:
    """Return inline providers followed by the ones in ``providers_file``."""
    configs = list(cfg.providers)
    if cfg.providers_file:
        path = Path(cfg.providers_file)
        try:
            configs.extend(
                TypeAdapter(list[ProviderConfig]).validate_json(path.read_text())
            )
        except OSError as e:
            raise ConfigurationError(f"cannot read providers file {path}: {e}") from e
        except ValidationError as e:
            raise ConfigurationError(f"invalid providers file {path}: {e}") from e

    names = [c.name for c in configs]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigurationError(f"duplicate provider names: {', '.join(duplicates)}")
    return configs


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
