"""Configuration helpers for the closet catalog."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

from memory.outfit_collection import DEFAULT_OUTFITS_KEY
from memory.outfit_log import DEFAULT_OUTFIT_LOG_KEY
from memory.subcategory_registry import DEFAULT_SUBCATEGORIES_KEY
from tools.catalog_store import DEFAULT_CATALOG_KEY


@dataclass
class ClosetConfig:
    """Configuration values for the catalog engine.

    Storage keys are opaque namespaces in the key-value store; they default
    to the names earlier releases wrote so existing data is picked up and
    migrated on first load.
    """

    storage_backend: str = "json"
    storage_path: Optional[str] = None
    catalog_key: str = DEFAULT_CATALOG_KEY
    outfits_key: str = DEFAULT_OUTFITS_KEY
    outfit_log_key: str = DEFAULT_OUTFIT_LOG_KEY
    subcategories_key: str = DEFAULT_SUBCATEGORIES_KEY
    log_level: str = "INFO"
    random_seed: Optional[int] = None
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "ClosetConfig":
        """Build a config from environment variables or an environment file.

        Environment specific files live in ``config/environments/<env>.yaml`` by
        default. Environment variables take precedence over file values.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("CLOSET_CONFIG_DIR", "config/environments"))
        file_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            file_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, file_config.get(key, default))

        seed = get_value("random_seed")
        return cls(
            storage_backend=str(get_value("storage_backend", "json") or "json"),
            storage_path=get_value("storage_path"),
            catalog_key=str(get_value("catalog_key", DEFAULT_CATALOG_KEY)),
            outfits_key=str(get_value("outfits_key", DEFAULT_OUTFITS_KEY)),
            outfit_log_key=str(get_value("outfit_log_key", DEFAULT_OUTFIT_LOG_KEY)),
            subcategories_key=str(get_value("subcategories_key", DEFAULT_SUBCATEGORIES_KEY)),
            log_level=str(get_value("log_level", "INFO") or "INFO"),
            random_seed=int(seed) if seed not in (None, "") else None,
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a flat ``key: value`` file without external dependencies."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config
