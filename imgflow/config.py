from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Mapping

from imgflow.errors import ConfigurationError


CONFIG_FILENAME = ".imgflow.json"
DEFAULT_STAGING_DIR = ".imgflow-staging"
DEFAULT_DELAY_SECONDS = 10.0

# Environment variable -> config field. The environment wins over the config file.
ENV_FIELDS = {
    "IMAGES_FOLDER": "local_root",
    "S3_BUCKET": "bucket",
    "S3_REGION": "region",
    "S3_ENDPOINT": "endpoint",
    "S3_PREFIX": "prefix",
    "IMGFLOW_STAGING_DIR": "staging_dir",
    "TINIFY_DELAY_SECONDS": "delay_seconds",
}


@dataclass(slots=True)
class ImgFlowConfig:
    local_root: str
    bucket: str = ""
    region: str = ""
    endpoint: str = ""
    prefix: str = ""
    staging_dir: str = DEFAULT_STAGING_DIR
    delay_seconds: float = DEFAULT_DELAY_SECONDS

    @property
    def local_root_path(self) -> Path:
        return Path(self.local_root).expanduser().resolve()

    @property
    def staging_path(self) -> Path:
        return Path(self.staging_dir).expanduser().resolve()

    def require_bucket(self) -> str:
        if not self.bucket:
            raise ConfigurationError(
                "No bucket configured. Set `S3_BUCKET` or run `imgflow init --bucket <name>`."
            )
        return self.bucket


def config_path(base_dir: Path | None = None) -> Path:
    return (base_dir or Path.cwd()).resolve() / CONFIG_FILENAME


def _read_config_file(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return data


def _parse_delay(value: object) -> float:
    try:
        delay = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid delay value: {value!r}") from exc
    if delay < 0:
        raise ConfigurationError(f"Delay must not be negative: {delay}")
    return delay


def load_config(
    base_dir: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    local_root: str | None = None,
) -> ImgFlowConfig:
    environ = os.environ if environ is None else environ
    values = {
        key: value
        for key, value in _read_config_file(config_path(base_dir)).items()
        if key in ImgFlowConfig.__dataclass_fields__
    }
    for env_name, field_name in ENV_FIELDS.items():
        value = environ.get(env_name, "").strip()
        if value:
            values[field_name] = value
    if local_root:
        values["local_root"] = local_root

    root = str(values.pop("local_root", "") or "").strip()
    if not root:
        raise ConfigurationError(
            "No image folder configured. Set `IMAGES_FOLDER` or run `imgflow init <root>`."
        )

    return ImgFlowConfig(
        local_root=root,
        bucket=str(values.get("bucket", "") or "").strip(),
        region=str(values.get("region", "") or "").strip(),
        endpoint=str(values.get("endpoint", "") or "").strip(),
        prefix=normalize_prefix(str(values.get("prefix", "") or "")),
        staging_dir=str(values.get("staging_dir") or DEFAULT_STAGING_DIR),
        delay_seconds=_parse_delay(values.get("delay_seconds", DEFAULT_DELAY_SECONDS)),
    )


def save_config(config: ImgFlowConfig, base_dir: Path | None = None) -> Path:
    path = config_path(base_dir)
    payload = asdict(config)
    payload["prefix"] = normalize_prefix(str(payload["prefix"]))
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2)
        fh.write("\n")
    return path


def normalize_prefix(prefix: str) -> str:
    value = (prefix or "").strip().replace("\\", "/").strip("/")
    if not value:
        return ""
    return f"{value}/"
