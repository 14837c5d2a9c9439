from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from imgflow.errors import ConfigurationError


ACCESS_KEY_ENV_NAMES = ("S3_ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID")
SECRET_KEY_ENV_NAMES = ("S3_SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY")
TINIFY_KEY_ENV_NAMES = ("TINIFY_API_KEY", "TINIFY_KEY")


@dataclass(frozen=True, slots=True)
class StoreCredentials:
    access_key_id: str | None
    secret_access_key: str | None

    @property
    def explicit(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)


def _first_env(names: tuple[str, ...], environ: Mapping[str, str]) -> str | None:
    for env_name in names:
        value = environ.get(env_name, "").strip()
        if value:
            return value
    return None


def resolve_store_credentials(environ: Mapping[str, str] | None = None) -> StoreCredentials:
    """Resolve object-store keys from the environment.

    When neither pair is set the result is empty and boto3 falls back to its own
    credential chain (shared config, instance profile, ...). Half a pair is an error.
    """
    environ = os.environ if environ is None else environ
    access_key = _first_env(ACCESS_KEY_ENV_NAMES, environ)
    secret_key = _first_env(SECRET_KEY_ENV_NAMES, environ)
    if bool(access_key) != bool(secret_key):
        raise ConfigurationError(
            "Object store credentials are incomplete. Set both `S3_ACCESS_KEY_ID` and "
            "`S3_SECRET_ACCESS_KEY`."
        )
    return StoreCredentials(access_key_id=access_key, secret_access_key=secret_key)


def resolve_tinify_key(environ: Mapping[str, str] | None = None) -> str:
    environ = os.environ if environ is None else environ
    value = _first_env(TINIFY_KEY_ENV_NAMES, environ)
    if not value:
        raise ConfigurationError(
            "Compressible images are pending but no Tinify API key was found. Set `TINIFY_API_KEY`."
        )
    return value
