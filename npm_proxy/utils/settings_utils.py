import os
import typing
from pathlib import Path
from typing import Any

import structlog
from pydantic_settings import (
    PydanticBaseSettingsSource,
)

logger = structlog.stdlib.get_logger(__name__)


def _is_list_field(field_info: Any) -> bool:
    annotation = getattr(field_info, "annotation", None)
    return annotation is list or typing.get_origin(annotation) is list


class DockerSecretsSettingsSource(PydanticBaseSettingsSource):
    """
    Custom settings source that reads Docker secrets from files.

    For any setting, if an environment variable <SETTING_NAME>_FILE exists,
    it will read the value from that file path. List settings
    (e.g. NPM_MIRROR_URLS) are read one entry per line.

    Example:
        If NPM_MIRROR_URLS_FILE=/run/secrets/npm_mirrors
        Then NPM_MIRROR_URLS will be read from that file
    """

    def get_field_value(
        self, field_name: str, field_info: Any
    ) -> tuple[Any, str, bool]:
        file_env_name = f"{field_name}_FILE"
        file_path = os.getenv(file_env_name)

        if not file_path or not Path(file_path).exists():
            return None, field_name, False

        try:
            content = Path(file_path).read_text()
        except OSError as e:
            logger.warning(
                "Could not read setting from file",
                setting=field_name,
                path=file_path,
                error=str(e),
            )
            return None, field_name, False

        if _is_list_field(field_info):
            entries = [line.strip() for line in content.splitlines()]
            return [entry for entry in entries if entry], field_name, True

        return content.strip(), field_name, False

    def prepare_field_value(
        self, field_name: str, field: Any, value: Any, value_is_complex: bool
    ) -> Any:
        return value

    def __call__(self) -> dict[str, Any]:
        d: dict[str, Any] = {}

        for field_name, field_info in self.settings_cls.model_fields.items():
            field_value, field_key, _ = self.get_field_value(field_name, field_info)
            if field_value is not None:
                d[field_key] = field_value

        return d
