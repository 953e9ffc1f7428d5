import json
import os
from pathlib import Path
from typing import Any, cast

from loguru import logger
from pydantic import ValidationError

from reelhost.settings.models import AppModel
from reelhost.utils import data_dir_path


class SettingsManager:
    """Class that handles settings, ensuring they are validated against a Pydantic schema."""

    def __init__(self, data_dir: Path | None = None):
        self.data_dir = Path(data_dir) if data_dir is not None else data_dir_path
        self.filename = os.environ.get("SETTINGS_FILENAME", "settings.json")
        self.settings_file = self.data_dir / self.filename

        if not self.settings_file.exists():
            logger.info(f"Settings filename: {self.filename}")

            self.settings = AppModel.model_validate(
                self.check_environment(AppModel().model_dump(), "REELHOST")
            )
            self.save()
        else:
            self.load()

    def check_environment(
        self,
        settings: dict[str, Any],
        prefix: str = "",
        separator: str = "_",
    ):
        checked_settings = dict[str, Any]()

        for key, value in settings.items():
            if isinstance(value, dict):
                checked_settings[key] = self.check_environment(
                    settings=cast(dict[str, Any], value),
                    prefix=f"{prefix}{separator}{key}",
                )
            else:
                environment_variable = f"{prefix}_{key}".upper()
                new_value = os.getenv(environment_variable)

                if not new_value:
                    checked_settings[key] = value
                elif isinstance(value, bool):
                    checked_settings[key] = (
                        new_value.lower() == "true" or new_value == "1"
                    )
                elif isinstance(value, int):
                    checked_settings[key] = int(new_value)
                elif isinstance(value, float):
                    checked_settings[key] = float(new_value)
                elif isinstance(value, list) and new_value.startswith("["):
                    checked_settings[key] = json.loads(new_value)
                else:
                    checked_settings[key] = new_value

        return checked_settings

    def load(self, settings_dict: dict[str, Any] | None = None):
        """Load settings from file, validating against the AppModel schema."""
        try:
            if not settings_dict:
                with open(self.settings_file, "r", encoding="utf-8") as file:
                    settings_dict = json.loads(file.read())
                    if os.environ.get("REELHOST_FORCE_ENV", "false").lower() == "true":
                        settings_dict = self.check_environment(settings_dict, "REELHOST")
            self.settings = AppModel.model_validate(settings_dict)
            self.save()
        except ValidationError as e:
            formatted_error = format_validation_error(e)
            logger.error(f"Settings validation failed:\n{formatted_error}")
            raise
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing settings file: {e}")
            raise
        except FileNotFoundError:
            logger.warning(f"Error loading settings: {self.settings_file} does not exist")
            raise

    def save(self):
        """Save settings to file, using Pydantic model for JSON serialization."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with open(self.settings_file, "w", encoding="utf-8") as file:
            file.write(self.settings.model_dump_json(indent=4))


def format_validation_error(e: ValidationError) -> str:
    """Format validation errors in a user-friendly way"""
    messages = []
    for error in e.errors():
        field = ".".join(str(x) for x in error["loc"])
        message = error.get("msg")
        messages.append(f"• {field}: {message}")
    return "\n".join(messages)
