"""Prioritizer settings.

Settings come from an optional JSON file (backend/config/prioritizer-config.json
unless PRIORITIZER_CONFIG points elsewhere) and are overridden by environment
variables.
"""

from dataclasses import dataclass
import json
import os

from services.mail_sender import DEFAULT_SMTP_HOST, DEFAULT_SMTP_PORT

CONFIG_FILE = os.path.join(
    os.path.dirname(os.path.dirname(__file__)),
    "config",
    "prioritizer-config.json"
)

# (attribute, JSON key, environment variable)
REQUIRED_SETTINGS = [
    ("log_file_name", "logFileName", "LOG_FILE_NAME"),
    ("base_url", "restBaseServiceUrl", "JIRA_BASE_URL"),
    ("username", "jiraUsername", "JIRA_EMAIL"),
    ("api_token", "jiraUserApiKey", "JIRA_API_TOKEN"),
    ("sprint_id", "sprintId", "JIRA_SPRINT_ID"),
    ("email_from", "emailFrom", "EMAIL_FROM"),
    ("email_to", "emailTo", "EMAIL_TO"),
    ("email_password", "emailFromPassword", "EMAIL_FROM_PASSWORD"),
]

OPTIONAL_SETTINGS = [
    ("epic_project_key", "epicProjectKey", "EPIC_PROJECT_KEY", "CTC"),
    ("smtp_host", "smtpHost", "SMTP_HOST", DEFAULT_SMTP_HOST),
    ("smtp_port", "smtpPort", "SMTP_PORT", str(DEFAULT_SMTP_PORT)),
    ("log_dir", "logDir", "LOG_DIR", "."),
]


class ConfigError(Exception):
    """A required setting is missing or invalid."""


@dataclass
class Settings:
    log_file_name: str
    base_url: str
    username: str
    api_token: str
    sprint_id: int
    email_from: str
    email_to: str
    email_password: str
    epic_project_key: str = "CTC"
    smtp_host: str = DEFAULT_SMTP_HOST
    smtp_port: int = DEFAULT_SMTP_PORT
    log_dir: str = "."


def _load_config_file(path):
    """Load settings from the JSON file, if present."""
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r") as f:
            return json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        raise ConfigError(f"The config file {path} could not be read: {e}") from e


def _parse_int(name, value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"The {name} setting is not a number: {value!r}")


def load_settings(environ=None, path=None) -> Settings:
    """Collect settings from the config file and the environment.

    Raises:
        ConfigError: a required setting is missing or a number is malformed
    """
    if environ is None:
        environ = os.environ
    if path is None:
        path = environ.get("PRIORITIZER_CONFIG", CONFIG_FILE)

    file_values = _load_config_file(path)

    def lookup(json_key, env_var):
        value = environ.get(env_var)
        if value is None:
            value = file_values.get(json_key)
        if value is None:
            return ""
        return str(value).strip()

    values = {}
    for attr, json_key, env_var in REQUIRED_SETTINGS:
        value = lookup(json_key, env_var)
        if not value:
            raise ConfigError(
                f"The required {json_key} setting ({env_var}) is missing. "
                f"Terminating the prioritization."
            )
        values[attr] = value

    for attr, json_key, env_var, default in OPTIONAL_SETTINGS:
        values[attr] = lookup(json_key, env_var) or default

    values["sprint_id"] = _parse_int("sprintId", values["sprint_id"])
    values["smtp_port"] = _parse_int("smtpPort", values["smtp_port"])

    return Settings(**values)
