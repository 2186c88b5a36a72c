"""Prioritizer application wiring."""

from datetime import datetime
import logging
import os
import sys

from app.config import ConfigError, Settings, load_settings
from services.jira_client import JiraClient
from services.mail_sender import MailNotifier
from services.sprint_prioritizer import SprintPrioritizerService

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

logger = logging.getLogger(__name__)


def prepare_log_path(settings: Settings, now=None) -> str:
    """Log file path, suffixed with the run's date and time."""
    if now is None:
        now = datetime.now()
    file_name = f"{settings.log_file_name}_{now.strftime('%Y-%m-%d_%H-%M')}.txt"
    return os.path.abspath(os.path.join(settings.log_dir, file_name))


def configure_logging(log_path: str) -> list:
    """Mirror log records to the log file and the console.

    Returns the handlers added to the root logger.
    """
    formatter = logging.Formatter(LOG_FORMAT)
    handlers = [
        logging.FileHandler(log_path, mode="w", encoding="utf-8"),
        logging.StreamHandler(sys.stdout)
    ]

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    return handlers


def remove_handlers(handlers: list):
    root = logging.getLogger()
    for handler in handlers:
        root.removeHandler(handler)
        handler.close()


def create_service(settings: Settings) -> SprintPrioritizerService:
    """Create the prioritizer service from settings."""
    client = JiraClient(settings.base_url, settings.username, settings.api_token)
    notifier = MailNotifier(
        settings.email_from, settings.email_to, settings.email_password,
        host=settings.smtp_host, port=settings.smtp_port
    )
    return SprintPrioritizerService(
        client, settings.sprint_id,
        notifier=notifier,
        epic_project_key=settings.epic_project_key
    )


def main(environ=None) -> int:
    """Run one prioritization of the configured sprint.

    Returns the process exit code: 0 on completion, 1 on any startup or
    fatal error.
    """
    try:
        settings = load_settings(environ)
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error(str(e))
        return 1

    log_path = prepare_log_path(settings)
    try:
        handlers = configure_logging(log_path)
    except OSError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error(f"The log file could not be initialized: {e}")
        return 1

    try:
        logger.info(f"The log file is located at: {log_path}")
        create_service(settings).run()
    except Exception as e:
        logger.error(f"Prioritization failed: {e}", exc_info=True)
        return 1
    finally:
        remove_handlers(handlers)

    return 0
