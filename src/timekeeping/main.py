from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv

from .alerts.emitter import AlertEmitter, LoggingAlertEmitter
from .config import get_settings_module
from .container import Container, build_container
from .core.policy import RulePolicy
from .database.bootstrap import apply_schema, list_tables

logger = logging.getLogger(__name__)


def policy_from_settings(settings) -> RulePolicy:
    defaults = RulePolicy()
    return RulePolicy(
        late_grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", defaults.late_grace_minutes)),
        annual_leave_days=int(getattr(settings, "ANNUAL_LEAVE_DAYS", defaults.annual_leave_days)),
    )


def alerts_from_settings(settings) -> Optional[AlertEmitter]:
    # None lets the container wire the MySQL emitter.
    if str(getattr(settings, "ALERT_SINK", "db")).lower() == "log":
        return LoggingAlertEmitter()
    return None


def create_services() -> Container:
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db_config = getattr(settings, "DB_CONFIG")
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)
        logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))

    return build_container(
        db_config=db_config,
        policy=policy_from_settings(settings),
        alerts=alerts_from_settings(settings),
    )
