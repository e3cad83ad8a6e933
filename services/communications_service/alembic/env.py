"""Alembic entrypoint for the communications service."""

import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context

PROJECT_ROOT = Path(__file__).resolve().parents[3]
sys.path.append(str(PROJECT_ROOT))

from libs.db.migrations import run_service_migrations  # noqa: E402
from services.communications_service import models  # noqa: E402

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

run_service_migrations("communications", models)
