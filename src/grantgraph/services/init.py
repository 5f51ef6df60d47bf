"""InitService — create a new grant store on disk.

Writes a ``grantgraph.toml`` at the chosen root (unless one exists) and
creates the SQLite database with the system root user seeded. When the
root already has a config, its ``[store] path`` wins unless a path is
passed explicitly.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from grantgraph.config.discovery import CONFIG_FILENAME, load_config
from grantgraph.config.models import GrantConfig
from grantgraph.domain.ids import SYSTEM_ROOT_ID
from grantgraph.infrastructure.database.engine import init_database
from grantgraph.services.result import ServiceError, ServiceResult
from grantgraph.services.telemetry import traced

log = structlog.get_logger(__name__)

_CONFIG_TEMPLATE = """\
[store]
path = "{path}"

[access]
request_cache = true
thread_safe_cache = false
"""


class InitService:
    """Store initialization. Stateless; there is no store to inject yet."""

    @staticmethod
    @traced
    def init_store(root: Path, *, store_path: str | None = None) -> ServiceResult:
        """Initialize a grant store rooted at *root*.

        An existing database is left untouched apart from re-seeding a
        missing system root user, so running init twice is harmless.
        """
        op = "init"
        root = root.resolve()
        config_path = root / CONFIG_FILENAME
        existing = config_path.is_file()
        config = load_config(config_path) if existing else GrantConfig()
        path = store_path or config.store.path
        db_path = Path(path) if Path(path).is_absolute() else root / path

        warnings: list[str] = []
        try:
            root.mkdir(parents=True, exist_ok=True)
            if existing:
                warnings.append(f"{CONFIG_FILENAME} already exists; left unchanged")
            else:
                config_path.write_text(_CONFIG_TEMPLATE.format(path=path), encoding="utf-8")
            init_database(db_path).dispose()
        except OSError as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="INIT_FAILED",
                    message=str(exc),
                    detail={"status": 500, "root": str(root)},
                ),
            )

        log.info("store.initialized", db_path=str(db_path))
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "root": str(root),
                "config_path": str(config_path),
                "db_path": str(db_path),
                "root_id": SYSTEM_ROOT_ID,
            },
            warnings=warnings,
            meta={"status": 201},
        )
