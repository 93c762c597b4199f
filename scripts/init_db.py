from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import load_settings

from src.eduface.eduface.container import db_config_from, is_remote_store_configured
from src.eduface.eduface.database.bootstrap import apply_schema, list_tables


def main() -> None:
    settings = load_settings()
    if not is_remote_store_configured(settings):
        print("DB_HOST, DB_USER and DB_NAME must be set to initialise the MySQL record store.")
        sys.exit(1)

    db_config = db_config_from(settings)
    apply_schema(db_config)
    tables = list_tables(db_config)
    print(
        "OK: documents table ready -> "
        f"{db_config.describe()} "
        f"(tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
