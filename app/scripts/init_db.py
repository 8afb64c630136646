from __future__ import annotations

from sqlalchemy import inspect

from app.core.config import get_settings
from app.db.base import Base
from app.db.session import build_engine

# Import models to register with SQLAlchemy
import app.models  # noqa: F401


def main() -> int:
    settings = get_settings()
    engine = build_engine(settings)

    Base.metadata.create_all(bind=engine)

    tables = sorted(inspect(engine).get_table_names())
    print(f"DB initialized: {', '.join(tables)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
