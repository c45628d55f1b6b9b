from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text

from core.config import get_settings

ROOT = Path(__file__).resolve().parents[1]


def _alembic_config() -> Config:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    return cfg


def test_required_tables_present_in_migration():
    text_ = (ROOT / "alembic/versions/20261019_0001_initial.py").read_text(encoding="utf-8")
    for t in ["users", "coaching_clients", "coaching_form_responses", "auth_sessions", "admin_action_logs"]:
        assert f'"{t}"' in text_
    assert "uq_coaching_client_open" in text_


def test_migrations_avoid_postgres_now_function_for_portability():
    migrations_dir = ROOT / "alembic/versions"
    for migration_file in migrations_dir.glob("*.py"):
        text_ = migration_file.read_text(encoding="utf-8").lower()
        assert "now()" not in text_, f"Non-portable now() found in {migration_file.name}"


def test_alembic_upgrade_head_succeeds_on_sqlite(tmp_path, monkeypatch):
    db_path = tmp_path / "migration_smoke.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    get_settings.cache_clear()

    command.upgrade(_alembic_config(), "head")
    get_settings.cache_clear()

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())
        assert {"users", "coaching_clients", "coaching_form_responses", "auth_sessions", "admin_action_logs"} <= tables
        indexes = {ix["name"]: ix for ix in inspector.get_indexes("coaching_clients")}
        assert indexes["uq_coaching_client_open"]["unique"]

        with engine.begin() as conn:
            conn.execute(text("INSERT INTO users (id, email, first_name, last_name, password) VALUES (1, 'a@b.c', 'A', 'B', 'x')"))
            conn.execute(text("INSERT INTO coaching_clients (user_id, status) VALUES (1, 'cancelled')"))
            conn.execute(text("INSERT INTO coaching_clients (user_id, status) VALUES (1, 'enrolled')"))
            count = conn.execute(text("SELECT count(*) FROM coaching_clients WHERE user_id = 1")).scalar_one()
        assert count == 2
    finally:
        engine.dispose()


def test_alembic_downgrade_base_drops_tables(tmp_path, monkeypatch):
    db_path = tmp_path / "migration_down.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    get_settings.cache_clear()

    cfg = _alembic_config()
    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")
    get_settings.cache_clear()

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        assert "coaching_clients" not in inspect(engine).get_table_names()
    finally:
        engine.dispose()
