def test_get_engine_kwargs_sqlite_has_check_same_thread(monkeypatch):
    from taskmanager.database import database as db

    kwargs = db.get_engine_kwargs("sqlite:///./taskmanager.db")
    assert "connect_args" in kwargs
    assert kwargs["connect_args"]["check_same_thread"] is False
    # Pool options only apply to server databases
    assert "pool_size" not in kwargs
    assert "max_overflow" not in kwargs
    assert kwargs["pool_pre_ping"] is True


def test_get_engine_kwargs_postgres_pooling_from_env(monkeypatch):
    from taskmanager.database import database as db

    monkeypatch.setenv("DB_POOL_SIZE", "10")
    monkeypatch.setenv("DB_MAX_OVERFLOW", "2")
    monkeypatch.setenv("DB_POOL_TIMEOUT_SEC", "15")

    kwargs = db.get_engine_kwargs("postgresql+psycopg://u:p@localhost:5432/db")
    assert "connect_args" not in kwargs
    assert kwargs["pool_pre_ping"] is True
    assert kwargs["pool_size"] == 10
    assert kwargs["max_overflow"] == 2
    assert kwargs["pool_timeout"] == 15


def test_pool_settings_fall_back_to_defaults(monkeypatch):
    from taskmanager.database import database as db

    for env_var, _ in db.POOL_SETTINGS.values():
        monkeypatch.delenv(env_var, raising=False)

    kwargs = db.get_engine_kwargs("postgresql+psycopg://u:p@localhost:5432/db")
    assert kwargs["pool_size"] == 5
    assert kwargs["max_overflow"] == 5
    assert kwargs["pool_timeout"] == 30


def test_debug_enables_echo(monkeypatch):
    from taskmanager.database import database as db

    monkeypatch.setenv("DEBUG", "true")
    assert db.get_engine_kwargs("sqlite:///./taskmanager.db")["echo"] is True

    monkeypatch.setenv("DEBUG", "false")
    assert db.get_engine_kwargs("sqlite:///./taskmanager.db")["echo"] is False


def test_sqlite_pragmas_listener_is_guarded():
    # The pragma listener only runs for SQLite URLs
    from taskmanager.database import database as db

    assert db._is_sqlite_url("sqlite:///./taskmanager.db") is True
    assert db._is_sqlite_url("postgresql+psycopg://u:p@localhost/db") is False


def test_init_db_creates_tables(tmp_path, monkeypatch):
    from sqlalchemy import inspect
    from taskmanager.database import database as db

    engine = db.build_engine(f"sqlite:///{tmp_path / 'fresh.db'}")
    monkeypatch.setattr(db, "engine", engine)

    db.init_db()

    assert {"tasks", "users"} <= set(inspect(engine).get_table_names())
    engine.dispose()
