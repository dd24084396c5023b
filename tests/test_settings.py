from backoffice.settings import Settings


def test_plain_postgres_url_gets_asyncpg_driver(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://user:pw@localhost:5432/backoffice")
    settings = Settings(_env_file=None)

    assert settings.async_database_url == "postgresql+asyncpg://user:pw@localhost:5432/backoffice"
    assert settings.asyncpg_connect_args == {}


def test_internal_host_disables_ssl(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://user:pw@db.internal:5432/backoffice")
    settings = Settings(_env_file=None)

    assert settings.async_database_url.startswith("postgresql+asyncpg://")
    assert settings.asyncpg_connect_args == {"ssl": False, "timeout": 20}
