import pytest

from api.app.config.validate import validate_on_boot
from api.app.qr import qr_data_url, table_url
from config import Settings, get_settings


def _settings(**overrides) -> Settings:
    base = {"database_url": "sqlite+aiosqlite://", "secret_key": "x" * 32}
    base.update(overrides)
    return Settings(**base)


def test_valid_settings_pass(caplog):
    validate_on_boot(_settings(redis_url="redis://:s3cretpass@localhost:6379/0"))
    assert "s3cretpass" not in caplog.text


def test_prod_requires_long_secret(monkeypatch):
    monkeypatch.setenv("APP_ENV", "prod")
    with pytest.raises(RuntimeError):
        validate_on_boot(_settings(secret_key="short"))
    with pytest.raises(RuntimeError):
        validate_on_boot(_settings(secret_key="change-me"))


@pytest.mark.parametrize(
    "overrides",
    [
        {"database_url": "ordering.db"},
        {"redis_url": "http://localhost"},
        {"order_day_timezone": "Mars/Olympus"},
        {"order_sequence_retries": 0},
        {"feed_poll_interval_secs": 0},
    ],
)
def test_bad_values_rejected(overrides):
    with pytest.raises(RuntimeError):
        validate_on_boot(_settings(**overrides))


def test_environment_overrides_defaults(monkeypatch):
    monkeypatch.setenv("ORDER_DAY_TIMEZONE", "Europe/Athens")
    monkeypatch.setenv("TABLE_BATCH_LIMIT", "20")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.order_day_timezone == "Europe/Athens"
        assert settings.table_batch_limit == 20
    finally:
        get_settings.cache_clear()


def test_table_qr_target():
    url = table_url("https://order.example.com/", "1234", "A1")
    assert url == "https://order.example.com/1234/A1"
    assert qr_data_url(url).startswith("data:image/png;base64,")
