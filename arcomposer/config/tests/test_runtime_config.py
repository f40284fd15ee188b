from arcomposer.config import runtime_config


def test_defaults(monkeypatch):
    for name in (
        "ANIMATION_TICK_HZ",
        "TRANSFER_CHUNK_BYTES",
        "GESTURE_SYNC_INTERVAL_MS",
        "PLACEMENT_RETRY_ATTEMPTS",
        "BRIDGE_FORWARD_LOGS",
    ):
        monkeypatch.delenv(name, raising=False)
    assert runtime_config.get_tick_hz() == 60
    assert runtime_config.get_transfer_chunk_bytes() == 256 * 1024
    assert runtime_config.get_gesture_sync_interval_ms() == 100
    assert runtime_config.get_placement_retry_attempts() == 5
    assert runtime_config.forward_logs_to_host() is True


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("ANIMATION_TICK_HZ", "30")
    monkeypatch.setenv("TRANSFER_CHUNK_BYTES", "1024")
    monkeypatch.setenv("GESTURE_SYNC_INTERVAL_MS", "0")
    monkeypatch.setenv("BRIDGE_FORWARD_LOGS", "off")
    assert runtime_config.get_tick_hz() == 30
    assert runtime_config.get_transfer_chunk_bytes() == 1024
    assert runtime_config.get_gesture_sync_interval_ms() == 0
    assert runtime_config.forward_logs_to_host() is False


def test_invalid_values_fall_back(monkeypatch, caplog):
    monkeypatch.setenv("ANIMATION_TICK_HZ", "fast")
    monkeypatch.setenv("TRANSFER_YIELD_EVERY", "0")
    monkeypatch.setenv("PLACEMENT_RETRY_BACKOFF_MS", "-5")
    assert runtime_config.get_tick_hz() == 60
    assert runtime_config.get_transfer_yield_every() == 4
    assert runtime_config.get_placement_retry_backoff_ms() == 200
    assert "ANIMATION_TICK_HZ" in caplog.text


def test_env_name_fallback(monkeypatch):
    monkeypatch.delenv("ENV", raising=False)
    monkeypatch.setenv("APP_ENV", "dev")
    assert runtime_config.get_env() == "dev"
    assert runtime_config.config_snapshot()["env"] == "dev"
