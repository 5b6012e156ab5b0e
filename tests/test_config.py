import pytest

from airbear.config import Config, ConnectionType, LogLevel, debug_msg, init_config


def test_get_returns_default_for_missing_key():
    config = Config(None)
    assert config.get("ssid", "") == ""
    assert config.get("connection_type") is None


def test_put_then_get_in_memory():
    config = Config(None)
    config.put("ssid", "garage")
    assert config.get("ssid", "") == "garage"


def test_values_persist_across_instances(tmp_path):
    path = tmp_path / "settings" / "air-bear.json"
    config = Config(path)
    config.put("ap-ssid", "Speeduino Dash")
    config.put("debugSerial", True)
    config.put("connection_type", ConnectionType.BLE)

    reloaded = Config(path)
    assert reloaded.get("ap-ssid") == "Speeduino Dash"
    assert reloaded.get("debugSerial") is True
    assert reloaded.get("connection_type") == ConnectionType.BLE


def test_put_rejects_unsupported_types():
    config = Config(None)
    with pytest.raises(TypeError):
        config.put("ssid", None)
    with pytest.raises(TypeError):
        config.put("ssid", ["a"])


def test_non_object_file_rejected(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        Config(path)


def test_init_config_defaults_to_dash(tmp_path):
    config = init_config(tmp_path / "cfg.json")
    assert config.get("connection_type") == ConnectionType.DASH


def test_init_config_replaces_none_type(tmp_path):
    path = tmp_path / "cfg.json"
    Config(path).put("connection_type", ConnectionType.NONE)
    assert init_config(path).get("connection_type") == ConnectionType.DASH


def test_init_config_keeps_existing_type(tmp_path):
    path = tmp_path / "cfg.json"
    Config(path).put("connection_type", ConnectionType.DISPLAY)
    assert init_config(path).get("connection_type") == ConnectionType.DISPLAY


def test_debug_msg_silent_by_default(capsys):
    debug_msg(Config(None), "hello", LogLevel.FATAL)
    assert capsys.readouterr().out == ""


def test_debug_msg_respects_level(capsys):
    config = Config(None)
    config.put("debugLevel", LogLevel.WARN)
    config.put("debugSerial", True)
    debug_msg(config, "hello", LogLevel.INFO)
    assert capsys.readouterr().out == ""
    debug_msg(config, "hello", LogLevel.ERROR)
    assert capsys.readouterr().out == "hello\n"


def test_debug_msg_prints_for_each_sink(capsys):
    config = Config(None)
    config.put("debugSerial", True)
    config.put("debugWeb", True)
    debug_msg(config, "hello", LogLevel.INFO)
    assert capsys.readouterr().out == "hello\nhello\n"