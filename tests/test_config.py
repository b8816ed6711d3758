import pytest

from archscan.config import CONFIG_ENV_VAR, ScanConfig, load_config, resolve_config_path
from archscan.errors import ConfigError
from archscan.severity import Severity


def test_missing_path_gives_defaults():
    config = load_config(None)

    assert config == ScanConfig()
    assert config.fail_on is Severity.HIGH
    assert config.enabled_rules is None


def test_load_config_from_yaml(tmp_path):
    path = tmp_path / "archscan.yaml"
    path.write_text("disabled_rules:\n  - CF_NO_WAF\ninclude_rules:\n  - NO_CLOUDTRAIL\nfail_on: CRITICAL\n", encoding="utf-8")

    config = load_config(path)

    assert config.disabled_rules == ("CF_NO_WAF",)
    assert config.include_rules == ("NO_CLOUDTRAIL",)
    assert config.fail_on is Severity.CRITICAL
    assert config.source == path


def test_empty_file_is_default_config(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_config(path).disabled_rules == ()


def test_invalid_config_lists_every_problem(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("fail_on: urgent\ndisabled_rules: EC2_NO_SG\ncolour: red\n", encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_config(path)

    message = str(excinfo.value)
    assert "unknown key 'colour'" in message
    assert "disabled_rules: expected a list" in message
    assert "Unknown severity 'urgent'" in message


def test_non_mapping_config_is_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)


def test_missing_explicit_file_is_an_error(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml")


def test_resolve_prefers_flag_then_env_then_cwd(tmp_path, monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    assert resolve_config_path(None, cwd=tmp_path) is None

    local = tmp_path / ".archscan.yaml"
    local.write_text("{}", encoding="utf-8")
    assert resolve_config_path(None, cwd=tmp_path) == local

    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "env.yaml"))
    assert resolve_config_path(None, cwd=tmp_path) == tmp_path / "env.yaml"

    assert resolve_config_path("flag.yaml", cwd=tmp_path).name == "flag.yaml"
