import logging
from pathlib import Path

import pytest

from lpadapter.config import LPAdapterConfig, config_from_mapping, load_config
from lpadapter.logging_config import setup_logging


def test_missing_or_none_path_gives_defaults(tmp_path):
    assert load_config(None) == LPAdapterConfig()
    cfg = load_config(tmp_path / "nope.yaml")
    assert cfg.run.log_level == "INFO"
    assert cfg.run.print_every == 0
    assert cfg.optimizer.method == "SIMPLEX"
    assert cfg.optimizer.params == {}


def test_yaml_file_is_read(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text(
        "run:\n"
        "  log_level: debug\n"
        "  print_every: 10\n"
        "optimizer:\n"
        "  method: interior\n"
        "  presolve: true\n"
        "  time_limit_sec: 2.5\n"
        "  params:\n"
        "    msg_lev: 0\n"
        "    tm_lim: \"60 * 1000\"\n"
        "    it_lim: \"msg_lev + 100\"\n"
        "unknown: ignored\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.run.log_level == "debug"
    assert cfg.run.print_every == 10
    assert cfg.optimizer.method == "INTERIOR"
    assert cfg.optimizer.presolve is True
    assert cfg.optimizer.time_limit_sec == 2.5
    assert cfg.optimizer.params == {"msg_lev": 0, "tm_lim": 60000, "it_lim": 100}


def test_bad_expression_is_reported():
    with pytest.raises(ValueError, match="tm_lim"):
        config_from_mapping({"optimizer": {"params": {"tm_lim": "__import__('os')()"}}})
    with pytest.raises(ValueError, match="unknown name"):
        config_from_mapping({"optimizer": {"params": {"tm_lim": "missing * 2"}}})


def test_only_yaml_is_supported(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("{}", encoding="utf-8")
    with pytest.raises(ValueError, match="YAML"):
        load_config(path)


def test_top_level_must_be_a_mapping(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_shipped_default_config_loads():
    path = Path(__file__).resolve().parents[1] / "configs" / "default.yaml"
    cfg = load_config(path)
    assert cfg.optimizer.params["msg_lev"] == 1
    assert cfg.optimizer.time_limit_sec is None


def test_debug_logging_writes_a_report_file(tmp_path):
    assert setup_logging("INFO", report_dir=tmp_path) is None
    path = setup_logging("DEBUG", report_dir=tmp_path / "Report")
    root = logging.getLogger()
    try:
        assert path is not None and path.parent == tmp_path / "Report"
        logger = logging.getLogger("lpadapter.test")
        logger.setLevel(logging.DEBUG)
        logger.debug("hello report")
        for handler in root.handlers:
            handler.flush()
        assert "hello report" in path.read_text(encoding="utf-8")
    finally:
        for handler in [h for h in root.handlers if isinstance(h, logging.FileHandler)]:
            root.removeHandler(handler)
            handler.close()
