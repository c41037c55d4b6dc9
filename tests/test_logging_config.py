from logging_config import APP_LOGGERS, get_logging_config


def test_app_loggers_follow_level():
    config = get_logging_config("DEBUG")

    for name in APP_LOGGERS:
        assert config["loggers"][name]["level"] == "DEBUG"
    assert config["loggers"]["sqlalchemy"]["level"] == "WARNING"
    assert config["root"]["level"] == "DEBUG"


def test_unknown_format_falls_back_to_default():
    assert get_logging_config("INFO", "detailed")["handlers"]["console"]["formatter"] == "detailed"
    assert get_logging_config("INFO", "json")["handlers"]["console"]["formatter"] == "default"
