from datetime import timedelta

import config
from utils.fsrs import parameters_from_config


def test_load_config_copies_example_on_first_run(flashdeck_home):
    cfg = config.load_config()

    assert (flashdeck_home / "config.toml").exists()
    assert cfg["scheduler"]["request_retention"] == 0.9
    assert cfg["scheduler"]["maximum_interval"] == 36500
    assert cfg["review"] == {"review_count": 20, "new_card_limit": 10}
    assert cfg["backup"] == {"keep": 7, "daily": True}
    assert cfg["logging"]["level"] == "INFO"


def test_scheduler_section_builds_parameters(flashdeck_home):
    params = parameters_from_config(config.load_config()["scheduler"])
    assert params.learning_steps == (timedelta(minutes=1), timedelta(minutes=10))
    assert params.relearning_steps == (timedelta(minutes=10),)


def test_environment_overrides_file_values(flashdeck_home, monkeypatch):
    (flashdeck_home / "config.toml").write_text(
        "\n".join(
            [
                "[review]",
                "review_count = 40",
                "new_card_limit = 4",
                "",
                "[backup]",
                "daily = false",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("FLASHDECK_REVIEW_COUNT", "5")
    monkeypatch.setenv("FLASHDECK_REQUEST_RETENTION", "0.85")
    monkeypatch.setenv("FLASHDECK_LOG_LEVEL", "debug")

    cfg = config.load_config()

    assert cfg["review"] == {"review_count": 5, "new_card_limit": 4}
    assert cfg["scheduler"]["request_retention"] == 0.85
    assert cfg["backup"]["daily"] is False
    assert cfg["logging"]["level"] == "DEBUG"


def test_get_config_value(flashdeck_home):
    assert config.get_config_value("review", "new_card_limit") == 10
    assert config.get_config_value("missing", "key", "fallback") == "fallback"
