import pytest
from pydantic import ValidationError

from periodgrid.core.config import Settings
from periodgrid.schemas.generator import FillerActivity, GenerationSettings


def test_settings_parse_comma_separated_env(monkeypatch):
    monkeypatch.setenv("WORKING_DAYS", "Monday, Tuesday,Wednesday")
    monkeypatch.setenv("LAB_BLOCKS", "1-2-3,4-5-6")
    monkeypatch.setenv("RANDOM_SEED", "42")

    settings = Settings(_env_file=None)

    assert settings.working_days == ["Monday", "Tuesday", "Wednesday"]
    assert settings.lab_blocks == [[1, 2, 3], [4, 5, 6]]
    assert settings.random_seed == 42


def test_settings_parse_json_lists(monkeypatch):
    monkeypatch.setenv("WORKING_DAYS", '["Mon", "Fri"]')
    monkeypatch.setenv("LAB_BLOCKS", "[[2, 3, 4]]")

    settings = Settings(_env_file=None)

    assert settings.working_days == ["Mon", "Fri"]
    assert settings.lab_blocks == [[2, 3, 4]]


def test_generation_settings_from_settings():
    settings = Settings(
        _env_file=None,
        working_days=["Mon", "Tue", "Wed"],
        periods_per_day=6,
        lab_blocks=[[1, 2, 3], [4, 5, 6]],
        generation_workers=0,
        random_seed=9,
    )

    generation = GenerationSettings.from_settings(settings, scoring="placement")

    assert generation.working_days == ("Monday", "Tuesday", "Wednesday")
    assert generation.lab_blocks == ((1, 2, 3), (4, 5, 6))
    assert generation.workers == 1
    assert generation.random_seed == 9
    assert generation.scoring == "placement"


@pytest.mark.parametrize(
    "overrides",
    [
        {"working_days": ("Funday",)},
        {"working_days": ("Monday", "Mon")},
        {"working_days": ()},
        {"lab_blocks": ((2, 3),)},
        {"lab_blocks": ((2, 4, 5),)},
        {"lab_blocks": ((6, 7, 8),)},
        {"filler_activities": ()},
        {"filler_activities": (FillerActivity(name="Library"),)},
    ],
)
def test_generation_settings_rejects_invalid_layouts(overrides):
    with pytest.raises(ValidationError):
        GenerationSettings(**overrides)
