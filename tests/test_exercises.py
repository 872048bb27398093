import dataclasses

import pytest

from formcoach.exercises import (
    ExerciseType,
    PullUpThresholds,
    SquatThresholds,
    get_exercise_settings,
    list_exercises,
)


def test_parse_known_and_unknown_identifiers():
    assert ExerciseType.parse("squat") is ExerciseType.SQUAT
    assert ExerciseType.parse(ExerciseType.PULL_UP) is ExerciseType.PULL_UP
    assert ExerciseType.parse("deadlift") is ExerciseType.NONE
    assert ExerciseType.parse(None) is ExerciseType.NONE


def test_catalog_lists_every_trackable_exercise():
    types = [s.type for s in list_exercises()]
    assert types == [
        ExerciseType.SQUAT,
        ExerciseType.BICEP_CURL,
        ExerciseType.PUSH_UP,
        ExerciseType.PULL_UP,
        ExerciseType.FORWARD_LUNGE,
    ]


@pytest.mark.parametrize("settings", list_exercises(), ids=lambda s: s.type.value)
def test_catalog_entries_are_usable(settings):
    assert settings.target_reps > 0
    assert settings.sets > 0
    assert settings.rest_between_sets >= 0
    assert settings.form_instructions
    assert settings.primary_landmarks
    assert settings.thresholds.error_debounce >= 1


def test_unknown_exercise_resolves_to_sentinel_settings():
    settings = get_exercise_settings("deadlift")
    assert settings.type is ExerciseType.NONE
    assert settings.target_reps == 0


def test_squat_defaults():
    th = get_exercise_settings(ExerciseType.SQUAT).thresholds
    assert isinstance(th, SquatThresholds)
    assert (th.up_angle, th.down_angle) == (160.0, 105.0)
    assert th.error_debounce == 2


def test_pull_up_requires_chin_by_default():
    th = get_exercise_settings("pull_up").thresholds
    assert isinstance(th, PullUpThresholds)
    assert th.chin_above_wrist_required is True


def test_settings_are_immutable():
    settings = get_exercise_settings(ExerciseType.SQUAT)
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.target_reps = 1
