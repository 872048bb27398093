from dataclasses import replace

import pytest

from formcoach import ExerciseType, FeedbackKind, RepPhase, advance, create_state, get_exercise_settings
from formcoach.exercises import Thresholds
from formcoach.rep_logic import ANALYZERS

from poses import squat_pose, without

SQUAT = get_exercise_settings(ExerciseType.SQUAT)


def kinds(state):
    return [item.kind for item in state.feedback]


def run(state, poses, settings=SQUAT, start=1.0):
    for i, pose in enumerate(poses):
        state = advance(state, pose, now=start + i, settings=settings)
    return state


def test_full_rep_completes_the_set():
    settings = replace(SQUAT, target_reps=1)
    state = create_state(ExerciseType.SQUAT, now=0.0)

    state = advance(state, squat_pose(170), now=1.0, settings=settings)
    assert state.phase is RepPhase.STARTING

    state = advance(state, squat_pose(100), now=2.0, settings=settings)
    assert state.phase is RepPhase.DOWN

    state = advance(state, squat_pose(170), now=3.0, settings=settings)
    assert state.total_reps == 1
    assert state.correct_form_count == 1
    assert state.set_count == 1
    assert state.rep_count == 0
    assert state.phase is RepPhase.RESTING
    assert state.last_rep_timestamp == 3.0
    assert FeedbackKind.SET_COMPLETE in kinds(state)


def test_reps_accumulate_within_a_set():
    state = run(create_state(ExerciseType.SQUAT, now=0.0), [squat_pose(a) for a in (170, 100, 170, 100, 170)])
    assert state.rep_count == 2
    assert state.total_reps == 2
    assert state.phase is RepPhase.UP


def test_missing_landmark_freezes_counters():
    state = replace(create_state(ExerciseType.SQUAT, now=0.0), phase=RepPhase.UP, rep_count=3, total_reps=3)

    after = advance(state, without(squat_pose(100), "left_hip"), now=1.0)

    assert after.phase is RepPhase.UP
    assert (after.rep_count, after.set_count, after.total_reps) == (3, 0, 3)
    assert after.form_correct is False
    assert kinds(after) == [FeedbackKind.CANNOT_DETECT]


def test_single_bad_frame_does_not_flip_phase():
    state = replace(create_state(ExerciseType.SQUAT, now=0.0), phase=RepPhase.UP)
    leaning = squat_pose(170, lean=0.2)

    once = advance(state, leaning, now=1.0)
    assert once.phase is RepPhase.UP
    assert once.form_correct is True
    assert once.consecutive_errors["back_angle"] == 1

    twice = advance(once, leaning, now=2.0)
    assert twice.phase is RepPhase.INCORRECT_FORM
    assert twice.form_correct is False
    assert twice.form_issues["left_hip"] is True
    assert "back_angle" in [item.fault for item in twice.feedback]


def test_clean_frame_resets_the_fault_counter():
    state = replace(create_state(ExerciseType.SQUAT, now=0.0), phase=RepPhase.UP)
    leaning, upright = squat_pose(170, lean=0.2), squat_pose(170)

    state = run(state, [leaning, upright, leaning])
    assert state.phase is RepPhase.UP
    assert state.consecutive_errors["back_angle"] == 1


def test_recovers_once_form_is_fixed():
    state = replace(create_state(ExerciseType.SQUAT, now=0.0), phase=RepPhase.INCORRECT_FORM)
    state = advance(state, squat_pose(170), now=1.0)
    assert state.phase is RepPhase.UP
    assert FeedbackKind.RECOVERED in kinds(state)


def test_boundary_angle_starts_descent_and_still_counts_as_shallow():
    analyzer = ANALYZERS[ExerciseType.SQUAT]
    features = replace(analyzer.extract(squat_pose(170)), knee_angle=115.0)
    state = replace(create_state(ExerciseType.SQUAT, now=0.0), phase=RepPhase.UP)

    state = analyzer.evaluate(state, features, SQUAT, now=1.0)
    assert state.phase is RepPhase.DOWN

    # Held at the boundary, the depth fault surfaces after the debounce
    state = analyzer.evaluate(state, features, SQUAT, now=2.0)
    assert state.phase is RepPhase.DOWN
    state = analyzer.evaluate(state, features, SQUAT, now=3.0)
    assert state.phase is RepPhase.INCORRECT_FORM
    assert "depth" in [item.fault for item in state.feedback]


def test_just_above_boundary_stays_up():
    analyzer = ANALYZERS[ExerciseType.SQUAT]
    features = replace(analyzer.extract(squat_pose(170)), knee_angle=115.5)
    state = replace(create_state(ExerciseType.SQUAT, now=0.0), phase=RepPhase.UP)
    assert analyzer.evaluate(state, features, SQUAT, now=1.0).phase is RepPhase.UP


def test_rest_countdown():
    state = replace(
        create_state(ExerciseType.SQUAT, now=0.0),
        phase=RepPhase.RESTING,
        set_count=1,
        last_rep_timestamp=100.0,
    )

    resting = advance(state, squat_pose(170), now=109.5)
    assert resting.phase is RepPhase.RESTING
    assert resting.feedback[-1].kind is FeedbackKind.RESTING
    assert resting.feedback[-1].seconds_left == 1
    assert resting.form_feedback[-1] == "Rest: 1s remaining"

    done = advance(state, squat_pose(170), now=110.0)
    assert done.phase is RepPhase.STARTING
    assert done.form_feedback[-1] == "Starting set 2"


def test_workout_complete_clamps_set_count():
    settings = replace(SQUAT, target_reps=1, sets=1)
    state = replace(create_state(ExerciseType.SQUAT, now=0.0), phase=RepPhase.DOWN, set_count=1)

    state = advance(state, squat_pose(170), now=1.0, settings=settings)

    assert state.set_count == 1
    assert state.phase is RepPhase.RESTING
    assert FeedbackKind.WORKOUT_COMPLETE in kinds(state)


def test_baseline_is_captured_once():
    state = advance(create_state(ExerciseType.SQUAT, now=0.0), squat_pose(170), now=1.0)
    assert state.baseline_captured is True
    assert state.starting_hip_height == pytest.approx(0.5)

    # Back in STARTING after a rest, the stored baseline is kept
    state = advance(replace(state, phase=RepPhase.STARTING), squat_pose(170, hip_y=0.6), now=2.0)
    assert state.starting_hip_height == pytest.approx(0.5)


def test_previous_state_is_not_mutated():
    state = replace(create_state(ExerciseType.SQUAT, now=0.0), phase=RepPhase.UP)
    first = advance(state, squat_pose(170, lean=0.2), now=1.0)
    second = advance(first, squat_pose(170, lean=0.2), now=2.0)

    assert first.consecutive_errors["back_angle"] == 1
    assert first.phase is RepPhase.UP
    assert first.form_issues == {}
    assert second is not first


def test_counters_stay_consistent_over_a_workout():
    settings = replace(SQUAT, target_reps=2, sets=2, rest_between_sets=1)
    state = create_state(ExerciseType.SQUAT, now=0.0)
    angles = [170, 100, 170, 100, 170, 170, 170, 100, 170, 100, 170, 170, 170]
    previous_total = 0
    for i, angle in enumerate(angles):
        state = advance(state, squat_pose(angle), now=float(i), settings=settings)
        assert state.total_reps >= previous_total
        assert state.correct_form_count <= state.total_reps
        assert 0 <= state.set_count <= settings.sets
        assert state.rep_count < settings.target_reps
        previous_total = state.total_reps
    assert state.total_reps == 4
    assert state.set_count == 2


def test_mismatched_thresholds_fall_back_to_squat_defaults():
    settings = replace(SQUAT, target_reps=1, thresholds=Thresholds(up_angle=160.0, down_angle=105.0))
    state = run(create_state(ExerciseType.SQUAT, now=0.0), [squat_pose(a) for a in (170, 100, 170)], settings)
    assert state.total_reps == 1


@pytest.mark.parametrize(
    "fault, changes, landmark",
    [
        ("knee_valgus", {"left_knee_inset": 0.1}, "left_knee"),
        ("shoulders", {"shoulder_height_diff": 0.1}, "left_shoulder"),
        ("chest_forward", {"chest_forward_offset": 0.2}, "left_shoulder"),
    ],
)
def test_bottom_faults_surface_after_debounce(fault, changes, landmark):
    analyzer = ANALYZERS[ExerciseType.SQUAT]
    features = replace(analyzer.extract(squat_pose(100)), **changes)
    state = replace(create_state(ExerciseType.SQUAT, now=0.0), phase=RepPhase.DOWN)

    state = analyzer.evaluate(state, features, SQUAT, now=1.0)
    assert state.phase is RepPhase.DOWN
    assert state.consecutive_errors[fault] == 1

    state = analyzer.evaluate(state, features, SQUAT, now=2.0)
    assert state.phase is RepPhase.INCORRECT_FORM
    assert fault in [item.fault for item in state.feedback]
    assert state.form_issues[landmark] is True


def test_knee_inside_ankle_reads_as_inset():
    analyzer = ANALYZERS[ExerciseType.SQUAT]
    pose = squat_pose(170)
    assert analyzer.extract(pose).left_knee_inset < 0

    pose["left_knee"] = (0.5, 0.7)
    assert analyzer.extract(pose).left_knee_inset > 0


def test_clean_bottom_position_raises_nothing():
    state = replace(create_state(ExerciseType.SQUAT, now=0.0), phase=RepPhase.DOWN)
    state = run(state, [squat_pose(100)] * 3)
    assert state.phase is RepPhase.DOWN
    assert state.form_correct is True


def test_last_set_rests_before_workout_complete():
    settings = replace(SQUAT, target_reps=1, sets=1, rest_between_sets=1)
    state = replace(create_state(ExerciseType.SQUAT, now=0.0), phase=RepPhase.DOWN)

    state = advance(state, squat_pose(170), now=1.0, settings=settings)
    assert state.set_count == 1
    assert FeedbackKind.SET_COMPLETE in kinds(state)
    assert FeedbackKind.WORKOUT_COMPLETE not in kinds(state)

    state = advance(state, squat_pose(170), now=2.0, settings=settings)
    assert state.phase is RepPhase.STARTING
    assert state.form_feedback[-1] == "Starting set 1"

    state = run(state, [squat_pose(a) for a in (170, 100, 170)], settings, start=3.0)
    assert state.set_count == 1
    assert FeedbackKind.WORKOUT_COMPLETE in kinds(state)
