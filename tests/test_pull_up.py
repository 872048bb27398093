from dataclasses import replace

from formcoach import ExerciseType, FeedbackKind, RepPhase, advance, create_state, get_exercise_settings
from formcoach.rep_logic import ANALYZERS

from poses import pull_up_pose, without

PULL_UP = get_exercise_settings(ExerciseType.PULL_UP)
NO_CHIN = replace(PULL_UP, thresholds=replace(PULL_UP.thresholds, chin_above_wrist_required=False))


def test_rep_counts_on_return_to_hang():
    state = create_state(ExerciseType.PULL_UP, now=0.0)

    state = advance(state, pull_up_pose(170), now=1.0)
    assert state.phase is RepPhase.STARTING

    state = advance(state, pull_up_pose(60), now=2.0)
    assert state.phase is RepPhase.DOWN

    state = advance(state, pull_up_pose(170), now=3.0)
    assert state.phase is RepPhase.UP
    assert state.total_reps == 1
    assert state.correct_form_count == 1


def test_chin_below_hands_blocks_the_top_position():
    state = replace(create_state(ExerciseType.PULL_UP, now=0.0), phase=RepPhase.UP)

    state = advance(state, pull_up_pose(60, nose_offset=0.1), now=1.0)

    assert state.phase is RepPhase.INCORRECT_FORM
    assert state.form_correct is False
    assert state.total_reps == 0
    assert state.form_issues["nose"] is True
    assert state.form_issues["left_wrist"] is True
    assert state.feedback[0].fault == "chin"


def test_chin_gate_recovers_when_chin_clears():
    state = replace(create_state(ExerciseType.PULL_UP, now=0.0), phase=RepPhase.INCORRECT_FORM)
    state = advance(state, pull_up_pose(60), now=1.0)
    assert state.phase is RepPhase.DOWN
    assert FeedbackKind.RECOVERED in [item.kind for item in state.feedback]


def test_chin_gate_can_be_disabled():
    state = replace(create_state(ExerciseType.PULL_UP, now=0.0), phase=RepPhase.UP)
    state = advance(state, pull_up_pose(60, nose_offset=0.1), now=1.0, settings=NO_CHIN)
    assert state.phase is RepPhase.DOWN


def test_nose_is_required_only_for_the_chin_gate():
    pose = without(pull_up_pose(60), "nose")

    state = advance(create_state(ExerciseType.PULL_UP, now=0.0), pose, now=1.0)
    assert state.feedback[0].kind is FeedbackKind.CANNOT_DETECT

    state = advance(create_state(ExerciseType.PULL_UP, now=0.0), pose, now=1.0, settings=NO_CHIN)
    assert state.phase is RepPhase.DOWN


def test_one_arm_is_enough():
    arm = ("left",)
    state = create_state(ExerciseType.PULL_UP, now=0.0)
    for i, angle in enumerate((170, 60, 170)):
        state = advance(state, pull_up_pose(angle, sides=arm), now=float(i + 1))
    assert state.total_reps == 1


def test_chin_gate_applies_from_the_first_pull():
    state = create_state(ExerciseType.PULL_UP, now=0.0)
    state = advance(state, pull_up_pose(170, nose_offset=0.1), now=1.0)
    assert state.phase is RepPhase.STARTING

    state = advance(state, pull_up_pose(60, nose_offset=0.1), now=2.0)
    assert state.phase is RepPhase.INCORRECT_FORM
    assert state.consecutive_errors["chin"] == 1
    assert state.total_reps == 0


def test_chin_gate_honours_the_debounce():
    settings = replace(PULL_UP, thresholds=replace(PULL_UP.thresholds, error_debounce=2))
    state = replace(create_state(ExerciseType.PULL_UP, now=0.0), phase=RepPhase.UP)
    low_chin = pull_up_pose(60, nose_offset=0.1)

    state = advance(state, low_chin, now=1.0, settings=settings)
    assert state.phase is RepPhase.UP
    assert state.form_correct is True
    assert state.consecutive_errors["chin"] == 1

    state = advance(state, low_chin, now=2.0, settings=settings)
    assert state.phase is RepPhase.INCORRECT_FORM
    assert state.feedback[0].fault == "chin"


def test_chin_counter_resets_below_the_bar():
    settings = replace(PULL_UP, thresholds=replace(PULL_UP.thresholds, error_debounce=2))
    state = replace(create_state(ExerciseType.PULL_UP, now=0.0), phase=RepPhase.UP)

    state = advance(state, pull_up_pose(60, nose_offset=0.1), now=1.0, settings=settings)
    state = advance(state, pull_up_pose(170, nose_offset=0.1), now=2.0, settings=settings)
    assert state.consecutive_errors["chin"] == 0

    state = advance(state, pull_up_pose(60, nose_offset=0.1), now=3.0, settings=settings)
    assert state.phase is RepPhase.UP


def test_holding_a_low_chin_does_not_claim_recovery():
    state = replace(create_state(ExerciseType.PULL_UP, now=0.0), phase=RepPhase.INCORRECT_FORM)
    state = advance(state, pull_up_pose(60, nose_offset=0.1), now=1.0)

    kinds = [item.kind for item in state.feedback]
    assert state.phase is RepPhase.INCORRECT_FORM
    assert FeedbackKind.FORM_FAULT in kinds
    assert FeedbackKind.RECOVERED not in kinds


def test_pull_up_boundaries_are_strict():
    analyzer = ANALYZERS[ExerciseType.PULL_UP]
    features = analyzer.extract(pull_up_pose(60))
    up = replace(create_state(ExerciseType.PULL_UP, now=0.0), phase=RepPhase.UP)
    down = replace(create_state(ExerciseType.PULL_UP, now=0.0), phase=RepPhase.DOWN)

    assert analyzer.evaluate(up, replace(features, elbow_angle=95.0), PULL_UP, now=1.0).phase is RepPhase.UP
    assert analyzer.evaluate(up, replace(features, elbow_angle=94.5), PULL_UP, now=1.0).phase is RepPhase.DOWN

    assert analyzer.evaluate(down, replace(features, elbow_angle=100.0), PULL_UP, now=1.0).phase is RepPhase.DOWN
    counted = analyzer.evaluate(down, replace(features, elbow_angle=100.5), PULL_UP, now=1.0)
    assert counted.phase is RepPhase.UP
    assert counted.total_reps == 1
