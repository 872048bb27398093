# formcoach/backend/models.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from ..exercises import ExerciseSettings
from ..rep_logic import ExerciseState


class LandmarkPoint(BaseModel):
    x: float
    y: float


class ExerciseInfo(BaseModel):
    exercise: str
    name: str
    target_reps: int
    sets: int
    rest_between_sets: float
    form_instructions: List[str] = Field(default_factory=list)
    muscles_targeted: List[str] = Field(default_factory=list)
    primary_landmarks: List[str] = Field(default_factory=list)

    @classmethod
    def from_settings(cls, s: ExerciseSettings) -> "ExerciseInfo":
        return cls(
            exercise=s.type.value,
            name=s.name,
            target_reps=s.target_reps,
            sets=s.sets,
            rest_between_sets=s.rest_between_sets,
            form_instructions=list(s.form_instructions),
            muscles_targeted=list(s.muscles_targeted),
            primary_landmarks=list(s.primary_landmarks),
        )


class SessionCreate(BaseModel):
    exercise: str  # e.g. "squat"


class FrameIn(BaseModel):
    # None when the pose model found nobody in the frame
    landmarks: Optional[Dict[str, LandmarkPoint]] = None
    timestamp: Optional[float] = None  # seconds; server time when omitted

    def to_pose(self):
        if self.landmarks is None:
            return None
        return {name: (p.x, p.y) for name, p in self.landmarks.items()}


class FeedbackItem(BaseModel):
    kind: str
    message: str
    fault: Optional[str] = None
    seconds_left: Optional[int] = None


class StateResponse(BaseModel):
    session_id: str
    exercise: str
    rep_count: int
    set_count: int
    phase: str
    form_correct: bool
    form_feedback: List[str]
    feedback: List[FeedbackItem]
    form_issues: Dict[str, bool]
    total_reps: int
    correct_form_count: int

    @classmethod
    def from_state(cls, session_id: str, state: ExerciseState) -> "StateResponse":
        return cls(
            session_id=session_id,
            exercise=state.exercise.value,
            rep_count=state.rep_count,
            set_count=state.set_count,
            phase=state.phase.value,
            form_correct=state.form_correct,
            form_feedback=state.form_feedback,
            feedback=[
                FeedbackItem(kind=f.kind.value, message=f.message, fault=f.fault, seconds_left=f.seconds_left)
                for f in state.feedback
            ],
            form_issues=dict(state.form_issues),
            total_reps=state.total_reps,
            correct_form_count=state.correct_form_count,
        )
