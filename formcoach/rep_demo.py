# formcoach/rep_demo.py

import argparse
import logging
import time
from threading import Thread

import cv2
import mediapipe as mp
import pyttsx3

from .config import settings
from .dispatcher import advance
from .estimator import PoseEstimator
from .exercises import ExerciseType, get_exercise_settings, list_exercises
from .rep_logic import FeedbackKind, create_state

# MediaPipe drawing helpers
mp_drawing = mp.solutions.drawing_utils
mp_pose = mp.solutions.pose

WINDOW_NAME = "FormCoach"

# ---------- Exercise options ----------
EXERCISE_OPTIONS = {str(i): s.type for i, s in enumerate(list_exercises(), start=1)}

# Feedback worth saying out loud
SPOKEN_KINDS = (FeedbackKind.FORM_FAULT, FeedbackKind.SET_COMPLETE, FeedbackKind.WORKOUT_COMPLETE)


def choose_exercise():
    print("Select exercise to track:")
    for key, exercise in EXERCISE_OPTIONS.items():
        print(f"  {key}. {get_exercise_settings(exercise).name}")
    choice = input(f"Enter 1-{len(EXERCISE_OPTIONS)}: ").strip()
    exercise = EXERCISE_OPTIONS.get(choice, ExerciseType.SQUAT)
    print(f"\nYou selected: {get_exercise_settings(exercise).name}\n")
    return exercise


# ---------- TTS helper (per-message thread) ----------

def speak_message(text: str):
    """
    Create a fresh pyttsx3 engine for THIS message only.
    Runs in its own thread so the camera loop never blocks.
    """
    if not text:
        return
    try:
        engine = pyttsx3.init()
        engine.setProperty("rate", 165)
        engine.say(text)
        engine.runAndWait()
        engine.stop()
    except Exception as e:
        print("TTS error:", e)


GOOD_SPEC = mp_drawing.DrawingSpec(color=(0, 255, 0), thickness=2, circle_radius=2)
FAULT_SPEC = mp_drawing.DrawingSpec(color=(0, 0, 255), thickness=3, circle_radius=5)


def landmark_colors(form_issues):
    """Red for faulted landmarks, green for the rest."""
    faulted = {name.upper() for name, bad in form_issues.items() if bad}
    return {
        lm.value: FAULT_SPEC if lm.name in faulted else GOOD_SPEC
        for lm in mp_pose.PoseLandmark
    }


def draw_overlay(frame, state, exercise_name):
    cv2.putText(frame, f"Exercise: {exercise_name}", (20, 30),
                cv2.FONT_HERSHEY_SIMPLEX, 0.7, (200, 255, 200), 2)
    cv2.putText(frame, f"Reps: {state.rep_count}  Sets: {state.set_count}", (20, 60),
                cv2.FONT_HERSHEY_SIMPLEX, 0.9, (0, 255, 0), 2)
    cv2.putText(frame, f"Phase: {state.phase.value}", (20, 90),
                cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 255), 2)

    color = (0, 200, 0) if state.form_correct else (0, 0, 255)
    y = frame.shape[0] - 30
    for message in reversed(state.form_feedback[-3:]):
        cv2.putText(frame, message, (20, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2)
        y -= 30


def main(argv=None):
    parser = argparse.ArgumentParser(description="Live rep counting and form feedback")
    parser.add_argument("--exercise", choices=[s.type.value for s in list_exercises()])
    parser.add_argument("--camera", type=int, default=settings.CAMERA_INDEX)
    parser.add_argument("--mute", action="store_true", help="disable spoken feedback")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    # 1) Choose exercise
    current_exercise = ExerciseType.parse(args.exercise) if args.exercise else choose_exercise()
    exercise_name = get_exercise_settings(current_exercise).name
    speak = settings.SPEAK_FEEDBACK and not args.mute

    # 2) Start camera
    cap = cv2.VideoCapture(args.camera)
    if not cap.isOpened():
        print("Error: Could not open camera.")
        return

    # 3) Init pose estimator & exercise state
    pose_estimator = PoseEstimator(min_visibility=settings.MIN_VISIBILITY)
    state = None

    # 4) Countdown before tracking
    countdown_seconds = settings.COUNTDOWN_SECONDS
    countdown_start = time.time()
    print(f"Get into position... starting in {countdown_seconds} seconds.")

    last_spoken = ""
    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                break

            display_frame = frame.copy()

            # ---------- PHASE 1: Countdown ----------
            if state is None:
                remaining = countdown_seconds - int(time.time() - countdown_start)
                if remaining > 0:
                    cv2.putText(display_frame, f"Get ready: {remaining}", (60, 100),
                                cv2.FONT_HERSHEY_SIMPLEX, 1.2, (0, 255, 255), 3)
                else:
                    state = create_state(current_exercise)
                    print("Go! Tracking reps now.")

                cv2.imshow(WINDOW_NAME, display_frame)
                if cv2.waitKey(1) & 0xFF == ord('q'):
                    break
                continue

            # ---------- PHASE 2: Pose + rep tracking ----------
            pose, landmarks = pose_estimator.process(frame)
            previous_total = state.total_reps
            state = advance(state, pose)

            if landmarks:
                mp_drawing.draw_landmarks(
                    display_frame,
                    landmarks,
                    mp_pose.POSE_CONNECTIONS,
                    landmark_drawing_spec=landmark_colors(state.form_issues),
                    connection_drawing_spec=mp_drawing.DrawingSpec(color=(255, 0, 0), thickness=2),
                )

            draw_overlay(display_frame, state, exercise_name)

            if state.total_reps != previous_total:
                print(f"=== REP COMPLETED (set {state.set_count}, rep {state.rep_count}, "
                      f"total {state.total_reps}, good form {state.correct_form_count}) ===")

            # Speak each new message once, in a separate short-lived thread
            for item in state.feedback:
                if speak and item.kind in SPOKEN_KINDS and item.message != last_spoken:
                    last_spoken = item.message
                    Thread(target=speak_message, args=(item.message,), daemon=True).start()

            cv2.imshow(WINDOW_NAME, display_frame)
            if cv2.waitKey(1) & 0xFF == ord('q'):
                break
    finally:
        cap.release()
        pose_estimator.close()
        cv2.destroyAllWindows()

    if state is not None:
        print(f"Session over: {state.total_reps} reps, {state.correct_form_count} with good form.")


if __name__ == "__main__":
    main()
