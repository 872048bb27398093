# formcoach/analyzers/__init__.py
# Importing the modules registers each analyzer with rep_logic.ANALYZERS.

from .bicep_curl import BicepCurlAnalyzer
from .forward_lunge import ForwardLungeAnalyzer
from .pull_up import PullUpAnalyzer
from .push_up import PushUpAnalyzer
from .squat import SquatAnalyzer

__all__ = [
    "BicepCurlAnalyzer",
    "ForwardLungeAnalyzer",
    "PullUpAnalyzer",
    "PushUpAnalyzer",
    "SquatAnalyzer",
]
