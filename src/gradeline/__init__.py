"""
gradeline - LLM evaluation harness.

Keep datasets and graders, grade every test case with every grader,
compare the results.
"""

from gradeline.experiment import ExperimentRun, run_experiment
from gradeline.grading import GradingPolicy
from gradeline.reconcile import merge_results
from gradeline.store import EvalStore
from gradeline.verdict import parse_verdict

__version__ = "0.1.0"
__all__ = [
    "EvalStore",
    "ExperimentRun",
    "GradingPolicy",
    "__version__",
    "merge_results",
    "parse_verdict",
    "run_experiment",
]
