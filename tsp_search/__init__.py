"""
Simulated annealing and harmony search for the TSP, run incrementally with
pause/resume/stop control and a bounded convergence trace.
"""

__all__ = [
    "convergence",
    "data",
    "distance",
    "messages",
    "orchestrator",
    "results",
    "settings",
    "solvers",
]
