"""
Custom exception types for the planning pipeline.
Keep this focused and non-redundant; prefer built-ins where appropriate.
Request-level outcomes are reported as error codes, not raised.
"""


class TrajectoryPlanningError(RuntimeError):
    """Trajectory buffer construction/initialization failure."""

    def __init__(self, message: str):
        self.original_message = message
        super().__init__(f"Trajectory Planning Error: {message}")

    def __str__(self):
        return f"Trajectory Planning Error: {self.original_message}"


class PlannerConfigError(RuntimeError):
    """Invalid planner configuration (unknown initialization method, bad warm start data)."""

    def __init__(self, message: str):
        self.original_message = message
        super().__init__(f"Planner Config Error: {message}")

    def __str__(self):
        return f"Planner Config Error: {self.original_message}"


class PlanningSceneError(RuntimeError):
    """Scene/model lookup failure (unknown group or joint)."""

    def __init__(self, message: str):
        self.original_message = message
        super().__init__(f"Planning Scene Error: {message}")

    def __str__(self):
        return f"Planning Scene Error: {self.original_message}"
