"""
Exceptions raised by the onboarding steps
"""


class OnboardingError(Exception):
    """Base class for onboarding failures"""


class SelectionError(OnboardingError, ValueError):
    """The operator entered a tenant or subscription selection that cannot be used"""


class FatalStepError(OnboardingError):
    """A step whose output later steps depend on could not complete"""

    def __init__(self, step: str, reason: str):
        super().__init__(f"{step} failed: {reason}")
        self.step = step
        self.reason = reason
