"""
State carried from one onboarding step to the next
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional


@dataclass
class Tenant:
    tenant_id: str
    display_name: str
    domains: list = field(default_factory=list)


@dataclass
class Subscription:
    subscription_id: str
    display_name: str
    tenant_id: Optional[str] = None
    state: Optional[str] = None

    @property
    def scope(self) -> str:
        return f"/subscriptions/{self.subscription_id}"


@dataclass
class ApplicationIdentity:
    display_name: str
    app_id: str
    object_id: str
    sp_object_id: Optional[str] = None


@dataclass
class IssuedSecret:
    value: str
    expires_at: datetime
    is_new: bool


@dataclass
class StepTally:
    created: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, outcome: str):
        setattr(self, outcome, getattr(self, outcome) + 1)

    def summary(self) -> str:
        return f"{self.created} created, {self.skipped} already present, {self.failed} failed"


@dataclass
class RunContext:
    """Everything one onboarding run has learned so far"""

    config: dict
    ask: Callable[[str], str]
    credential: Any = None
    principal: Optional[str] = None
    tenant: Optional[Tenant] = None
    subscriptions: list = field(default_factory=list)
    tenant_subscriptions: list = field(default_factory=list)
    application: Optional[ApplicationIdentity] = None
    secret: Optional[IssuedSecret] = None
    custom_role: Any = None
    tallies: dict = field(default_factory=dict)

    def tally(self, step: str) -> StepTally:
        return self.tallies.setdefault(step, StepTally())

    def poll_settings(self, timeout_key: str) -> dict:
        return {
            "timeout": self.config[timeout_key],
            "initial_delay": self.config["POLL_INITIAL_DELAY"],
            "max_delay": self.config["POLL_MAX_DELAY"],
        }
