import copy
import re
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

from onboarding.config import DEFAULT_CONFIG
from onboarding.constants import GRAPH_APP_ID, GRAPH_PERMISSION
from onboarding.context import ApplicationIdentity, RunContext, Subscription, Tenant
from onboarding.create import create_custom_role, create_iam

GRAPH_SP_ID = "9b8e0c1e-5f0e-4a39-9a52-3f5b6bd0a001"
APPLICATION_READ_ALL_ID = UUID("9a5d68dd-52b0-4cc2-bd40-abcf44ac3a30")

BUILT_IN_ROLES = {
    "Reader": "acdd72a7-3385-48ef-bd42-f606fba81ae7",
    "Reservations Reader": "582fc458-8989-419f-a480-75249bc5db7e",
    "Savings plan Reader": "2e8baf4c-6b1a-4e37-8d1a-1a1e1f0c2b9d",
}


def _filter_value(odata_filter):
    return re.search(r"eq '([^']*)'", odata_filter).group(1)


def _definition_id(scope, guid):
    prefix = scope.rstrip("/") if scope.startswith("/subscriptions/") else ""
    return f"{prefix}/providers/Microsoft.Authorization/roleDefinitions/{guid}"


class FakeAuthorizationState:
    def __init__(self):
        self.custom_roles = []
        self.assignments = []
        self.failing_scopes = set()
        self.rejected_definition_scopes = set()
        self.definition_writes = 0


class FakeRoleDefinitions:
    def __init__(self, state):
        self.state = state

    def list(self, scope, filter=None):
        name = _filter_value(filter).lower()
        results = []
        for role_name, guid in BUILT_IN_ROLES.items():
            if role_name.lower() == name:
                results.append(SimpleNamespace(id=_definition_id(scope, guid), name=guid,
                                               role_name=role_name, role_type="BuiltInRole",
                                               assignable_scopes=["/"]))
        for role in self.state.custom_roles:
            if role.role_name.lower() == name and scope in role.assignable_scopes:
                results.append(copy.deepcopy(role))
        return iter(results)

    def get(self, scope, role_definition_id):
        for role in self.state.custom_roles:
            if role.name == role_definition_id:
                return copy.deepcopy(role)
        raise LookupError(role_definition_id)

    def create_or_update(self, scope, role_definition_id, role_definition):
        if self.state.rejected_definition_scopes.intersection(role_definition.assignable_scopes or []):
            raise RuntimeError("AuthorizationFailed: cannot write role definition")
        self.state.definition_writes += 1
        for role in self.state.custom_roles:
            if role.name == role_definition_id:
                role.assignable_scopes = list(role_definition.assignable_scopes)
                return copy.deepcopy(role)
        role = SimpleNamespace(
            id=_definition_id(scope, role_definition_id),
            name=role_definition_id,
            role_name=role_definition.role_name,
            role_type=role_definition.role_type,
            actions=list(role_definition.permissions[0].actions),
            assignable_scopes=list(role_definition.assignable_scopes),
        )
        self.state.custom_roles.append(role)
        return copy.deepcopy(role)


class FakeRoleAssignments:
    def __init__(self, state):
        self.state = state

    def list_for_scope(self, scope, filter=None):
        principal_id = _filter_value(filter)
        return iter([a for a in self.state.assignments if a.principal_id == principal_id])

    def create(self, scope, role_assignment_name, parameters):
        if scope in self.state.failing_scopes:
            raise RuntimeError(f"AuthorizationFailed at {scope}")
        assignment = SimpleNamespace(
            id=f"{scope}/providers/Microsoft.Authorization/roleAssignments/{role_assignment_name}",
            principal_id=parameters.principal_id,
            role_definition_id=parameters.role_definition_id,
            scope=scope,
        )
        self.state.assignments.append(assignment)
        return assignment


class FakeAuthorizationClient:
    def __init__(self, state):
        self.role_definitions = FakeRoleDefinitions(state)
        self.role_assignments = FakeRoleAssignments(state)


class FakeGraphState:
    def __init__(self):
        self.applications = []
        self.service_principals = [SimpleNamespace(
            id=GRAPH_SP_ID,
            app_id=GRAPH_APP_ID,
            display_name="Microsoft Graph",
            app_roles=[
                SimpleNamespace(value="User.Read.All", id=uuid4(), is_enabled=True,
                                allowed_member_types=["Application"]),
                SimpleNamespace(value=GRAPH_PERMISSION, id=APPLICATION_READ_ALL_ID, is_enabled=True,
                                allowed_member_types=["Application"]),
            ],
        )]
        self.app_role_assignments = []
        self.created = {"applications": 0, "service_principals": 0, "secrets": 0, "grants": 0}

    def add_application(self, display_name, secret_end_dates=()):
        app = SimpleNamespace(id=str(uuid4()), app_id=str(uuid4()), display_name=display_name,
                              password_credentials=[])
        for end_date in secret_end_dates:
            app.password_credentials.append(SimpleNamespace(key_id=uuid4(), end_date_time=end_date))
        self.applications.append(app)
        return app

    def add_service_principal(self, app):
        sp = SimpleNamespace(id=str(uuid4()), app_id=app.app_id, display_name=app.display_name, app_roles=[])
        self.service_principals.append(sp)
        return sp


class _AddPassword:
    def __init__(self, state, app):
        self.state, self.app = state, app

    async def post(self, body):
        self.state.created["secrets"] += 1
        credential = SimpleNamespace(
            key_id=uuid4(),
            secret_text=f"secret-{len(self.app.password_credentials) + 1}",
            display_name=body.password_credential.display_name,
            end_date_time=body.password_credential.end_date_time,
        )
        self.app.password_credentials.append(credential)
        return credential


class _ApplicationItem:
    def __init__(self, state, object_id):
        self.state, self.object_id = state, object_id

    def _app(self):
        for app in self.state.applications:
            if app.id == self.object_id:
                return app
        raise LookupError(self.object_id)

    async def get(self):
        return self._app()

    @property
    def add_password(self):
        return _AddPassword(self.state, self._app())


class _Applications:
    def __init__(self, state):
        self.state = state

    async def get(self, request_configuration=None):
        return SimpleNamespace(value=list(self.state.applications))

    async def post(self, application):
        self.state.created["applications"] += 1
        return self.state.add_application(application.display_name)

    def by_application_id(self, object_id):
        return _ApplicationItem(self.state, object_id)


class _AppRoleAssignments:
    def __init__(self, state, sp_id):
        self.state, self.sp_id = state, sp_id

    async def get(self):
        return SimpleNamespace(value=[a for a in self.state.app_role_assignments
                                      if str(a.principal_id) == self.sp_id])

    async def post(self, assignment):
        self.state.created["grants"] += 1
        self.state.app_role_assignments.append(assignment)
        return assignment


class _ServicePrincipalItem:
    def __init__(self, state, sp_id):
        self.state, self.sp_id = state, sp_id
        self.app_role_assignments = _AppRoleAssignments(state, sp_id)

    async def get(self):
        for sp in self.state.service_principals:
            if sp.id == self.sp_id:
                return sp
        raise LookupError(self.sp_id)


class _ServicePrincipals:
    def __init__(self, state):
        self.state = state

    async def get(self, request_configuration=None):
        return SimpleNamespace(value=list(self.state.service_principals))

    async def post(self, service_principal):
        self.state.created["service_principals"] += 1
        app = next(a for a in self.state.applications if a.app_id == service_principal.app_id)
        return self.state.add_service_principal(app)

    def by_service_principal_id(self, sp_id):
        return _ServicePrincipalItem(self.state, sp_id)


class FakeGraphClient:
    def __init__(self, state=None):
        self.state = state or FakeGraphState()
        self.applications = _Applications(self.state)
        self.service_principals = _ServicePrincipals(self.state)


class ScriptedAnswers:
    """Stands in for the operator, answering prompts in order"""

    def __init__(self, answers):
        self.answers = list(answers)
        self.prompts = []

    def __call__(self, message):
        self.prompts.append(message)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {message}")
        return self.answers.pop(0)


def make_subscriptions(count, tenant_id="tenant-1"):
    return [
        Subscription(subscription_id=f"0000000{n}-aaaa-bbbb-cccc-000000000000",
                     display_name=f"Subscription {n}", tenant_id=tenant_id)
        for n in range(1, count + 1)
    ]


def in_months(months):
    return datetime.now(timezone.utc) + timedelta(days=30 * months)


@pytest.fixture
def test_config():
    config = dict(DEFAULT_CONFIG)
    config.update({
        "SP_SETTLE_TIMEOUT": 0,
        "ROLE_CREATE_SETTLE_TIMEOUT": 0,
        "ROLE_UPDATE_SETTLE_TIMEOUT": 0,
        "POLL_INITIAL_DELAY": 0,
        "POLL_MAX_DELAY": 0,
    })
    return config


@pytest.fixture
def graph_state():
    return FakeGraphState()


@pytest.fixture
def graph_client(graph_state):
    return FakeGraphClient(graph_state)


@pytest.fixture
def auth_state(monkeypatch):
    state = FakeAuthorizationState()
    factory = lambda credential, subscription_id: FakeAuthorizationClient(state)
    monkeypatch.setattr(create_iam, "AuthorizationManagementClient", factory)
    monkeypatch.setattr(create_custom_role, "AuthorizationManagementClient", factory)
    return state


@pytest.fixture
def make_ctx(test_config):
    def build(subscription_count=1, answers=()):
        ctx = RunContext(config=test_config, ask=ScriptedAnswers(answers))
        ctx.credential = object()
        ctx.tenant = Tenant(tenant_id="tenant-1", display_name="Contoso")
        ctx.subscriptions = make_subscriptions(subscription_count)
        ctx.application = ApplicationIdentity(display_name="Spotto AI", app_id="app-1", object_id="obj-1",
                                              sp_object_id=str(uuid4()))
        return ctx
    return build


@pytest.fixture
def fake_graph_session(graph_client):
    @asynccontextmanager
    async def session(credential):
        yield graph_client
    return session
