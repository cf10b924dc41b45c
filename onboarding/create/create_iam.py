"""
Azure IAM role assignment using Azure SDK
"""

from azure.mgmt.authorization import AuthorizationManagementClient
from azure.mgmt.authorization.models import RoleAssignmentCreateParameters
from uuid import uuid4

from onboarding.constants import (
    READER_ROLE,
    RESERVATIONS_READER_ROLE,
    RESERVATIONS_SCOPE,
    SAVINGS_PLAN_READER_ROLE,
    SAVINGS_PLAN_SCOPE,
)
from onboarding.idempotent import ensure

TENANT_ROLES = [
    (RESERVATIONS_READER_ROLE, RESERVATIONS_SCOPE),
    (SAVINGS_PLAN_READER_ROLE, SAVINGS_PLAN_SCOPE),
]


def _definition_guid(role_definition_id: str) -> str:
    # The same role shows up under different scope prefixes
    return role_definition_id.rstrip("/").split("/")[-1].lower()


def _same_scope(left: str, right: str) -> bool:
    return left.rstrip("/").lower() == right.rstrip("/").lower()


def find_role_definition(auth_client, role: str, scope: str):
    role_definitions = list(auth_client.role_definitions.list(scope, filter=f"roleName eq '{role}'"))
    for role_definition in role_definitions:
        if role_definition.role_name.lower() == role.lower():
            return role_definition
    return None


def find_role_assignment(auth_client, principal_id: str, role_definition_id: str, scope: str):
    """Return the assignment of role_definition_id to principal_id made directly at scope, or None"""
    assignments = auth_client.role_assignments.list_for_scope(scope, filter=f"principalId eq '{principal_id}'")
    for assignment in assignments:
        if (assignment.principal_id == principal_id and
                _definition_guid(assignment.role_definition_id) == _definition_guid(role_definition_id) and
                _same_scope(assignment.scope, scope)):
            print(f"   Assignment ID: {assignment.id}")
            return assignment
    return None


async def assign_iam_role_async(auth_client, sp_obj_id: str, role: str, scope: str, role_definition=None) -> str:
    """
    Assign an IAM role to the service principal
    Returns "created" or "skipped" when the assignment was already there
    """

    try:
        print(f"   Role: {role}")
        print(f"   Scope: {scope}")

        if role_definition is None:
            print(f"   Looking up role definition for '{role}'...")
            role_definition = find_role_definition(auth_client, role, scope)
            if role_definition is None:
                raise LookupError(f"Role '{role}' not found in scope '{scope}'")
        role_definition_id = role_definition.id

        def create():
            role_assignment_params = RoleAssignmentCreateParameters(
                role_definition_id=role_definition_id,
                principal_id=sp_obj_id,
                principal_type="ServicePrincipal"
            )
            role_assignment = auth_client.role_assignments.create(scope, str(uuid4()), role_assignment_params)
            print(f"   Assignment ID: {role_assignment.id}")
            return role_assignment

        _, created = await ensure(
            f"'{role}' assignment",
            find=lambda: find_role_assignment(auth_client, sp_obj_id, role_definition_id, scope),
            create=create,
        )
        return "created" if created else "skipped"

    except Exception as e:
        print(f"   Failed to assign IAM role: {str(e)}")
        print(f"   Error type: {type(e).__name__}")
        raise


async def assign_reader_roles(ctx):
    """Assign Reader on every selected subscription; one failure does not stop the rest"""
    tally = ctx.tally(READER_ROLE)
    sp_obj_id = ctx.application.sp_object_id

    for subscription in ctx.subscriptions:
        print(f"\n   Subscription: {subscription.display_name} ({subscription.subscription_id})")
        try:
            auth_client = AuthorizationManagementClient(ctx.credential, subscription.subscription_id)
            tally.record(await assign_iam_role_async(auth_client, sp_obj_id, READER_ROLE, subscription.scope))
        except Exception:
            tally.record("failed")
            print(f"   Skipping {subscription.display_name}. Assign '{READER_ROLE}' to '{ctx.application.display_name}' "
                  f"on this subscription manually (Access control (IAM) > Add role assignment)")

    print(f"\n   {READER_ROLE}: {tally.summary()}")
    return tally


async def assign_tenant_roles(ctx):
    """Assign the reservation and savings plan readers at their provider roots"""
    tally = ctx.tally("Billing readers")
    sp_obj_id = ctx.application.sp_object_id

    for role, scope in TENANT_ROLES:
        print()
        try:
            auth_client = AuthorizationManagementClient(ctx.credential, ctx.subscriptions[0].subscription_id)
            tally.record(await assign_iam_role_async(auth_client, sp_obj_id, role, scope))
        except Exception:
            tally.record("failed")
            print(f"   Skipping '{role}'. It needs elevated access at '{scope}'; a Global Administrator "
                  f"with elevated access can assign it to '{ctx.application.display_name}' manually")

    print(f"\n   Billing readers: {tally.summary()}")
    return tally
