"""
Spotto custom role definition and its per-subscription assignments
"""

from azure.mgmt.authorization import AuthorizationManagementClient
from azure.mgmt.authorization.models import Permission, RoleDefinition
import copy
from uuid import uuid4

from onboarding.constants import CUSTOM_ROLE_ACTIONS, CUSTOM_ROLE_DESCRIPTION, CUSTOM_ROLE_NAME
from onboarding.create.create_iam import assign_iam_role_async, find_role_definition
from onboarding.idempotent import ensure, wait_until_visible


def build_role_definition(scope: str) -> RoleDefinition:
    return RoleDefinition(
        role_name=CUSTOM_ROLE_NAME,
        description=CUSTOM_ROLE_DESCRIPTION,
        role_type="CustomRole",
        permissions=[Permission(actions=list(CUSTOM_ROLE_ACTIONS), not_actions=[])],
        assignable_scopes=[scope],
    )


def has_assignable_scope(role_definition, scope: str) -> bool:
    return any(
        existing.rstrip("/").lower() == scope.rstrip("/").lower()
        for existing in role_definition.assignable_scopes or []
    )


def find_custom_role(auth_client, scopes: list):
    """
    Look for the custom role from each of the given scopes. A role definition is
    only listed at scopes it is assignable to, so each subscription has to be tried.
    """
    for scope in scopes:
        role_definition = find_role_definition(auth_client, CUSTOM_ROLE_NAME, scope)
        if role_definition is not None:
            return role_definition
    return None


async def ensure_custom_role_definition(ctx, auth_client, subscription):
    """
    Return the custom role definition, creating it or extending its assignable
    scopes so that it can be assigned on subscription
    """
    scope = subscription.scope

    def find():
        if ctx.custom_role is not None:
            return ctx.custom_role
        # Selected subscriptions first, then the rest of the tenant
        scopes = [s.scope for s in ctx.subscriptions]
        scopes += [s.scope for s in ctx.tenant_subscriptions if s.scope not in scopes]
        return find_custom_role(auth_client, scopes)

    def create():
        return auth_client.role_definitions.create_or_update(scope, str(uuid4()), build_role_definition(scope))

    role_definition, created = await ensure(f"custom role '{CUSTOM_ROLE_NAME}'", find=find, create=create)

    if created:
        await wait_until_visible(
            f"custom role '{CUSTOM_ROLE_NAME}'",
            lambda: find_role_definition(auth_client, CUSTOM_ROLE_NAME, scope),
            **ctx.poll_settings("ROLE_CREATE_SETTLE_TIMEOUT"),
        )
        return role_definition

    if has_assignable_scope(role_definition, scope):
        print(f"   Custom role is already assignable on {subscription.display_name}")
        return role_definition

    print(f"   Adding {scope} to the custom role's assignable scopes...")
    # Work on a copy so a rejected update leaves the cached definition untouched
    extended = copy.deepcopy(role_definition)
    extended.assignable_scopes = list(role_definition.assignable_scopes or []) + [scope]
    updated = auth_client.role_definitions.create_or_update(scope, role_definition.name, extended)
    await wait_until_visible(
        f"assignable scope {scope}",
        lambda: has_assignable_scope(auth_client.role_definitions.get(scope, role_definition.name), scope),
        **ctx.poll_settings("ROLE_UPDATE_SETTLE_TIMEOUT"),
    )
    return updated


async def assign_custom_roles(ctx):
    """Make the custom role assignable on, and assign it to, every selected subscription"""
    tally = ctx.tally(CUSTOM_ROLE_NAME)
    sp_obj_id = ctx.application.sp_object_id

    for subscription in ctx.subscriptions:
        print(f"\n   Subscription: {subscription.display_name} ({subscription.subscription_id})")
        try:
            auth_client = AuthorizationManagementClient(ctx.credential, subscription.subscription_id)
            ctx.custom_role = await ensure_custom_role_definition(ctx, auth_client, subscription)
            tally.record(await assign_iam_role_async(
                auth_client, sp_obj_id, CUSTOM_ROLE_NAME, subscription.scope, role_definition=ctx.custom_role,
            ))
        except Exception as e:
            tally.record("failed")
            print(f"   Failed to set up '{CUSTOM_ROLE_NAME}' on {subscription.display_name}: {str(e)}")
            print(f"   Error type: {type(e).__name__}")
            print("   Skipping this subscription. Creating custom roles requires Owner or "
                  "User Access Administrator on the subscription")

    print(f"\n   {CUSTOM_ROLE_NAME}: {tally.summary()}")
    return tally
