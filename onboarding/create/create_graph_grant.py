"""
Microsoft Graph application permission grant using Microsoft Graph SDK
"""

from uuid import UUID

from msgraph.generated.models.app_role_assignment import AppRoleAssignment

from onboarding.constants import GRAPH_APP_ID, GRAPH_PERMISSION
from onboarding.create.create_service_principal import find_service_principal
from onboarding.idempotent import ensure


def find_app_role(service_principal, permission: str):
    """Return the enabled application role called permission exposed by service_principal"""
    for app_role in service_principal.app_roles or []:
        if (app_role.value == permission and app_role.is_enabled is not False and
                "Application" in (app_role.allowed_member_types or [])):
            return app_role
    return None


async def find_app_role_assignment(graph_client, sp_obj_id: str, resource_id: str, app_role_id):
    assignments = await graph_client.service_principals.by_service_principal_id(sp_obj_id).app_role_assignments.get()
    for assignment in assignments.value or []:
        if str(assignment.resource_id) == str(resource_id) and str(assignment.app_role_id) == str(app_role_id):
            return assignment
    return None


async def grant_graph_permission_async(graph_client, sp_obj_id: str) -> str:
    """
    Grant the Microsoft Graph application permission to the service principal
    Returns "created" or "skipped" when the grant was already there
    """

    try:
        print(f"   Resolving Microsoft Graph service principal ({GRAPH_APP_ID})...")
        graph_sp = await find_service_principal(graph_client, GRAPH_APP_ID)
        if graph_sp is None:
            raise LookupError("Microsoft Graph service principal not found in this tenant")

        app_role = find_app_role(graph_sp, GRAPH_PERMISSION)
        if app_role is None:
            raise LookupError(f"Microsoft Graph does not expose an application permission named '{GRAPH_PERMISSION}'")
        print(f"   Found app role '{GRAPH_PERMISSION}': {app_role.id}")

        async def create():
            assignment = AppRoleAssignment(
                principal_id=UUID(str(sp_obj_id)),
                resource_id=UUID(str(graph_sp.id)),
                app_role_id=app_role.id,
            )
            return await graph_client.service_principals.by_service_principal_id(sp_obj_id).app_role_assignments.post(assignment)

        _, created = await ensure(
            f"'{GRAPH_PERMISSION}' grant",
            find=lambda: find_app_role_assignment(graph_client, sp_obj_id, graph_sp.id, app_role.id),
            create=create,
        )
        return "created" if created else "skipped"

    except Exception as e:
        print(f"   Failed to grant Microsoft Graph permission: {str(e)}")
        print(f"   Error type: {type(e).__name__}")
        raise


async def grant_graph_permission(ctx, graph_client):
    tally = ctx.tally("Microsoft Graph permission")
    try:
        tally.record(await grant_graph_permission_async(graph_client, ctx.application.sp_object_id))
    except Exception:
        tally.record("failed")
        print(f"   Grant '{GRAPH_PERMISSION}' manually: Entra ID > App registrations > {ctx.application.display_name} "
              f"> API permissions > Add a permission > Microsoft Graph > Application permissions, "
              f"then Grant admin consent")
    return tally
