"""
Azure Service Principal creation using Microsoft Graph SDK
"""

from msgraph.generated.models.service_principal import ServicePrincipal
from msgraph.generated.service_principals.service_principals_request_builder import ServicePrincipalsRequestBuilder

from onboarding.graph_session import filter_request
from onboarding.idempotent import ensure, wait_until_visible


async def find_service_principal(graph_client, app_id: str):
    """Return the service principal backing app_id, or None"""
    request_configuration = filter_request(
        ServicePrincipalsRequestBuilder.ServicePrincipalsRequestBuilderGetQueryParameters,
        f"appId eq '{app_id}'",
    )
    service_principals = await graph_client.service_principals.get(request_configuration=request_configuration)
    for sp in service_principals.value or []:
        if sp.app_id == app_id:
            return sp
    return None


async def create_service_principal_async(graph_client, app_id: str, poll_settings: dict) -> str:
    """
    Create a service principal linked to an app registration using Microsoft Graph SDK
    Returns the service principal object ID
    """

    try:
        async def create():
            print(f"   Submitting service principal creation for app ID '{app_id}' to Microsoft Graph...")
            return await graph_client.service_principals.post(ServicePrincipal(app_id=app_id, account_enabled=True))

        sp, created = await ensure(
            f"service principal for app ID '{app_id}'",
            find=lambda: find_service_principal(graph_client, app_id),
            create=create,
        )
        print(f"   Object ID: {sp.id}")
        print(f"   Display Name: {sp.display_name}")

        if created:
            # Role assignments fail with PrincipalNotFound until the directory catches up
            await wait_until_visible(
                "service principal",
                lambda: graph_client.service_principals.by_service_principal_id(sp.id).get(),
                **poll_settings,
            )
        return sp.id

    except Exception as e:
        print(f"   Failed to create service principal: {str(e)}")
        print(f"   Error type: {type(e).__name__}")
        raise
