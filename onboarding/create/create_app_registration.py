"""
Azure App Registration creation using Microsoft Graph SDK
"""

from msgraph.generated.applications.applications_request_builder import ApplicationsRequestBuilder
from msgraph.generated.models.application import Application

from onboarding.context import ApplicationIdentity
from onboarding.graph_session import filter_request
from onboarding.idempotent import ensure


async def find_app_registration(graph_client, display_name: str):
    """Return the application with exactly this display name, or None"""
    request_configuration = filter_request(
        ApplicationsRequestBuilder.ApplicationsRequestBuilderGetQueryParameters,
        f"displayName eq '{display_name}'",
    )
    applications = await graph_client.applications.get(request_configuration=request_configuration)
    for app in applications.value or []:
        if app.display_name == display_name:
            print(f"   Existing App ID: {app.app_id}")
            print(f"   Existing Object ID: {app.id}")
            return app
    return None


async def create_app_registration_async(graph_client, display_name: str) -> ApplicationIdentity:
    """
    Create an Azure AD app registration using Microsoft Graph SDK, or reuse the
    one that already carries display_name
    """

    try:
        async def create():
            print(f"   Submitting app registration '{display_name}' to Microsoft Graph...")
            created_app = await graph_client.applications.post(Application(display_name=display_name))
            print(f"   New App ID: {created_app.app_id}")
            print(f"   New Object ID: {created_app.id}")
            return created_app

        app, _ = await ensure(
            f"app registration '{display_name}'",
            find=lambda: find_app_registration(graph_client, display_name),
            create=create,
        )
        return ApplicationIdentity(display_name=app.display_name, app_id=app.app_id, object_id=app.id)

    except Exception as e:
        print(f"   Failed to create app registration: {str(e)}")
        print(f"   Error type: {type(e).__name__}")
        raise
