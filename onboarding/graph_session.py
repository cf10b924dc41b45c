"""
Microsoft Graph client whose HTTP transport is closed when the session ends
"""

from contextlib import asynccontextmanager

from kiota_abstractions.base_request_configuration import RequestConfiguration
from kiota_authentication_azure.azure_identity_authentication_provider import AzureIdentityAuthenticationProvider
from msgraph import GraphRequestAdapter, GraphServiceClient
from msgraph_core import GraphClientFactory

GRAPH_SCOPES = ["https://graph.microsoft.com/.default"]


@asynccontextmanager
async def graph_session(credential):
    """Yield a GraphServiceClient, always closing its transport afterwards"""
    http_client = GraphClientFactory.create_with_default_middleware()
    auth_provider = AzureIdentityAuthenticationProvider(credential, scopes=GRAPH_SCOPES)
    request_adapter = GraphRequestAdapter(auth_provider, http_client)
    print("   Graph client initialized")
    try:
        yield GraphServiceClient(request_adapter=request_adapter)
    finally:
        try:
            await http_client.aclose()
            print("   Graph session closed")
        except Exception as e:
            print(f"   Could not close Graph session cleanly: {str(e)}")


def filter_request(query_parameters_class, odata_filter: str) -> RequestConfiguration:
    """Build a request configuration carrying an OData $filter"""
    return RequestConfiguration(query_parameters=query_parameters_class(filter=odata_filter))
