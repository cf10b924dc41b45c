"""
Azure authentication with automatic fallback from CLI to interactive browser login
"""

from azure.identity import AzureCliCredential, InteractiveBrowserCredential, CredentialUnavailableError
from azure.core.exceptions import ClientAuthenticationError
import jwt

from onboarding.console import is_yes
from onboarding.idempotent import ensure

MANAGEMENT_SCOPE = "https://management.azure.com/.default"


def token_claims(token: str) -> dict:
    """Decode the (unverified) claims section of an access token"""
    return jwt.decode(token, options={"verify_signature": False})


def describe_principal(credential) -> str:
    """Return the signed-in user name (or app id) behind a credential"""
    claims = token_claims(credential.get_token(MANAGEMENT_SCOPE).token)
    return (
        claims.get("upn")
        or claims.get("preferred_username")
        or claims.get("unique_name")
        or claims.get("appid")
        or "unknown principal"
    )


def _existing_cli_session(ask):
    try:
        credential = AzureCliCredential()
        principal = describe_principal(credential)
    except (CredentialUnavailableError, ClientAuthenticationError) as e:
        print(f"   No active Azure CLI session: {e}")
        return None

    print(f"   Active Azure CLI session found for: {principal}")
    answer = ask("   Switch to a different account? (yes/no): ")
    if is_yes(answer):
        print("   Switching account...")
        return None
    return credential, principal


def _interactive_login():
    print("   Opening browser for interactive login...")
    credential = InteractiveBrowserCredential()
    principal = describe_principal(credential)
    print(f"   Signed in as: {principal}")
    return credential, principal


async def azure_login(ask):
    """
    Authenticate to Azure, reusing an active Azure CLI session when the operator
    is happy with it and falling back to an interactive browser login otherwise.
    Returns (credential, principal).
    """

    try:
        (credential, principal), _ = await ensure(
            "Azure session",
            find=lambda: _existing_cli_session(ask),
            create=_interactive_login,
        )
        return credential, principal
    except ClientAuthenticationError as e:
        print(f"   Authentication failed: {e}")
        raise


def credential_for_tenant(credential, tenant_id: str):
    """Return a credential of the same kind scoped to tenant_id"""
    if isinstance(credential, AzureCliCredential):
        return AzureCliCredential(tenant_id=tenant_id)
    if isinstance(credential, InteractiveBrowserCredential):
        print("   Re-authenticating against the selected tenant (the browser may open again)...")
        return InteractiveBrowserCredential(tenant_id=tenant_id)
    return credential
