"""
Azure client secret creation using Microsoft Graph SDK
"""

from datetime import datetime, timezone
from dateutil.relativedelta import relativedelta
from msgraph.generated.applications.item.add_password.add_password_post_request_body import AddPasswordPostRequestBody
from msgraph.generated.models.password_credential import PasswordCredential

from onboarding.console import is_yes
from onboarding.constants import REUSED_SECRET_SENTINEL
from onboarding.context import IssuedSecret
from onboarding.idempotent import ensure


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def valid_password_credentials(password_credentials, now: datetime = None) -> list:
    """Return the credentials that have not expired yet"""
    now = now or datetime.now(timezone.utc)
    return [
        credential for credential in password_credentials or []
        if credential.end_date_time is not None and _as_utc(credential.end_date_time) > now
    ]


def _reusable_secret(valid_credentials: list, ask):
    if not valid_credentials:
        print("   No valid client secrets found")
        return None

    latest_expiry = max(_as_utc(credential.end_date_time) for credential in valid_credentials)
    print(f"   Found {len(valid_credentials)} valid client secret(s), latest expires {latest_expiry.date().isoformat()}")
    print("   Note: existing secret values cannot be read back from Azure")
    answer = ask("   Reuse an existing client secret? (yes/no): ")
    if not is_yes(answer):
        return None

    print("   Reusing existing client secret, make sure you still have its value")
    return IssuedSecret(value=REUSED_SECRET_SENTINEL, expires_at=latest_expiry, is_new=False)


async def create_client_secret_async(graph_client, app_object_id: str, secret_name: str,
                                     validity_months: int, ask) -> IssuedSecret:
    """
    Issue a client secret for the app registration using Microsoft Graph SDK

    Args:
        graph_client: Microsoft Graph client instance
        app_object_id: Object ID of the app registration
        secret_name: Display name for the client secret
        validity_months: How long a new secret stays valid
        ask: Prompt function used when a valid secret already exists

    Returns:
        IssuedSecret holding the new value, or the reuse sentinel when the
        operator keeps an existing secret
    """

    try:
        print("   Checking for existing client secrets...")
        app_details = await graph_client.applications.by_application_id(app_object_id).get()
        valid_credentials = valid_password_credentials(app_details.password_credentials)

        async def create():
            end_date = datetime.now(timezone.utc) + relativedelta(months=validity_months)
            print(f"   Secret expiration date: {end_date.isoformat()}")

            request_body = AddPasswordPostRequestBody(
                password_credential=PasswordCredential(display_name=secret_name, end_date_time=end_date),
            )
            print("   Submitting client secret creation to Microsoft Graph...")
            created_secret = await graph_client.applications.by_application_id(app_object_id).add_password.post(request_body)

            print(f"   Secret name: {secret_name}")
            print(f"   Secret ID: {created_secret.key_id}")
            return IssuedSecret(
                value=created_secret.secret_text,
                expires_at=_as_utc(created_secret.end_date_time or end_date),
                is_new=True,
            )

        secret, _ = await ensure(
            "reusable client secret",
            find=lambda: _reusable_secret(valid_credentials, ask),
            create=create,
        )
        return secret

    except Exception as e:
        print(f"   Failed to create client secret: {str(e)}")
        print(f"   Error type: {type(e).__name__}")
        raise
