"""
Runs the onboarding steps in order and prints what Spotto needs at the end
"""

import traceback

from onboarding import az_login, select_scope
from onboarding.console import is_yes, print_status
from onboarding.constants import APP_DISPLAY_NAME, CUSTOM_ROLE_ACTIONS, CUSTOM_ROLE_NAME, GRAPH_PERMISSION
from onboarding.context import RunContext
from onboarding.create import (
    create_app_registration,
    create_client_secret,
    create_custom_role,
    create_graph_grant,
    create_iam,
    create_service_principal,
)
from onboarding.graph_session import graph_session


def print_intro():
    print("This script connects your Azure tenant to Spotto AI. It will:")
    print(f"   - Create (or reuse) the '{APP_DISPLAY_NAME}' app registration and service principal")
    print("   - Create a client secret (or reuse an existing one)")
    print("   - Assign Reader on the subscriptions you select")
    print("   - Assign Reservations Reader and Savings plan Reader at tenant level")
    print(f"   - Grant the Microsoft Graph '{GRAPH_PERMISSION}' application permission")
    print(f"   - Optionally create and assign the '{CUSTOM_ROLE_NAME}' write role")
    print("Re-running is safe: anything that already exists is left as it is.")


async def authenticate(ctx: RunContext):
    print_status("Azure Authentication", "section")
    ctx.credential, ctx.principal = await az_login.azure_login(ctx.ask)


def choose_tenant(ctx: RunContext):
    print_status("Tenant Selection", "section")
    tenants = select_scope.list_tenants(ctx.credential)
    ctx.tenant = select_scope.select_tenant(tenants, ctx.ask)
    ctx.credential = az_login.credential_for_tenant(ctx.credential, ctx.tenant.tenant_id)


def choose_subscriptions(ctx: RunContext):
    print_status("Subscription Selection", "section")
    ctx.tenant_subscriptions = select_scope.list_subscriptions(ctx.credential, ctx.tenant.tenant_id)
    ctx.subscriptions = select_scope.select_subscriptions(ctx.tenant_subscriptions, ctx.ask)


async def create_identity(ctx: RunContext, graph_client):
    print_status("App Registration Management", "section")
    ctx.application = await create_app_registration.create_app_registration_async(
        graph_client=graph_client,
        display_name=APP_DISPLAY_NAME
    )
    print_status(f"App Registration complete - App ID: {ctx.application.app_id}")

    print_status("Service Principal Management", "section")
    ctx.application.sp_object_id = await create_service_principal.create_service_principal_async(
        graph_client=graph_client,
        app_id=ctx.application.app_id,
        poll_settings=ctx.poll_settings("SP_SETTLE_TIMEOUT")
    )
    print_status(f"Service Principal complete - Object ID: {ctx.application.sp_object_id}")


async def issue_credential(ctx: RunContext, graph_client):
    print_status("Client Secret Management", "section")
    ctx.secret = await create_client_secret.create_client_secret_async(
        graph_client=graph_client,
        app_object_id=ctx.application.object_id,
        secret_name=ctx.config["SECRET_NAME"],
        validity_months=ctx.config["SECRET_VALIDITY_MONTHS"],
        ask=ctx.ask
    )
    print_status(f"Client secret ready - expires {ctx.secret.expires_at.date().isoformat()}")


async def offer_write_permissions(ctx: RunContext):
    print_status("Optional Write Permissions", "section")
    print(f"   '{CUSTOM_ROLE_NAME}' lets Spotto AI act on its recommendations:")
    for action in CUSTOM_ROLE_ACTIONS:
        print(f"   - {action}")
    answer = ctx.ask("   Grant these optional write permissions? (yes/no): ")
    if not is_yes(answer):
        print("   Optional write permissions skipped")
        return
    await create_custom_role.assign_custom_roles(ctx)


def print_summary(ctx: RunContext):
    print_status("Permission Summary", "section")
    for step, tally in ctx.tallies.items():
        print_status(f"   {step}: {tally.summary()}")

    print_status("SETUP PROCESS COMPLETED", "header")
    print_status("Provide the following details to Spotto AI:", "section")
    print("-" * 50)
    print_status(f"Client ID:     {ctx.application.app_id}")
    print_status(f"Tenant ID:     {ctx.tenant.tenant_id}")
    print_status(f"Client Secret: {ctx.secret.value}")
    print_status(f"Secret Expiry: {ctx.secret.expires_at.date().isoformat()}")
    print("-" * 50)

    if ctx.secret.is_new:
        print_status("IMPORTANT: Copy the client secret now. Azure will never show this value again.", "section")
    else:
        print_status("An existing client secret was reused; send Spotto AI the value you saved when it was created.", "section")


async def async_main(config: dict, ask) -> int:
    """Main async orchestration function, returns the process exit code"""

    print_status("Spotto AI Azure Onboarding", "header")
    print_intro()
    answer = ask("\nDo you want to proceed? (yes/no): ")
    if not is_yes(answer):
        print_status("Onboarding cancelled by user")
        return 0

    ctx = RunContext(config=config, ask=ask)

    try:
        await authenticate(ctx)
        choose_tenant(ctx)
        choose_subscriptions(ctx)

        async with graph_session(ctx.credential) as graph_client:
            await create_identity(ctx, graph_client)
            await issue_credential(ctx, graph_client)

            print_status("Reader Role Assignment", "section")
            await create_iam.assign_reader_roles(ctx)

            print_status("Tenant-level Role Assignment", "section")
            await create_iam.assign_tenant_roles(ctx)

            print_status("Microsoft Graph Permission", "section")
            await create_graph_grant.grant_graph_permission(ctx, graph_client)

        await offer_write_permissions(ctx)
        print_summary(ctx)
        return 0

    except Exception as e:
        print_status("ERROR: Setup process failed!", "section")
        print_status(f"   Error details: {str(e)}")
        print_status(f"   Error type: {type(e).__name__}")

        print_status("Full traceback:", "section")

        tb_str = traceback.format_exc()
        for line in tb_str.split('\n'):
            if line.strip():
                print_status(line)

        return 1
