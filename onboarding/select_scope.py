"""
Tenant and subscription selection
"""

from azure.mgmt.resource import SubscriptionClient

from onboarding.context import Subscription, Tenant
from onboarding.errors import FatalStepError, SelectionError


def list_tenants(credential) -> list:
    """Return every tenant the signed-in account can access"""
    subscription_client = SubscriptionClient(credential)
    tenants = []
    for tenant in subscription_client.tenants.list():
        tenants.append(Tenant(
            tenant_id=tenant.tenant_id,
            display_name=tenant.display_name or tenant.tenant_id,
            domains=list(tenant.domains or []),
        ))
    return tenants


def select_tenant(tenants: list, ask) -> Tenant:
    if not tenants:
        raise FatalStepError("Tenant selection", "no accessible tenants found for this account")

    if len(tenants) == 1:
        tenant = tenants[0]
        print(f"   Only one tenant available, using: {tenant.display_name} ({tenant.tenant_id})")
        return tenant

    print(f"   Found {len(tenants)} tenants:")
    for number, tenant in enumerate(tenants, start=1):
        domains = f" [{', '.join(tenant.domains)}]" if tenant.domains else ""
        print(f"   {number}. {tenant.display_name} ({tenant.tenant_id}){domains}")

    while True:
        answer = ask(f"   Select a tenant (1-{len(tenants)}): ").strip()
        try:
            number = int(answer)
        except ValueError:
            print(f"   '{answer}' is not a number, try again")
            continue
        if 1 <= number <= len(tenants):
            tenant = tenants[number - 1]
            print(f"   Selected tenant: {tenant.display_name} ({tenant.tenant_id})")
            return tenant
        print(f"   {number} is out of range, try again")


def list_subscriptions(credential, tenant_id: str) -> list:
    """Return the subscriptions of tenant_id visible to the credential"""
    try:
        subscription_client = SubscriptionClient(credential)
        subscriptions = []
        for subscription in subscription_client.subscriptions.list():
            if subscription.tenant_id and subscription.tenant_id != tenant_id:
                continue
            subscriptions.append(Subscription(
                subscription_id=subscription.subscription_id,
                display_name=subscription.display_name,
                tenant_id=subscription.tenant_id,
                state=getattr(subscription.state, "value", subscription.state),
            ))
        return subscriptions
    except Exception as e:
        print(f"   Failed to list subscriptions: {str(e)}")
        print(f"   Error type: {type(e).__name__}")
        raise


def parse_selection(text: str, count: int) -> list:
    """
    Turn the operator's answer into zero-based subscription indices.
    Accepts "all" in any case, or comma separated 1-based numbers.
    """
    cleaned = text.strip()
    if not cleaned:
        raise SelectionError("No subscriptions selected")

    if cleaned.lower() == "all":
        return list(range(count))

    indices = []
    for part in cleaned.split(","):
        part = part.strip()
        try:
            number = int(part)
        except ValueError:
            raise SelectionError(f"'{part}' is not a subscription number") from None
        if not 1 <= number <= count:
            raise SelectionError(f"{number} is out of range (1-{count})")
        if number - 1 in indices:
            raise SelectionError(f"Subscription {number} was selected more than once")
        indices.append(number - 1)
    return indices


def select_subscriptions(subscriptions: list, ask) -> list:
    if not subscriptions:
        raise FatalStepError("Subscription selection", "no subscriptions found in the selected tenant")

    print(f"   Found {len(subscriptions)} subscriptions:")
    for number, subscription in enumerate(subscriptions, start=1):
        state = f" - {subscription.state}" if subscription.state else ""
        print(f"   {number}. {subscription.display_name} ({subscription.subscription_id}){state}")

    while True:
        answer = ask("   Enter 'all' or comma separated numbers (e.g. 1,3): ")
        try:
            indices = parse_selection(answer, len(subscriptions))
        except SelectionError as e:
            print(f"   Invalid selection: {e}")
            continue
        selected = [subscriptions[index] for index in indices]
        print(f"   Selected {len(selected)} subscription(s)")
        return selected
