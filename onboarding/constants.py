"""
Fixed identifiers the Spotto platform expects to find in the customer tenant.
These must not change between runs or the onboarding stops being idempotent.
"""

APP_DISPLAY_NAME = "Spotto AI"
SECRET_NAME = "Spotto AI Secret"
SECRET_VALIDITY_MONTHS = 12

# Returned in place of the secret value when an existing secret is reused
REUSED_SECRET_SENTINEL = "[EXISTING_SECRET_VALUE_NOT_RETRIEVABLE]"

READER_ROLE = "Reader"
RESERVATIONS_READER_ROLE = "Reservations Reader"
RESERVATIONS_SCOPE = "/providers/Microsoft.Capacity"
SAVINGS_PLAN_READER_ROLE = "Savings plan Reader"
SAVINGS_PLAN_SCOPE = "/providers/Microsoft.BillingBenefits"

CUSTOM_ROLE_NAME = "Spotto Custom Role"
CUSTOM_ROLE_DESCRIPTION = (
    "Allows Spotto AI to manage Azure Advisor recommendations and "
    "storage account inventory policies"
)
CUSTOM_ROLE_ACTIONS = [
    "Microsoft.Advisor/recommendations/write",
    "Microsoft.Advisor/recommendations/suppressions/write",
    "Microsoft.Advisor/recommendations/suppressions/delete",
    "Microsoft.Storage/storageAccounts/inventoryPolicies/read",
    "Microsoft.Storage/storageAccounts/inventoryPolicies/write",
]

GRAPH_APP_ID = "00000003-0000-0000-c000-000000000000"
GRAPH_PERMISSION = "Application.Read.All"

# Distribution names, checked before any Azure module is imported
REQUIRED_PACKAGES = [
    "azure-identity",
    "azure-mgmt-authorization",
    "azure-mgmt-resource",
    "msgraph-sdk",
    "PyJWT",
    "python-dateutil",
    "PyYAML",
    "tenacity",
]
