#!/usr/bin/env python3
"""
Spotto AI Azure Onboarding Script

Connects an Azure tenant to the Spotto AI analytics platform:
- App registration and service principal named "Spotto AI"
- Client secret (new, or reuse of an existing valid one)
- Reader on the selected subscriptions
- Reservations Reader and Savings plan Reader at tenant level
- Microsoft Graph Application.Read.All application permission
- Optional custom role with Advisor and storage inventory write actions
- Outputs the client ID, tenant ID, secret and expiry Spotto AI needs

Safe to run again: every step checks what already exists before creating anything.
Every run writes a transcript to ./logs (or $SPOTTO_LOG_DIR).
"""

import sys, os, asyncio

from onboarding.console import print_status
from onboarding.constants import REQUIRED_PACKAGES
from onboarding.prerequisites import ensure_prerequisites
from onboarding.transcript import prompt, start_transcript

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))


def run() -> int:
    print_status("Prerequisite Check", "section")
    if not ensure_prerequisites(REQUIRED_PACKAGES, ask=prompt):
        return 1

    # Azure SDK imports only after the packages are known to be installed
    from onboarding import config, orchestrator

    config_path = os.environ.get("SPOTTO_CONFIG", os.path.join(SCRIPT_DIR, "spotto_config.yaml"))
    try:
        settings = config.load_config(config_path)
    except (OSError, ValueError) as e:
        print_status(f"ERROR: Could not load configuration: {str(e)}")
        return 1

    return asyncio.run(orchestrator.async_main(settings, ask=prompt))


def main():
    """Synchronous entry point, exits with the onboarding result"""
    log_dir = os.environ.get("SPOTTO_LOG_DIR", os.path.join(SCRIPT_DIR, "logs"))
    transcript = start_transcript(log_dir)
    try:
        exit_code = run()
        prompt("\nPress Enter to exit...")
    except KeyboardInterrupt:
        print_status("\nOnboarding interrupted by user")
        exit_code = 130
    finally:
        transcript.stop()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
