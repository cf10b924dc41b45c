"""
Check that the Python packages the onboarding needs are installed, offering
to install any that are missing
"""

import subprocess
import sys
from importlib import metadata

from onboarding.console import is_yes


def check_packages(required: list) -> list:
    """Return the distributions from required that are not installed"""
    missing = []
    for name in required:
        try:
            metadata.version(name)
        except metadata.PackageNotFoundError:
            missing.append(name)
    return missing


def ensure_prerequisites(required: list, ask) -> bool:
    """
    Returns True when every required package is available, installing missing
    ones with pip if the operator agrees. A decline or failed install returns False.
    """
    missing = check_packages(required)
    if not missing:
        print("   All required packages are installed")
        return True

    print(f"   Missing required packages: {', '.join(missing)}")
    answer = ask("   Install the missing packages now? (yes/no): ")
    if not is_yes(answer):
        print("   Installation declined, cannot continue without the required packages")
        return False

    print(f"   Installing {', '.join(missing)}...")
    result = subprocess.run([sys.executable, "-m", "pip", "install", *missing])
    if result.returncode != 0:
        print(f"   Package installation failed with exit code {result.returncode}")
        return False

    print("   Packages installed successfully")
    return True
