"""
Console output and operator prompts
"""

YES_ANSWERS = ["yes", "y"]


def print_status(message, level="info"):
    """Simple console output with different levels"""
    if level == "header":
        print(f"\n{message}")
        print("=" * len(message))
    elif level == "section":
        print(f"\n{message}")
    else:
        print(message)


def is_yes(answer: str) -> bool:
    return answer.strip().lower() in YES_ANSWERS
