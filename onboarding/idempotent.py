"""
Check-then-create helper shared by every onboarding step, and a bounded poll
for waiting out directory propagation after a create
"""

import inspect

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_delay,
    wait_exponential,
)


async def _resolve(value):
    if inspect.isawaitable(value):
        return await value
    return value


async def ensure(description: str, find, create):
    """
    Return (resource, created). find() is always called first; create() only
    runs when find() returns None. Either callable may be sync or async.

    Not safe against a concurrent run doing the same thing at the same time.
    """
    print(f"   Checking for existing {description}...")
    existing = await _resolve(find())
    if existing is not None:
        print(f"   Found existing {description}, nothing to create")
        return existing, False

    print(f"   No existing {description} found, creating new one...")
    created = await _resolve(create())
    print(f"   Created {description}")
    return created, True


async def wait_until_visible(description: str, check, timeout: float,
                             initial_delay: float = 2, max_delay: float = 15) -> bool:
    """
    Poll check() with exponential backoff until it returns something truthy or
    timeout seconds have passed. Errors raised by check() count as not visible yet.
    Returns False when the bound is reached; the caller decides whether to carry on.
    """

    async def attempt():
        return bool(await _resolve(check()))

    def before_sleep(retry_state):
        print(f"   {description} not visible yet, checking again in {retry_state.next_action.sleep:.0f}s...")

    print(f"   Waiting for {description} to propagate (up to {timeout}s)...")
    retrying = AsyncRetrying(
        stop=stop_after_delay(timeout),
        wait=wait_exponential(multiplier=initial_delay, min=initial_delay, max=max_delay),
        retry=retry_if_result(lambda visible: not visible) | retry_if_exception_type(Exception),
        before_sleep=before_sleep,
        retry_error_callback=lambda retry_state: False,
    )
    visible = await retrying(attempt)

    if visible:
        print(f"   {description} is visible")
    else:
        print(f"   WARNING: {description} still not visible after {timeout}s, continuing anyway")
    return visible
