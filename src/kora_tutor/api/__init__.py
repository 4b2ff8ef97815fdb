"""
HTTP and WebSocket surface of the tutor.

Example:
    ```python
    from kora_tutor.api import create_app

    app = create_app(controller, usage_ledger=InMemoryUsageLedger())
    ```
"""

from kora_tutor.api.app import create_app, create_app_from_settings

__all__ = [
    "create_app",
    "create_app_from_settings",
]
