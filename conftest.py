"""
Root pytest configuration for the Django project.

pytest-django loads config.test_settings (see pyproject.toml) and builds the
test database from the migrations. App-specific fixtures are defined in
each app's tests/conftest.py.
"""

import pytest


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py → e2e (full escrow lifecycle)
    - test_views.py, test_services.py, test_tasks.py, etc. → integration
    - test_models.py, test_fees.py, test_locks.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_webhooks.py",
        "test_webhook_view.py",
        "test_escrow.py",
        "test_settlement.py",
        "test_hiring.py",
        "test_concurrency.py",
        "test_notifications.py",
        "test_account_updated_handler.py",
        "test_connect_status_view.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_fees.py",
        "test_locks.py",
        "test_stripe_adapter.py",
        "test_account_verifier.py",
    ]

    for item in items:
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)
