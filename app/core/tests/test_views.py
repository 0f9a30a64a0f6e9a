"""
Tests for the health check endpoint.
"""

import pytest
from django.db import DatabaseError


@pytest.mark.django_db
def test_healthy(client):
    response = client.get("/health/")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "connected", "cache": "connected"}


@pytest.mark.django_db
def test_database_down(client, mocker):
    connection = mocker.patch("core.views.connection")
    connection.cursor.side_effect = DatabaseError("down")

    response = client.get("/health/")

    assert response.status_code == 503
    assert response.json()["database"] == "disconnected"
