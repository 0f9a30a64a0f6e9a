"""
API tests for the notification inbox endpoints.
"""

from django.urls import reverse
from rest_framework import status

from notifications.tests.factories import NotificationFactory


class TestNotificationList:
    def test_returns_users_notifications(self, authenticated_client, notification):
        response = authenticated_client.get(reverse("notifications:notification-list"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["count"] == 1
        assert response.data["results"][0]["id"] == notification.id
        assert response.data["results"][0]["title"] == notification.title

    def test_excludes_other_users_notifications(
        self, authenticated_client, notification, other_user_notifications
    ):
        response = authenticated_client.get(reverse("notifications:notification-list"))

        assert response.data["count"] == 1

    def test_filter_by_read_status(self, authenticated_client, notification, read_notification):
        url = reverse("notifications:notification-list")

        unread = authenticated_client.get(url, {"is_read": "false"})
        read = authenticated_client.get(url, {"is_read": "true"})

        assert [n["id"] for n in unread.data["results"]] == [notification.id]
        assert [n["id"] for n in read.data["results"]] == [read_notification.id]

    def test_filter_by_type(self, authenticated_client, user, notification, templated_type):
        NotificationFactory(recipient=user, notification_type=templated_type)

        response = authenticated_client.get(
            reverse("notifications:notification-list"), {"type": templated_type.key}
        )

        assert response.data["count"] == 1

    def test_requires_authentication(self, api_client):
        response = api_client.get(reverse("notifications:notification-list"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestNotificationDetail:
    def test_other_users_notification_is_404(self, authenticated_client, other_user_notifications):
        url = reverse("notifications:notification-detail", args=[other_user_notifications[0].id])

        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestUnreadCount:
    def test_counts_unread_only(self, authenticated_client, notification, read_notification):
        response = authenticated_client.get(reverse("notifications:notification-unread-count"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"unread_count": 1}


class TestMarkRead:
    def test_marks_single_read(self, authenticated_client, notification):
        url = reverse("notifications:notification-read", args=[notification.id])

        response = authenticated_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["is_read"] is True

    def test_other_users_notification_is_404(self, authenticated_client, other_user_notifications):
        url = reverse("notifications:notification-read", args=[other_user_notifications[0].id])

        response = authenticated_client.post(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_read_all(self, authenticated_client, user, notification_type):
        NotificationFactory.create_batch(3, recipient=user, notification_type=notification_type)

        response = authenticated_client.post(reverse("notifications:notification-read-all"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"marked_count": 3}
