"""
Tests for the notification service and endpoints
"""
import pytest
from services.notification_service import NotificationService
from services.task_resolution import DisplayTask, MonthlySchedule


def make_schedule(tasks, month=3, year=2025):
    return MonthlySchedule(
        region='Midwest',
        month=month,
        year=year,
        priority='high',
        tasks=tasks,
        completed_count=sum(1 for t in tasks if t.completed),
        notification_due=any(t.priority == 'high' and not t.completed for t in tasks),
    )


def make_task(title, priority='high', completed=False):
    return DisplayTask(id=f'seasonal-3-{title}', key=title.lower().replace(' ', '-'), title=title,
                       description=title, month=3, source='seasonal', priority=priority,
                       completed=completed)


HOUSE = {'id': 'house-1', 'name': 'Maple Street'}


@pytest.mark.integration
class TestNotificationService:
    """Tests for NotificationService"""

    def test_create_and_count(self, db_session):
        """Test new notifications are unread"""
        service = NotificationService(db_session, 'user-1')
        created = service.create_notification('Hello', 'First message')
        assert created['is_read'] is False
        assert service.get_unread_count() == 1
        assert NotificationService(db_session, 'user-2').get_unread_count() == 0

    def test_dedupe_key(self, db_session):
        """Test a repeated dedupe key returns the existing notification"""
        service = NotificationService(db_session, 'user-1')
        first = service.create_notification('A', 'a', dedupe_key='same')
        second = service.create_notification('B', 'b', dedupe_key='same')
        assert second['id'] == first['id']
        assert second['title'] == 'A'

    def test_mark_as_read(self, db_session):
        """Test reading one and then all notifications"""
        service = NotificationService(db_session, 'user-1')
        first = service.create_notification('A', 'a')
        service.create_notification('B', 'b')

        read = service.mark_as_read(first['id'])
        assert read['is_read'] is True
        assert read['read_at'] is not None
        assert service.get_unread_count() == 1
        assert service.mark_all_as_read() == 1
        assert service.get_unread_count() == 0

    def test_mark_someone_elses_notification(self, db_session):
        """Test users cannot read each other's notifications"""
        created = NotificationService(db_session, 'user-1').create_notification('A', 'a')
        assert NotificationService(db_session, 'user-2').mark_as_read(created['id']) is None

    def test_maintenance_due_reminder(self, db_session):
        """Test the reminder lists pending high-priority tasks"""
        schedule = make_schedule([
            make_task('Service heating system'),
            make_task('Clean gutters', priority='medium'),
            make_task('Test smoke detectors', completed=True),
        ])
        reminder = NotificationService(db_session, 'user-1').notify_maintenance_due(HOUSE, schedule)

        assert reminder['title'] == 'March maintenance for Maple Street'
        assert reminder['message'] == '1 high-priority task still to do: Service heating system'
        assert reminder['notification_type'] == 'reminder'
        assert reminder['entity_id'] == 'house-1'
        assert reminder['metadata']['pending_task_keys'] == ['service-heating-system']

    def test_maintenance_due_truncates_titles(self, db_session):
        """Test at most three titles are listed"""
        schedule = make_schedule([make_task(f'Task {n}') for n in range(5)])
        reminder = NotificationService(db_session, 'user-1').notify_maintenance_due(HOUSE, schedule)
        assert reminder['message'] == '5 high-priority tasks still to do: Task 0, Task 1, Task 2...'

    def test_no_reminder_when_nothing_due(self, db_session):
        """Test nothing is written once high-priority tasks are done"""
        schedule = make_schedule([make_task('Service heating system', completed=True)])
        service = NotificationService(db_session, 'user-1')
        assert service.notify_maintenance_due(HOUSE, schedule) is None
        assert service.get_unread_count() == 0

    def test_one_reminder_per_house_and_month(self, db_session):
        """Test reminders are deduplicated per house and month"""
        service = NotificationService(db_session, 'user-1')
        march = service.notify_maintenance_due(HOUSE, make_schedule([make_task('A')]))
        again = service.notify_maintenance_due(HOUSE, make_schedule([make_task('A')]))
        april = service.notify_maintenance_due(HOUSE, make_schedule([make_task('A')], month=4))
        assert again['id'] == march['id']
        assert april['id'] != march['id']


@pytest.mark.integration
class TestNotificationEndpoints:
    """Tests for /api/notifications"""

    @pytest.fixture
    def seeded(self, app):
        with app.extensions['database'].session_scope() as session:
            service = NotificationService(session, 'homeowner-1')
            ids = [service.create_notification(f'Note {n}', 'body')['id'] for n in range(3)]
        return ids

    def test_requires_user_id(self, client):
        assert client.get('/api/notifications').status_code == 401

    def test_list(self, client, homeowner_headers, seeded):
        """Test listing with limit and unread count"""
        data = client.get('/api/notifications?limit=2', headers=homeowner_headers).get_json()
        assert len(data['notifications']) == 2
        assert data['unread_count'] == 3

    def test_bad_limit(self, client, homeowner_headers):
        response = client.get('/api/notifications?limit=lots', headers=homeowner_headers)
        assert response.status_code == 400

    def test_mark_read(self, client, homeowner_headers, seeded):
        """Test marking one notification read"""
        response = client.post(f'/api/notifications/{seeded[0]}/read', headers=homeowner_headers)
        assert response.status_code == 200
        assert response.get_json()['notification']['is_read'] is True

        unread = client.get('/api/notifications?unread_only=true', headers=homeowner_headers).get_json()
        assert len(unread['notifications']) == 2

    def test_mark_read_other_user(self, client, seeded):
        response = client.post(f'/api/notifications/{seeded[0]}/read', headers={'X-User-Id': 'intruder'})
        assert response.status_code == 404

    def test_read_all(self, client, homeowner_headers, seeded):
        response = client.post('/api/notifications/read-all', headers=homeowner_headers)
        assert response.get_json()['marked'] == 3
        data = client.get('/api/notifications', headers=homeowner_headers).get_json()
        assert data['unread_count'] == 0
