"""
Integration Tests for Notifications API
"""
import pytest

from examcase.models import AppRole, WorkflowStatus

API = '/api/v1'


async def submit(client, violation_id, headers):
    return await client.post(
        f'{API}/violations/{violation_id}/actions',
        json={'action': 'submit_to_head'},
        headers=headers,
    )


class TestNotifications:

    @pytest.mark.asyncio
    async def test_submission_notifies_head(self, client, deputy, head, student, make_violation, headers_for):
        violation = await make_violation(student)
        vid = str(violation.id)
        await submit(client, vid, headers_for(deputy))

        response = await client.get(f'{API}/notifications', headers=headers_for(head))

        assert response.status_code == 200
        items = response.json()
        assert len(items) == 1
        assert items[0]['title'] == 'New Case Submitted'
        assert items[0]['type'] == 'action_required'
        assert items[0]['violation_id'] == vid
        assert student.full_name in items[0]['message']
        assert items[0]['is_read'] is False

        mine = await client.get(f'{API}/notifications', headers=headers_for(deputy))
        assert mine.json() == []

    @pytest.mark.asyncio
    async def test_unread_count_and_mark_read(self, client, deputy, head, student, make_violation, headers_for):
        violation = await make_violation(student)
        await submit(client, violation.id, headers_for(deputy))
        headers = headers_for(head)

        assert (await client.get(f'{API}/notifications/unread-count', headers=headers)).json() == {'unread': 1}

        notification_id = (await client.get(f'{API}/notifications', headers=headers)).json()[0]['id']
        response = await client.post(f'{API}/notifications/{notification_id}/read', headers=headers)
        assert response.status_code == 200
        assert response.json()['is_read'] is True

        assert (await client.get(f'{API}/notifications/unread-count', headers=headers)).json() == {'unread': 0}
        unread = await client.get(f'{API}/notifications', params={'unread_only': True}, headers=headers)
        assert unread.json() == []

    @pytest.mark.asyncio
    async def test_mark_all_read(self, client, deputy, head, student, make_violation, headers_for):
        for _ in range(2):
            violation = await make_violation(student)
            await submit(client, violation.id, headers_for(deputy))

        response = await client.post(f'{API}/notifications/read-all', headers=headers_for(head))

        assert response.status_code == 200
        assert response.json()['message'] == 'Marked 2 notification(s) as read'
        count = await client.get(f'{API}/notifications/unread-count', headers=headers_for(head))
        assert count.json() == {'unread': 0}

    @pytest.mark.asyncio
    async def test_cannot_read_someone_elses(self, client, deputy, head, student, make_violation, headers_for):
        violation = await make_violation(student)
        await submit(client, violation.id, headers_for(deputy))
        notification_id = (await client.get(f'{API}/notifications', headers=headers_for(head))).json()[0]['id']

        response = await client.post(f'{API}/notifications/{notification_id}/read', headers=headers_for(deputy))

        assert response.status_code == 404
        assert response.json()['error']['code'] == 'NOTIFICATION_NOT_FOUND'

    @pytest.mark.asyncio
    async def test_head_approval_reaches_deputy_and_avd(
        self, client, deputy, head, avd, student, make_violation, headers_for
    ):
        violation = await make_violation(student, workflow_status=WorkflowStatus.SUBMITTED_TO_HEAD)

        await client.post(
            f'{API}/violations/{violation.id}/actions',
            json={'action': 'approve_as_head'},
            headers=headers_for(head),
        )

        deputy_items = (await client.get(f'{API}/notifications', headers=headers_for(deputy))).json()
        avd_items = (await client.get(f'{API}/notifications', headers=headers_for(avd))).json()
        assert [n['title'] for n in deputy_items] == ['Case Approved by Head']
        assert [n['title'] for n in avd_items] == ['Case Ready for Review']

    @pytest.mark.asyncio
    async def test_available_during_password_change(self, client, make_user, department, headers_for):
        user = await make_user(AppRole.DEPARTMENT_HEAD, department=department, must_change_password=True)

        response = await client.get(f'{API}/notifications', headers=headers_for(user))
        assert response.status_code == 200
