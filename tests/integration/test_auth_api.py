"""
Integration Tests for Authentication API
Tests for: login, refresh, profile, password change, admin bootstrap
"""
import pytest

from examcase.core.config import settings
from examcase.models import AppRole

API = '/api/v1'
PASSWORD = 'testpassword123'


async def login(client, email, password=PASSWORD):
    return await client.post(f'{API}/auth/login', json={'email': email, 'password': password})


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_success(self, client, deputy):
        response = await login(client, deputy.email)

        assert response.status_code == 200
        data = response.json()
        assert data['token_type'] == 'bearer'
        assert data['access_token']
        assert data['refresh_token']
        assert data['must_change_password'] is False

    @pytest.mark.asyncio
    async def test_login_is_case_insensitive_on_email(self, client, deputy):
        response = await login(client, deputy.email.upper())
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client, deputy):
        response = await login(client, deputy.email, 'wrongpassword')

        assert response.status_code == 401
        assert response.json()['detail'] == 'Incorrect email or password'

    @pytest.mark.asyncio
    async def test_login_unknown_user(self, client):
        response = await login(client, 'nobody@university.edu')
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_inactive_user(self, client, db_session, deputy):
        deputy.is_active = False
        await db_session.commit()

        response = await login(client, deputy.email)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_login_reports_pending_password_change(self, client, make_user, department):
        user = await make_user(AppRole.DEPUTY_DEPARTMENT_HEAD, department=department, must_change_password=True)

        response = await login(client, user.email)

        assert response.status_code == 200
        assert response.json()['must_change_password'] is True


class TestTokens:

    @pytest.mark.asyncio
    async def test_refresh(self, client, head):
        tokens = (await login(client, head.email)).json()

        response = await client.post(f'{API}/auth/refresh', json={'refresh_token': tokens['refresh_token']})

        assert response.status_code == 200
        assert response.json()['access_token']

    @pytest.mark.asyncio
    async def test_refresh_rejects_access_token(self, client, head):
        tokens = (await login(client, head.email)).json()

        response = await client.post(f'{API}/auth/refresh', json={'refresh_token': tokens['access_token']})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_rejects_garbage(self, client):
        response = await client.post(f'{API}/auth/refresh', json={'refresh_token': 'not-a-token'})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get(f'{API}/auth/me')
        assert response.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        response = await client.get(f'{API}/auth/me', headers={'Authorization': 'Bearer invalid'})
        assert response.status_code == 401


class TestProfile:

    @pytest.mark.asyncio
    async def test_me_lists_roles(self, client, head, department, headers_for):
        response = await client.get(f'{API}/auth/me', headers=headers_for(head))

        assert response.status_code == 200
        data = response.json()
        assert data['email'] == head.email
        assert [r['role'] for r in data['roles']] == ['department_head']
        assert data['roles'][0]['department_id'] == str(department.id)

    @pytest.mark.asyncio
    async def test_update_profile(self, client, head, headers_for):
        response = await client.patch(
            f'{API}/auth/me/profile',
            json={'full_name': 'Dr. Almaz Haile'},
            headers=headers_for(head),
        )

        assert response.status_code == 200
        assert response.json()['full_name'] == 'Dr. Almaz Haile'


class TestPasswordChange:

    @pytest.mark.asyncio
    async def test_default_password_blocks_case_data(self, client, make_user, department, headers_for):
        user = await make_user(AppRole.DEPUTY_DEPARTMENT_HEAD, department=department, must_change_password=True)
        headers = headers_for(user)

        blocked = await client.get(f'{API}/violations', headers=headers)
        assert blocked.status_code == 403

        me = await client.get(f'{API}/auth/me', headers=headers)
        assert me.status_code == 200
        assert me.json()['must_change_password'] is True

    @pytest.mark.asyncio
    async def test_change_password_unblocks(self, client, make_user, department, headers_for):
        user = await make_user(AppRole.DEPUTY_DEPARTMENT_HEAD, department=department, must_change_password=True)
        headers = headers_for(user)
        email = user.email

        response = await client.post(
            f'{API}/auth/change-password',
            json={'current_password': PASSWORD, 'new_password': 'a-new-password-1'},
            headers=headers,
        )
        assert response.status_code == 200

        assert (await client.get(f'{API}/violations', headers=headers)).status_code == 200
        assert (await login(client, email, 'a-new-password-1')).status_code == 200
        assert (await login(client, email)).status_code == 401

    @pytest.mark.asyncio
    async def test_change_password_wrong_current(self, client, head, headers_for):
        response = await client.post(
            f'{API}/auth/change-password',
            json={'current_password': 'not-my-password', 'new_password': 'a-new-password-1'},
            headers=headers_for(head),
        )

        assert response.status_code == 400
        body = response.json()
        assert body['success'] is False
        assert body['error']['code'] == 'VALIDATION_ERROR'
        assert body['error']['details'] == {'field': 'current_password'}

    @pytest.mark.asyncio
    async def test_change_password_too_short(self, client, head, headers_for):
        response = await client.post(
            f'{API}/auth/change-password',
            json={'current_password': PASSWORD, 'new_password': 'short'},
            headers=headers_for(head),
        )
        assert response.status_code == 422


class TestSetupAdmin:

    @pytest.mark.asyncio
    async def test_bootstrap_once(self, client):
        first = await client.post(f'{API}/auth/setup-admin')

        assert first.status_code == 201
        data = first.json()
        assert data['email'] == settings.SETUP_ADMIN_EMAIL.lower()
        assert data['must_change_password'] is True
        assert [r['role'] for r in data['roles']] == ['system_admin']

        second = await client.post(f'{API}/auth/setup-admin')
        assert second.status_code == 409
        assert second.json()['error']['code'] == 'ADMIN_EXISTS'

    @pytest.mark.asyncio
    async def test_refused_when_admin_exists(self, client, admin):
        response = await client.post(f'{API}/auth/setup-admin')
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_bootstrapped_admin_can_log_in(self, client):
        await client.post(f'{API}/auth/setup-admin')

        response = await login(client, settings.SETUP_ADMIN_EMAIL, settings.SETUP_ADMIN_PASSWORD)

        assert response.status_code == 200
        assert response.json()['must_change_password'] is True
