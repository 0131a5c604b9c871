"""Unit tests for user routes."""

import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from adapter.fake.user_repository import FakeUserRepository
from api.dependencies import get_user_repo
from api.main import app
from domain.model.errors import StorageError

VALID_USER = {
    'email': 'e2e@example.com',
    'password': 'password123',
    'firstName': 'E2E',
    'lastName': 'Test',
}
UNKNOWN_ID = 'ffffffffffffffffffffffff'


class UsersRouteTestCase(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app, raise_server_exceptions=False)
        self.repo = FakeUserRepository()
        app.dependency_overrides[get_user_repo] = lambda: self.repo
        patcher = patch('services.user_service.BCRYPT_ROUNDS', 4)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        app.dependency_overrides.clear()

    def _create(self, **overrides) -> dict:
        body = {**VALID_USER, **overrides}
        response = self.client.post('/api/users', json=body)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()['data']


class TestCreateUserRoute(UsersRouteTestCase):

    def test_create_returns_envelope_without_password(self):
        response = self.client.post('/api/users', json=VALID_USER)

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body['success'])
        user = body['data']
        self.assertRegex(user['id'], r'^[0-9a-f]{24}$')
        self.assertEqual(user['email'], 'e2e@example.com')
        self.assertEqual(user['firstName'], 'E2E')
        self.assertEqual(user['role'], 'user')
        self.assertTrue(user['isActive'])
        self.assertIn('createdAt', user)
        self.assertIn('updatedAt', user)
        for hidden in ('password', 'passwordHash', 'password_hash', 'isDeleted', 'deletedAt'):
            self.assertNotIn(hidden, user)

    def test_duplicate_email_returns_409(self):
        self._create()

        response = self.client.post('/api/users', json={**VALID_USER, 'email': 'E2E@Example.com'})

        self.assertEqual(response.status_code, 409)
        body = response.json()
        self.assertFalse(body['success'])
        self.assertEqual(body['statusCode'], 409)
        self.assertEqual(body['message'], 'Email already exists')
        self.assertEqual(body['path'], '/api/users')
        self.assertEqual(len(self.repo.store), 1)

    def test_invalid_email_returns_400_with_field_details(self):
        response = self.client.post('/api/users', json={**VALID_USER, 'email': 'invalid-email'})

        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body['statusCode'], 400)
        self.assertIn('email', [e['field'] for e in body['errors']])
        self.assertEqual(self.repo.calls, [])

    def test_short_password_returns_400(self):
        response = self.client.post('/api/users', json={**VALID_USER, 'password': '123'})

        self.assertEqual(response.status_code, 400)
        self.assertIn('password', [e['field'] for e in response.json()['errors']])

    def test_blank_name_returns_400(self):
        response = self.client.post('/api/users', json={**VALID_USER, 'lastName': '   '})
        self.assertEqual(response.status_code, 400)

    def test_missing_field_returns_400(self):
        body = {k: v for k, v in VALID_USER.items() if k != 'firstName'}
        response = self.client.post('/api/users', json=body)

        self.assertEqual(response.status_code, 400)
        self.assertIn('firstName', [e['field'] for e in response.json()['errors']])

    def test_unknown_field_is_rejected(self):
        response = self.client.post('/api/users', json={**VALID_USER, 'isAdmin': True})

        self.assertEqual(response.status_code, 400)
        self.assertIn('isAdmin', [e['field'] for e in response.json()['errors']])
        self.assertEqual(len(self.repo.store), 0)

    def test_invalid_role_returns_400(self):
        response = self.client.post('/api/users', json={**VALID_USER, 'role': 'superuser'})
        self.assertEqual(response.status_code, 400)

    def test_role_can_be_set(self):
        self.assertEqual(self._create(role='admin')['role'], 'admin')


class TestListUsersRoute(UsersRouteTestCase):

    def test_list_returns_data_and_meta(self):
        self._create()

        response = self.client.get('/api/users')

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(len(body['data']['data']), 1)
        self.assertNotIn('password', body['data']['data'][0])
        self.assertEqual(body['data']['meta'], {
            'currentPage': 1,
            'itemsPerPage': 10,
            'totalItems': 1,
            'totalPages': 1,
            'hasNextPage': False,
            'hasPreviousPage': False,
        })

    def test_pagination_params(self):
        for i in range(6):
            self._create(email=f'user{i}@example.com')

        meta = self.client.get('/api/users?page=2&limit=5').json()['data']['meta']

        self.assertEqual(meta['currentPage'], 2)
        self.assertEqual(meta['itemsPerPage'], 5)
        self.assertEqual(meta['totalPages'], 2)
        self.assertFalse(meta['hasNextPage'])
        self.assertTrue(meta['hasPreviousPage'])

    def test_search_filter(self):
        self._create(email='a@x.com')
        self._create(email='b@x.com')

        data = self.client.get('/api/users', params={'search': 'a@x'}).json()['data']['data']

        self.assertEqual([u['email'] for u in data], ['a@x.com'])

    def test_is_active_accepts_true_and_false_literals(self):
        self._create()

        active = self.client.get('/api/users?isActive=true').json()['data']['meta']['totalItems']
        inactive = self.client.get('/api/users?isActive=false').json()['data']['meta']['totalItems']

        self.assertEqual((active, inactive), (1, 0))

    def test_is_active_rejects_loose_literals(self):
        for value in ('1', 'yes', 'True', 'maybe'):
            with self.subTest(value=value):
                response = self.client.get(f'/api/users?isActive={value}')
                self.assertEqual(response.status_code, 400)
                self.assertIn('isActive', [e['field'] for e in response.json()['errors']])

    def test_invalid_query_values_return_400(self):
        for query in ('page=0', 'limit=0', 'page=-1', 'limit=abc', 'role=superuser', 'unknown=1'):
            with self.subTest(query=query):
                response = self.client.get(f'/api/users?{query}')
                self.assertEqual(response.status_code, 400)
        self.assertEqual(self.repo.calls, [])

    def test_oversized_page_returns_400(self):
        response = self.client.get(f'/api/users?page={10**19}&limit=10')

        self.assertEqual(response.status_code, 400)
        self.assertEqual([e['field'] for e in response.json()['errors']], ['page'])
        self.assertEqual(self.repo.calls, [])


class TestSingleUserRoutes(UsersRouteTestCase):

    def test_get_user(self):
        created = self._create()

        response = self.client.get(f"/api/users/{created['id']}")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data'], created)

    def test_get_user_invalid_id_returns_400(self):
        response = self.client.get('/api/users/invalid-id')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'Invalid ID format')
        self.assertEqual(self.repo.calls, [])

    def test_get_user_unknown_id_returns_404(self):
        response = self.client.get(f'/api/users/{UNKNOWN_ID}')

        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()['success'])

    def test_patch_updates_given_fields(self):
        created = self._create()

        response = self.client.patch(f"/api/users/{created['id']}", json={'firstName': 'Z'})

        self.assertEqual(response.status_code, 200)
        data = response.json()['data']
        self.assertEqual(data['firstName'], 'Z')
        self.assertEqual(data['email'], created['email'])
        self.assertNotIn('password', data)

    def test_patch_rejects_unknown_and_null_fields(self):
        created = self._create()

        for body in ({'isDeleted': True}, {'isActive': False}, {'firstName': None}, {'password': '1'}):
            with self.subTest(body=body):
                response = self.client.patch(f"/api/users/{created['id']}", json=body)
                self.assertEqual(response.status_code, 400)

    def test_patch_invalid_id_returns_400(self):
        response = self.client.patch('/api/users/123', json={'firstName': 'Z'})
        self.assertEqual(response.status_code, 400)

    def test_patch_unknown_id_returns_404(self):
        response = self.client.patch(f'/api/users/{UNKNOWN_ID}', json={'firstName': 'Z'})
        self.assertEqual(response.status_code, 404)

    def test_patch_email_conflict_returns_409(self):
        self._create(email='taken@example.com')
        created = self._create()

        response = self.client.patch(f"/api/users/{created['id']}", json={'email': 'taken@example.com'})

        self.assertEqual(response.status_code, 409)

    def test_delete_twice(self):
        created = self._create()

        first = self.client.delete(f"/api/users/{created['id']}")
        second = self.client.delete(f"/api/users/{created['id']}")

        self.assertEqual(first.status_code, 204)
        self.assertEqual(first.content, b'')
        self.assertEqual(second.status_code, 404)
        self.assertEqual(self.client.get(f"/api/users/{created['id']}").status_code, 404)

    def test_delete_invalid_id_returns_400(self):
        self.assertEqual(self.client.delete('/api/users/not-an-id').status_code, 400)


class TestErrorEnvelope(UsersRouteTestCase):

    def test_storage_failure_returns_generic_500(self):
        def broken(*args, **kwargs):
            raise StorageError("connection reset by peer at 10.0.0.5")

        self.repo.count = broken

        response = self.client.get('/api/users')

        self.assertEqual(response.status_code, 500)
        body = response.json()
        self.assertEqual(body['message'], 'Internal server error')
        self.assertNotIn('10.0.0.5', response.text)

    def test_unexpected_exception_returns_generic_500(self):
        def broken(*args, **kwargs):
            raise RuntimeError("boom")

        self.repo.get_by_id = broken

        response = self.client.get(f'/api/users/{UNKNOWN_ID}')

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()['message'], 'Internal server error')
        self.assertNotIn('boom', response.text)

    def test_unknown_route_uses_error_envelope(self):
        response = self.client.get('/api/nothing-here')

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['statusCode'], 404)

    @patch('api.dependencies.get_mongodb_client')
    def test_database_unavailable_returns_503(self, mock_get_client):
        app.dependency_overrides.clear()
        mock_get_client.return_value = None

        response = self.client.get(f'/api/users/{UNKNOWN_ID}')

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()['message'], 'Database unavailable')


class TestScenario(UsersRouteTestCase):

    def test_full_lifecycle(self):
        a = self._create(email='a@x.com', firstName='Alice')
        b = self._create(email='b@x.com', firstName='Bob')

        found = self.client.get('/api/users?search=a@x').json()['data']['data']
        self.assertEqual([u['id'] for u in found], [a['id']])

        updated = self.client.patch(f"/api/users/{a['id']}", json={'firstName': 'Z'}).json()['data']
        self.assertEqual((updated['firstName'], updated['email']), ('Z', 'a@x.com'))

        self.assertEqual(self.client.delete(f"/api/users/{a['id']}").status_code, 204)
        self.assertEqual(self.client.get(f"/api/users/{a['id']}").status_code, 404)

        remaining = self.client.get('/api/users').json()['data']['data']
        self.assertEqual([u['id'] for u in remaining], [b['id']])


class TestRoot(unittest.TestCase):

    def test_root_and_docs(self):
        client = TestClient(app)
        self.assertEqual(client.get('/').json()['status'], 'running')
        self.assertEqual(client.get('/api/openapi.json').status_code, 200)


if __name__ == '__main__':
    unittest.main()
