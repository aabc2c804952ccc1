import pytest


@pytest.fixture
def token_for(stores):
    def issue(account):
        return {'Authorization': f'Bearer {stores.identity.issue_token(account)}'}
    return issue


@pytest.fixture
def register(client, token_for):
    def create(account, username, display_name=None):
        headers = token_for(account)
        response = client.post('/api/profile', json={
            'username': username,
            'display_name': display_name or username.title()
        }, headers=headers)
        assert response.status_code == 201
        return headers
    return create


def test_me_requires_token(client):
    assert client.get('/api/auth/me').status_code == 401
    assert client.get('/api/auth/me', headers={'Authorization': 'Bearer bogus'}).status_code == 401


def test_me_unregistered_then_registered(client, token_for, register):
    headers = token_for('acct:alice')
    response = client.get('/api/auth/me', headers=headers)
    assert response.status_code == 200
    assert response.get_json() == {'authenticated': True, 'registered': False, 'account': 'acct:alice'}

    register('acct:alice', 'alice')
    body = client.get('/api/auth/me', headers=headers).get_json()
    assert body['registered'] is True
    assert body['profile']['username'] == 'alice'
    assert body['profile']['post_count'] == 0


def test_token_from_cookie(app, client, stores):
    token = stores.identity.issue_token('acct:cookie')
    client.set_cookie(app.config['AUTH_COOKIE_NAME'], token)

    assert client.get('/api/auth/me').get_json()['account'] == 'acct:cookie'


def test_create_profile_validation(client, token_for, register):
    headers = token_for('acct:alice')
    assert client.post('/api/profile', json={'username': 'alice'}, headers=headers).status_code == 400
    assert client.post('/api/profile', json={'username': 'a!', 'display_name': 'A'},
                       headers=headers).status_code == 400
    assert client.post('/api/profile', json={'username': 'x' * 31, 'display_name': 'A'},
                       headers=headers).status_code == 400

    register('acct:alice', 'alice')
    again = client.post('/api/profile', json={'username': 'alice2', 'display_name': 'A'}, headers=headers)
    assert again.status_code == 400
    assert again.get_json()['error'] == 'You already have a profile'

    taken = client.post('/api/profile', json={'username': 'alice', 'display_name': 'B'},
                        headers=token_for('acct:bob'))
    assert taken.status_code == 400
    assert taken.get_json()['error'] == 'Username already taken'


def test_profile_routes_require_registration(client, token_for):
    headers = token_for('acct:nobody')
    response = client.post('/api/posts', json={'image_url': '/uploads/p.webp'}, headers=headers)
    assert response.status_code == 403


def test_patch_profile(client, register):
    headers = register('acct:alice', 'alice')

    response = client.patch('/api/profile', json={'bio': 'hello'}, headers=headers)
    assert response.status_code == 200

    user = client.get('/api/users/alice').get_json()
    assert user['bio'] == 'hello'
    assert user['display_name'] == 'Alice'

    assert client.patch('/api/profile', json={'bio': 'x' * 501}, headers=headers).status_code == 400


def test_social_scenario(client, register):
    alice = register('acct:alice', 'alice')
    bob = register('acct:bob', 'bob')

    created = client.post('/api/posts', json={'image_url': '/uploads/p.webp', 'caption': 'hi'}, headers=bob)
    assert created.status_code == 201
    post_id = created.get_json()['post']['id']

    assert client.post(f'/api/posts/{post_id}/like', headers=alice).get_json()['liked'] is True
    assert client.post(f'/api/posts/{post_id}/like', headers=alice).status_code == 200

    post = client.get(f'/api/posts/{post_id}', headers=alice).get_json()
    assert post['like_count'] == 1
    assert post['is_liked'] is True
    assert 'is_liked' not in client.get(f'/api/posts/{post_id}').get_json()

    assert client.post('/api/users/bob/follow', headers=alice).get_json()['following'] is True
    followers = client.get('/api/users/bob/followers?limit=50').get_json()['followers']
    assert [f['username'] for f in followers] == ['alice']
    assert client.get('/api/users/bob', headers=alice).get_json()['is_following'] is True

    likers = client.get(f'/api/posts/{post_id}/likers').get_json()['likers']
    assert [p['username'] for p in likers] == ['alice']

    assert client.delete(f'/api/posts/{post_id}', headers=alice).status_code == 404
    assert client.delete(f'/api/posts/{post_id}', headers=bob).status_code == 200
    assert client.get(f'/api/posts/{post_id}').status_code == 404


def test_comments(client, register):
    alice = register('acct:alice', 'alice')
    bob = register('acct:bob', 'bob')
    post_id = client.post('/api/posts', json={'image_url': '/uploads/p.webp'}, headers=bob).get_json()['post']['id']

    assert client.post(f'/api/posts/{post_id}/comments', json={'content': ''}, headers=alice).status_code == 400
    assert client.post(f'/api/posts/{post_id}/comments', json={'content': 'x' * 501},
                       headers=alice).status_code == 400
    assert client.post('/api/posts/missing/comments', json={'content': 'hi'}, headers=alice).status_code == 404

    created = client.post(f'/api/posts/{post_id}/comments', json={'content': 'nice'}, headers=alice)
    assert created.status_code == 201
    comment_id = created.get_json()['comment']['id']

    comments = client.get(f'/api/posts/{post_id}/comments').get_json()['comments']
    assert [c['content'] for c in comments] == ['nice']

    assert client.delete(f'/api/comments/{comment_id}', headers=bob).status_code == 404
    assert client.delete(f'/api/comments/{comment_id}', headers=alice).status_code == 200


def test_feed_pagination_is_clamped(client, register):
    alice = register('acct:alice', 'alice')
    for n in range(3):
        client.post('/api/posts', json={'image_url': f'/uploads/{n}.webp', 'caption': str(n)}, headers=alice)

    posts = client.get('/api/feed?limit=500&offset=-4').get_json()['posts']
    assert [p['caption'] for p in posts] == ['2', '1', '0']

    page = client.get('/api/users/alice/posts?limit=1&offset=1').get_json()['posts']
    assert [p['caption'] for p in page] == ['1']


def test_follow_errors(client, register):
    alice = register('acct:alice', 'alice')

    assert client.post('/api/users/alice/follow', headers=alice).status_code == 400
    assert client.post('/api/users/ghost/follow', headers=alice).status_code == 404
    assert client.get('/api/users/ghost').status_code == 404
    assert client.delete('/api/users/alice/follow', headers=alice).get_json()['following'] is False


def test_like_missing_post(client, register):
    alice = register('acct:alice', 'alice')
    assert client.post('/api/posts/missing/like', headers=alice).status_code == 404


def test_non_object_json_body_is_a_bad_request(client, token_for, register):
    headers = token_for('acct:alice')
    assert client.post('/api/profile', json=['alice'], headers=headers).status_code == 400
    assert client.post('/api/profile', json='alice', headers=headers).status_code == 400

    alice = register('acct:alice', 'alice')
    assert client.post('/api/posts', json=['/uploads/p.webp'], headers=alice).status_code == 400
    assert client.patch('/api/profile', json=[1, 2], headers=alice).status_code == 200

    post_id = client.post('/api/posts', json={'image_url': '/uploads/p.webp'}, headers=alice).get_json()['post']['id']
    assert client.post(f'/api/posts/{post_id}/comments', json=['nice'], headers=alice).status_code == 400


def test_like_on_post_deleted_after_existence_check(client, stores, register, monkeypatch):
    alice = register('acct:alice', 'alice')
    monkeypatch.setattr(stores.content, 'post_exists', lambda post_id: True)

    response = client.post('/api/posts/vanished/like', headers=alice)
    assert response.status_code == 404
    assert response.get_json()['error'] == 'Post not found'
