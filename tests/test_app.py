import pytest

from weeklog.app import create_app
from weeklog.storage import Storage


@pytest.fixture
def app(storage):
    app = create_app(storage=storage)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def add(client, date='2024-06-03', project='PRJ-1', hours='3', description='design'):
    return client.post('/api/logs', json={
        'date': date, 'projectCode': project, 'description': description, 'hours': hours})


def test_add_log(client, storage):
    response = add(client)

    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['entry']['hours'] == 3.0
    assert body['week'] == '2024-06-03'
    assert len(Storage(storage.path).load_entries()) == 1


def test_add_log_accepts_form_data(client):
    response = client.post('/api/logs', data={
        'date': '2024-06-03', 'projectCode': 'PRJ-1', 'hours': '1.25'})
    assert response.status_code == 201
    assert response.get_json()['entry']['description'] == ''


@pytest.mark.parametrize('hours', ['0', '-1', '1.3', 'abc', ''])
def test_add_log_rejects_invalid_hours(client, hours):
    response = add(client, hours=hours)

    assert response.status_code == 400
    assert response.get_json()['success'] is False
    assert client.get('/api/logs').get_json()['total_logs'] == 0


def test_update_log(client):
    entry_id = add(client).get_json()['entry']['id']

    response = client.post(f'/api/logs/{entry_id}', json={'hours': '4.5', 'date': '2024-06-11'})

    assert response.status_code == 200
    assert response.get_json()['entry']['hours'] == 4.5
    assert response.get_json()['week'] == '2024-06-10'


def test_update_negative_hours_keeps_entry(client):
    entry_id = add(client).get_json()['entry']['id']

    assert client.post(f'/api/logs/{entry_id}', json={'hours': -1}).status_code == 400
    assert client.get('/api/logs').get_json()['logs'][0]['hours'] == 3.0


def test_update_missing_log(client):
    response = client.post('/api/logs/missing', json={'hours': '1'})
    assert response.status_code == 404
    assert response.get_json()['success'] is False


def test_delete_log_is_idempotent(client):
    entry_id = add(client).get_json()['entry']['id']

    assert client.post(f'/api/logs/{entry_id}/delete').get_json() == {'success': True, 'deleted': True}
    assert client.post(f'/api/logs/{entry_id}/delete').get_json() == {'success': True, 'deleted': False}


def test_duplicate_redirects_to_edit(client):
    entry_id = add(client).get_json()['entry']['id']

    body = client.get('/api/check_duplicate?date=2024-06-03&projectCode=PRJ-1').get_json()
    assert body['conflict']['id'] == entry_id
    assert body['editing']['id'] == entry_id

    # the suggestion is not offered while editing
    assert client.get('/api/suggest?date=2024-06-03').get_json() == {'hours': ''}

    response = add(client, hours='5')
    assert response.status_code == 200
    assert response.get_json()['entry']['id'] == entry_id
    assert client.get('/api/logs').get_json()['total_logs'] == 1


def test_edit_and_cancel(client):
    entry_id = add(client).get_json()['entry']['id']

    assert client.post(f'/api/edit/{entry_id}').get_json()['editing']['id'] == entry_id
    assert client.post('/api/edit/missing').status_code == 404
    client.post('/api/cancel_edit')

    assert add(client, project='PRJ-2').status_code == 201


def test_suggest(client):
    assert client.get('/api/suggest?date=2024-06-03').get_json() == {'hours': '7.75'}
    add(client, hours='3')
    assert client.get('/api/suggest?date=2024-06-03').get_json() == {'hours': '4.75'}
    add(client, project='PRJ-2', hours='4.75')
    assert client.get('/api/suggest?date=2024-06-03').get_json() == {'hours': ''}


def test_review(client):
    add(client, date='2024-06-03', project='PRJ-1', hours='3')
    add(client, date='2024-06-07', project='PRJ-2', hours='4')
    add(client, date='2024-05-28', project='PRJ-1', hours='1')

    body = client.get('/api/review').get_json()
    assert body['selected']['start'] == '2024-05-27'

    body = client.get('/api/review?week=2024-06-05').get_json()
    assert body['selected'] == {'value': '2024-06-03', 'start': '2024-06-03', 'end': '2024-06-09',
                                'label': '2024/06/03 - 2024/06/09'}
    assert [week['value'] for week in body['weeks']] == ['2024-06-03', '2024-05-27']
    assert [day['date'] for day in body['days']] == ['2024-06-07', '2024-06-03']
    assert body['total'] == 7.0
    assert body['projects'] == [{'projectCode': 'PRJ-2', 'hours': 4.0}, {'projectCode': 'PRJ-1', 'hours': 3.0}]


def test_projects(client):
    add(client, project='B')
    add(client, project='A', hours='1')
    assert client.get('/api/projects').get_json() == ['A', 'B']


def test_settings_limit_recent_logs(client):
    for day in ('2024-06-03', '2024-06-04', '2024-06-05'):
        add(client, date=day, hours='1')

    assert client.post('/api/settings', json={'recent_logs_limit': 2}).get_json() == {'success': True}
    assert client.get('/api/settings').get_json() == {'recent_logs_limit': 2}

    body = client.get('/api/logs').get_json()
    assert body['total_logs'] == 3
    assert [log['date'] for log in body['logs']] == ['2024-06-05', '2024-06-04']

    assert client.post('/api/settings', json={'recent_logs_limit': 'many'}).status_code == 400


def test_existing_data_is_loaded(storage):
    first = create_app(storage=storage).test_client()
    add(first)

    second = create_app(storage=Storage(storage.path)).test_client()
    assert second.get('/api/logs').get_json()['total_logs'] == 1


@pytest.mark.parametrize('hours', ['1e1000000', '1e309', '24.25'])
def test_add_log_rejects_oversized_hours(client, hours):
    response = add(client, hours=hours)

    assert response.status_code == 400
    assert client.get('/api/logs').get_json()['total_logs'] == 0
