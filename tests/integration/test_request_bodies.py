"""Integration tests for malformed JSON bodies on every write route."""

import pytest

from kala_pos.models import Product, Sale

WRITE_ROUTES = [
    ('post', '/api/sales'),
    ('put', '/api/sales/1'),
    ('post', '/api/products'),
    ('patch', '/api/products/1'),
    ('patch', '/api/products/1/quantity'),
    ('post', '/api/categories'),
    ('post', '/api/manufacturers'),
]


@pytest.mark.parametrize('method,url', WRITE_ROUTES)
@pytest.mark.parametrize('body', [[1, 2], 'x', 42])
def test_non_object_body_is_rejected(client, method, url, body):
    response = getattr(client, method)(url, json=body)

    assert response.status_code == 400
    data = response.get_json()
    assert data['status'] == 'error'
    assert data['error'] == 'Request body must be a JSON object'


def test_rejected_body_changes_nothing(client, session, saree, stock):
    product_id = saree.id
    sale_id = client.post('/api/sales', json={
        'type': 'bill',
        'items': [{'product_id': product_id, 'quantity': 2}],
    }).get_json()['id']

    assert client.put(f'/api/sales/{sale_id}', json=[{'product_id': product_id, 'quantity': 9}]).status_code == 400
    assert client.patch(f'/api/products/{product_id}/quantity', json=[5]).status_code == 400

    assert stock(session, product_id) == 29
    assert session.query(Sale).count() == 1
    assert session.get(Product, product_id).quantity == 29


def test_missing_body_reports_missing_fields(client):
    response = client.post('/api/sales', data='not json', content_type='application/json')

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Type and items are required'
