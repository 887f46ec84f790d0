from __future__ import annotations

import unittest

from fastapi.testclient import TestClient

from salesflow.db import get_db
from salesflow.main import app
from salesflow.models import UserRole
from tests.support import add_client, add_pricing, add_product, add_user, add_vendor, make_session_factory


class ApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session_factory = make_session_factory()

        def _get_db():
            with self.session_factory() as db:
                yield db

        app.dependency_overrides[get_db] = _get_db
        self.previous_factory = app.state.session_factory
        app.state.session_factory = self.session_factory

        with self.session_factory() as db:
            self.admin_id = add_user(db, 'admin', UserRole.ADMIN).id
            self.finance_id = add_user(db, 'finance', UserRole.FINANCE).id
            self.vendor_id = add_vendor(db, 'vendor').id
            self.other_vendor_id = add_vendor(db, 'other-vendor').id
            self.client_id = add_client(db).id
            add_pricing(db)
            self.product_id = add_product(db).id
            db.commit()

        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        app.state.session_factory = self.previous_factory

    def _as(self, user_id: int) -> dict[str, str]:
        return {'X-User-Id': str(user_id)}

    def _create_budget(self, quantity: str = '3', **extra) -> dict:
        body = {
            'title': 'Conference kit',
            'contact_name': 'Jane Buyer',
            'items': [{'product_id': self.product_id, 'quantity': quantity}],
        }
        body.update(extra)
        response = self.client.post('/api/budgets', json=body, headers=self._as(self.vendor_id))
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def _converted_order(self) -> dict:
        budget = self._create_budget()
        headers = self._as(self.vendor_id)
        self.client.post(f'/api/budgets/{budget["id"]}/submit', headers=headers)
        self.client.post(f'/api/budgets/{budget["id"]}/approve', headers=headers)
        response = self.client.post(
            f'/api/budgets/{budget["id"]}/convert', json={'client_id': self.client_id}, headers=headers
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_health(self) -> None:
        response = self.client.get('/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, 'ok')

    def test_requests_need_a_known_user(self) -> None:
        self.assertEqual(self.client.get('/api/budgets/1').status_code, 401)
        self.assertEqual(self.client.get('/api/budgets/1', headers={'X-User-Id': '999'}).status_code, 401)
        self.assertEqual(self.client.get('/api/budgets/1', headers={'X-User-Id': 'abc'}).status_code, 401)

    def test_line_item_pricing_uses_stored_settings(self) -> None:
        response = self.client.post(
            '/api/pricing/line-item',
            json={'cost': '100', 'quantity': '2'},
            headers=self._as(self.vendor_id),
        )

        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body['unit_price'], '142.86')
        self.assertEqual(body['minimum_price'], '111.11')
        self.assertEqual(body['total_price'], '285.72')
        self.assertFalse(body['below_minimum'])

    def test_discount_route_reports_clamp(self) -> None:
        response = self.client.post(
            '/api/pricing/discount',
            json={
                'items': [
                    {'unit_price': '142.86', 'quantity': '2', 'total_price': '285.72', 'minimum_price': '111.11'}
                ],
                'discount_type': 'PERCENTAGE',
                'discount_value': '25',
            },
            headers=self._as(self.vendor_id),
        )

        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body['total'], '222.22')
        self.assertEqual(body['shortfall'], '7.93')
        self.assertTrue(body['requires_approval'])

    def test_budget_flow_ends_in_a_single_order(self) -> None:
        budget = self._create_budget()
        self.assertEqual(budget['status'], 'DRAFT')
        self.assertEqual(budget['total_value'], '428.58')

        headers = self._as(self.vendor_id)
        submitted = self.client.post(f'/api/budgets/{budget["id"]}/submit', headers=headers).json()
        self.assertEqual(submitted['status'], 'SENT')
        approved = self.client.post(f'/api/budgets/{budget["id"]}/approve', headers=headers).json()
        self.assertEqual(approved['status'], 'APPROVED')

        response = self.client.post(
            f'/api/budgets/{budget["id"]}/convert', json={'client_id': self.client_id}, headers=headers
        )
        self.assertEqual(response.status_code, 201, response.text)
        order = response.json()
        self.assertTrue(order['order_number'].startswith('PED-'))
        self.assertEqual(order['total_value'], '428.58')
        self.assertEqual(order['down_payment'], '214.29')

        again = self.client.post(
            f'/api/budgets/{budget["id"]}/convert', json={'client_id': self.client_id}, headers=headers
        )
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.json()['detail']['code'], 'CONVERSION_CONFLICT')

        totals = self.client.get('/api/commissions/me/totals', headers=headers).json()
        self.assertEqual(totals['pending'], '42.86')

    def test_conversion_without_client_is_a_bad_request(self) -> None:
        budget = self._create_budget()
        headers = self._as(self.vendor_id)
        self.client.post(f'/api/budgets/{budget["id"]}/submit', headers=headers)
        self.client.post(f'/api/budgets/{budget["id"]}/approve', headers=headers)

        response = self.client.post(f'/api/budgets/{budget["id"]}/convert', json={}, headers=headers)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['detail']['code'], 'CLIENT_REQUIRED')

    def test_budget_below_floor_needs_an_admin(self) -> None:
        budget = self._create_budget(quantity='2', discount_type='PERCENTAGE', discount_value='25')
        self.assertTrue(budget['requires_approval'])

        vendor = self._as(self.vendor_id)
        submitted = self.client.post(f'/api/budgets/{budget["id"]}/submit', headers=vendor).json()
        self.assertEqual(submitted['status'], 'AWAITING_APPROVAL')

        refused = self.client.post(f'/api/budgets/{budget["id"]}/admin-approve', headers=vendor)
        self.assertEqual(refused.status_code, 403)

        queue = self.client.get('/api/budgets/awaiting-approval', headers=self._as(self.admin_id)).json()
        self.assertEqual([row['id'] for row in queue], [budget['id']])

        approved = self.client.post(f'/api/budgets/{budget["id"]}/admin-approve', headers=self._as(self.admin_id))
        self.assertEqual(approved.status_code, 200, approved.text)
        self.assertEqual(approved.json()['status'], 'ADMIN_APPROVED')

    def test_posted_unit_cost_does_not_lower_the_floor(self) -> None:
        body = {
            'title': 'Conference kit',
            'contact_name': 'Jane Buyer',
            'items': [
                {
                    'product_id': self.product_id,
                    'quantity': '1',
                    'unit_cost': '0',
                    'price_source': 'MANUAL',
                    'unit_price': '1',
                }
            ],
        }
        response = self.client.post('/api/budgets', json=body, headers=self._as(self.vendor_id))

        self.assertEqual(response.status_code, 201, response.text)
        self.assertTrue(response.json()['requires_approval'])

    def test_vendors_only_see_their_own_budgets(self) -> None:
        budget = self._create_budget()

        response = self.client.get(f'/api/budgets/{budget["id"]}', headers=self._as(self.other_vendor_id))

        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.client.get(f'/api/budgets/{budget["id"]}', headers=self._as(self.admin_id)).status_code, 200)
        self.assertEqual(self.client.get('/api/budgets/4242', headers=self._as(self.admin_id)).status_code, 404)

    def test_payments_update_the_receivable(self) -> None:
        order = self._converted_order()
        finance = self._as(self.finance_id)

        response = self.client.post(
            f'/api/orders/{order["id"]}/payments', json={'amount': '214.29', 'method': 'pix'}, headers=finance
        )
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertEqual(body['order']['paid_value'], '214.29')
        self.assertEqual(body['receivable']['status'], 'PARTIAL')

        invalid = self.client.post(
            f'/api/orders/{order["id"]}/payments', json={'amount': '0', 'method': 'pix'}, headers=finance
        )
        self.assertEqual(invalid.status_code, 400)
        self.assertEqual(invalid.json()['detail']['code'], 'VALIDATION_ERROR')

        forbidden = self.client.post(
            f'/api/orders/{order["id"]}/payments',
            json={'amount': '10', 'method': 'pix'},
            headers=self._as(self.vendor_id),
        )
        self.assertEqual(forbidden.status_code, 403)

    def test_order_status_transitions_are_enforced(self) -> None:
        order = self._converted_order()
        vendor = self._as(self.vendor_id)

        skipped = self.client.post(f'/api/orders/{order["id"]}/status', json={'status': 'SHIPPED'}, headers=vendor)
        self.assertEqual(skipped.status_code, 409)
        self.assertEqual(skipped.json()['detail']['code'], 'INVALID_TRANSITION')

        cancelled = self.client.post(f'/api/orders/{order["id"]}/status', json={'status': 'CANCELLED'}, headers=vendor)
        self.assertEqual(cancelled.status_code, 200, cancelled.text)

        locked = self.client.put(
            f'/api/orders/{order["id"]}/value', json={'total_value': '500'}, headers=self._as(self.admin_id)
        )
        self.assertEqual(locked.status_code, 409)
        self.assertEqual(locked.json()['detail']['code'], 'ORDER_LOCKED')

    def test_manual_receivable_routes(self) -> None:
        finance = self._as(self.finance_id)
        created = self.client.post(
            '/api/receivables',
            json={'amount': '300', 'description': 'Booth rental', 'client_id': self.client_id},
            headers=finance,
        )
        self.assertEqual(created.status_code, 201, created.text)
        receivable = created.json()
        self.assertTrue(receivable['is_manual'])

        receipt = self.client.post(
            f'/api/receivables/{receivable["id"]}/receipts', json={'amount': '300', 'method': 'pix'}, headers=finance
        )
        self.assertEqual(receipt.status_code, 201, receipt.text)
        self.assertEqual(receipt.json()['status'], 'PAID')


if __name__ == '__main__':
    unittest.main()
