import unittest
import os
import sys
from unittest import mock

from fastapi.testclient import TestClient

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import main
from main import app
from api.estimates import get_tax_data_cache
from services.tax_data import TaxDataCache, TaxDataUnavailable, FetchStatus

FLAT_TABLE = {'single': {'brackets': [{'rate': 0.10, 'cap': None}]}}
FINITE_TOP_TABLE = {'single': [{'rate': 0.10, 'max': 11925}, {'rate': 0.12, 'max': 48475}]}


def failing_fetcher(year):
    raise TaxDataUnavailable("Failed to fetch tax data: offline")


class APITestCase(unittest.TestCase):
    fetcher = staticmethod(lambda year: FLAT_TABLE)

    def setUp(self):
        self.cache = TaxDataCache(fetcher=self.fetcher)
        app.dependency_overrides[get_tax_data_cache] = lambda: self.cache
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()


class TestAPIEndpoints(APITestCase):
    def test_health(self):
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "healthy", "service": "tax-estimator-api"})

    def test_constants(self):
        resp = self.client.get("/api/constants")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data['years'], [2025, 2026])
        self.assertEqual(data['standard_deductions']['2026']['single'], 16100)
        self.assertIsNone(data['fallback_brackets']['single'][-1]['cap'])

    def test_estimate_uses_fallback_then_live_tables(self):
        payload = {'year': 2026, 'filing_status': 'single', 'regular_incomes': [60000]}

        first = self.client.post("/api/estimate", json=payload)
        self.assertEqual(first.status_code, 200)
        data = first.json()
        self.assertTrue(data['success'])
        self.assertEqual(data['data_source']['status'], 'pending')
        self.assertAlmostEqual(data['result']['total_tax'], 5029.5)
        self.assertIn(64575, data['snap_points'])

        second = self.client.post("/api/estimate", json=payload)
        data = second.json()
        self.assertEqual(data['data_source']['status'], 'ready')
        self.assertAlmostEqual(data['result']['total_tax'], 4390)
        self.assertEqual(data['snap_points'], [])

    def test_estimate_sums_income_streams(self):
        payload = {
            'year': 2026,
            'filing_status': 'married_jointly',
            'regular_incomes': [50000, 40000],
            'cap_gain_incomes': [10000, 5000],
        }
        data = self.client.post("/api/estimate", json=payload).json()
        self.assertEqual(data['result']['total_gross_income'], 105000)
        self.assertEqual(data['result']['final_deduction'], 32200)
        self.assertIn('bar', data['charts'])
        self.assertIn('flow', data['charts'])

    def test_validation_errors(self):
        bad_payloads = [
            {'filing_status': 'widowed'},
            {'regular_incomes': [1, 2, 3, 4, 5, 6]},
            {'regular_incomes': []},
            {'regular_incomes': [-100]},
            {'itemized_deduction': -1},
        ]
        for payload in bad_payloads:
            resp = self.client.post("/api/estimate", json=payload)
            self.assertEqual(resp.status_code, 422, payload)

    def test_tax_data_endpoint(self):
        resp = self.client.get("/api/tax-data/2026")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data['status'], 'ready')
        self.assertEqual(data['table'], FLAT_TABLE)
        self.assertEqual(self.cache.current().year, 2026)

    def test_tax_data_unknown_year(self):
        resp = self.client.get("/api/tax-data/1999")
        self.assertEqual(resp.status_code, 404)

    def test_refresh(self):
        resp = self.client.post("/api/tax-data/2025/refresh")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['status'], 'ready')

    def test_export_breakdown(self):
        payload = {'year': 2026, 'filing_status': 'single', 'regular_incomes': [60000]}
        resp = self.client.post("/api/export-breakdown", json=payload)
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.headers['content-type'].startswith('text/csv'))
        lines = resp.text.strip().splitlines()
        self.assertEqual(lines[0], 'type,label,rate,income,tax')
        self.assertTrue(lines[1].startswith('Deduction'))
        self.assertTrue(lines[-1].startswith('Total'))


class TestFetchFailure(APITestCase):
    fetcher = staticmethod(failing_fetcher)

    def test_estimate_continues_with_fallback(self):
        payload = {'year': 2026, 'filing_status': 'single', 'regular_incomes': [60000]}
        self.client.post("/api/estimate", json=payload)

        data = self.client.post("/api/estimate", json=payload).json()
        self.assertEqual(data['data_source']['status'], 'failed')
        self.assertEqual(data['data_source']['advisory'], "Could not load tax tables. Using fallback data.")
        self.assertAlmostEqual(data['result']['total_tax'], 5029.5)

    def test_snap(self):
        payload = {'year': 2026, 'filing_status': 'single', 'regular_incomes': [60000], 'value': 63000}
        data = self.client.post("/api/snap", json=payload).json()
        self.assertEqual(data['snapped'], 64575)

        payload['snap_enabled'] = False
        data = self.client.post("/api/snap", json=payload).json()
        self.assertEqual(data['snapped'], 63000)


class TestFiniteTopTable(APITestCase):
    fetcher = staticmethod(lambda year: FINITE_TOP_TABLE)

    def test_published_top_cap_stays_a_snap_point(self):
        payload = {'year': 2026, 'filing_status': 'single', 'regular_incomes': [60000]}
        self.client.post("/api/estimate", json=payload)

        data = self.client.post("/api/estimate", json=payload).json()
        self.assertEqual(data['data_source']['status'], 'ready')
        self.assertEqual(data['snap_points'], [28025, 64575])
        # Income above the top cap is still taxed at the top rate
        self.assertAlmostEqual(data['result']['total_tax'], 11925 * 0.10 + 31975 * 0.12)

        snap = self.client.post("/api/snap", json=dict(payload, value=63000)).json()
        self.assertEqual(snap['snapped'], 64575)


class TestStartupPrefetch(unittest.TestCase):
    def test_prefetch_loads_default_year(self):
        cache = TaxDataCache(fetcher=lambda year: FLAT_TABLE)
        with mock.patch.object(main.settings, 'prefetch', True), \
                mock.patch('main.get_tax_data_cache', return_value=cache):
            with TestClient(app) as client:
                self.assertEqual(client.get("/health").status_code, 200)

        state = cache.state(main.settings.default_year)
        self.assertEqual(state.status, FetchStatus.READY)
        self.assertEqual(state.table, FLAT_TABLE)
        self.assertEqual(cache.current().year, main.settings.default_year)

    def test_prefetch_failure_does_not_block_startup(self):
        cache = TaxDataCache(fetcher=failing_fetcher)
        with mock.patch.object(main.settings, 'prefetch', True), \
                mock.patch('main.get_tax_data_cache', return_value=cache):
            with TestClient(app) as client:
                self.assertEqual(client.get("/health").status_code, 200)

        self.assertEqual(cache.state(main.settings.default_year).status, FetchStatus.FAILED)


if __name__ == '__main__':
    unittest.main()
