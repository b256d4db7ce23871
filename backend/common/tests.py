from unittest.mock import MagicMock

import requests
from django.test import SimpleTestCase

from .maps import AutocompleteSession, MapsClient, MapsResult
from .utils import as_point, calculate_distance, distance_between, round_km


class GeoTests(SimpleTestCase):
	def test_zero_distance(self):
		self.assertEqual(calculate_distance(6.9271, 79.8612, 6.9271, 79.8612), 0)

	def test_one_hundredth_degree_of_latitude(self):
		self.assertAlmostEqual(calculate_distance(6.92, 79.86, 6.93, 79.86), 1.112, places=2)

	def test_distance_is_symmetric(self):
		a = {'lat': 6.9271, 'lng': 79.8612}
		b = {'lat': 7.2906, 'lng': 80.6337}
		self.assertAlmostEqual(distance_between(a, b), distance_between(b, a))

	def test_as_point(self):
		self.assertIsNone(as_point(None, 79.86))
		self.assertEqual(as_point('6.9', '79.8'), {'lat': 6.9, 'lng': 79.8})
		self.assertEqual(round_km(1.23456), 1.23)


def fake_session(payload=None, error=None):
	session = MagicMock()
	if error is not None:
		session.get.side_effect = error
	else:
		session.get.return_value.json.return_value = payload
	return session


class MapsClientTests(SimpleTestCase):
	def test_geocode(self):
		session = fake_session({
			'status': 'OK',
			'results': [{
				'formatted_address': 'Royal College, Colombo 07',
				'geometry': {'location': {'lat': 6.9, 'lng': 79.86}},
			}],
		})
		result = MapsClient(api_key='key', session=session).geocode('Royal College')

		self.assertTrue(result.ok)
		self.assertEqual(result.value['formatted_address'], 'Royal College, Colombo 07')
		self.assertEqual(session.get.call_args.kwargs['params']['key'], 'key')

	def test_missing_api_key(self):
		session = fake_session()
		result = MapsClient(api_key='', session=session).geocode('anywhere')

		self.assertFalse(result.ok)
		session.get.assert_not_called()

	def test_provider_error_status(self):
		session = fake_session({'status': 'REQUEST_DENIED', 'error_message': 'Bad key'})
		result = MapsClient(api_key='key', session=session).reverse_geocode(6.9, 79.86)

		self.assertFalse(result.ok)
		self.assertEqual(result.error, 'Bad key')

	def test_network_error(self):
		session = fake_session(error=requests.ConnectionError('offline'))
		result = MapsClient(api_key='key', session=session).nearby_places(6.9, 79.86, 'hospital')
		self.assertFalse(result.ok)

	def test_autocomplete(self):
		session = fake_session({'status': 'OK', 'predictions': [{'place_id': 'p1', 'description': 'Colombo'}]})
		result = MapsClient(api_key='key', session=session).autocomplete('Colo')
		self.assertEqual(result.value, [{'place_id': 'p1', 'description': 'Colombo'}])


class AutocompleteSessionTests(SimpleTestCase):
	def test_superseded_query_is_stale(self):
		client = MagicMock()
		session = AutocompleteSession(client=client)

		def respond(text):
			if text == 'Col':
				# A newer keystroke arrives while this request is in flight
				session.cancel()
			return MapsResult(ok=True, value=[text])

		client.autocomplete.side_effect = respond

		self.assertTrue(session.query('Col').stale)
		latest = session.query('Colombo')
		self.assertFalse(latest.stale)
		self.assertEqual(latest.value, ['Colombo'])
