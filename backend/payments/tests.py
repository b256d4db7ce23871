from datetime import date, timedelta
from decimal import Decimal
from io import StringIO
from unittest.mock import MagicMock, patch

import requests
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIRequestFactory, force_authenticate

from accounts.models import User
from bookings.models import Booking
from notifications.models import Notification
from services.booking_management import update_booking_status
from services.payments import (
	PaymentGatewayError,
	PaymentValidationError,
	PayoutError,
	create_driver_payout,
	create_payment_transaction,
	extend_payment_transaction,
	get_driver_payout_history,
	get_payment_dashboard,
	get_payout_statistics,
	process_payment,
	process_weekly_payouts,
	send_balance_reminders,
	settle_payout,
	suspend_overdue_payments,
	trigger_manual_payout,
)
from .calculations import (
	calculate_balance_due_date,
	calculate_payment_breakdown,
	calculate_payment_split,
	derive_payment_status,
)
from .gateway import GatewayResponse, PayHereGateway, get_gateway, MockGateway
from .models import DriverPayout, DriverWallet, PaymentCharge, PaymentTransaction
from .tasks import process_weekly_payouts_task
from .views import AdminPayoutSettleView, AdminPayoutView, BookingPaymentView, DriverPayoutListView

PERIOD_END = date(2030, 1, 31)


class PaymentCalculationTests(SimpleTestCase):
	def test_upfront_is_a_quarter_of_total(self):
		breakdown = calculate_payment_breakdown(Decimal('10000'), PERIOD_END)

		self.assertEqual(breakdown.upfront_amount, Decimal('2500'))
		self.assertEqual(breakdown.balance_amount, Decimal('7500'))
		self.assertEqual(breakdown.balance_due_date, date(2030, 1, 29))

	def test_upfront_rounds_up(self):
		breakdown = calculate_payment_breakdown(Decimal('1001'), PERIOD_END)
		self.assertEqual(breakdown.upfront_amount, Decimal('251'))
		self.assertEqual(breakdown.balance_amount, Decimal('750'))

	def test_split_of_one_thousand(self):
		split = calculate_payment_split(Decimal('1000'))

		self.assertEqual(split.payhere_fee, Decimal('33'))
		self.assertEqual(split.system_commission, Decimal('150'))
		self.assertEqual(split.driver_earning, Decimal('817'))

	def test_split_parts_always_add_up(self):
		for amount in ('1', '3', '99', '1234', '7500'):
			split = calculate_payment_split(Decimal(amount))
			self.assertEqual(split.payhere_fee + split.system_commission + split.driver_earning, Decimal(amount))
			self.assertGreaterEqual(split.driver_earning, 0)

	def test_balance_due_two_days_before_end(self):
		self.assertEqual(calculate_balance_due_date(date(2030, 3, 1)), date(2030, 2, 27))

	def test_derived_status(self):
		self.assertEqual(derive_payment_status(100, 0, 0), 'pending')
		self.assertEqual(derive_payment_status(100, 25, 0), 'partial')
		self.assertEqual(derive_payment_status(100, 25, 75), 'completed')


class PaymentServiceTests(TestCase):
	def setUp(self):
		self.parent = User.objects.create_user(username='parent', password='pass1234', role='parent')
		self.driver = User.objects.create_user(username='driver', password='pass1234', role='driver')
		self.booking = Booking.objects.create(
			parent=self.parent,
			driver=self.driver,
			pickup_latitude=Decimal('6.927100'),
			pickup_longitude=Decimal('79.861200'),
			dropoff_latitude=Decimal('6.900000'),
			dropoff_longitude=Decimal('79.870000'),
			ride_date=date(2030, 1, 1),
			end_date=PERIOD_END,
			recurring_days=23,
			total_price=Decimal('10000'),
		)
		self.payment = create_payment_transaction(self.booking)

	def test_plan_matches_booking(self):
		self.assertEqual(self.payment.status, 'pending')
		self.assertEqual(self.payment.upfront_amount, Decimal('2500'))
		self.assertEqual(self.payment.balance_due_date, date(2030, 1, 29))

	def test_upfront_then_balance_completes_plan(self):
		with self.captureOnCommitCallbacks(execute=True):
			result = process_payment(self.payment, Decimal('2500'), 'upfront')

		payment = result.transaction
		self.assertEqual(payment.status, 'partial')
		self.assertEqual(payment.upfront_paid, Decimal('2500'))
		self.assertEqual(result.charge.payhere_fee, Decimal('83'))
		self.assertEqual(result.charge.system_commission, Decimal('375'))
		self.assertEqual(result.charge.driver_earning, Decimal('2042'))
		self.assertTrue(result.charge.gateway_transaction_id.startswith('txn_'))

		wallet = DriverWallet.objects.get(driver=self.driver)
		self.assertEqual(wallet.total_earnings, Decimal('2042'))
		self.assertTrue(Notification.objects.filter(recipient=self.parent, type='payment').exists())

		with self.captureOnCommitCallbacks(execute=True):
			result = process_payment(payment, Decimal('7500'), 'balance')

		self.assertEqual(result.transaction.status, 'completed')
		self.assertEqual(result.transaction.remaining_amount, Decimal('0'))
		wallet.refresh_from_db()
		self.assertEqual(wallet.total_earnings, result.transaction.driver_earning)

	def test_validation_rules(self):
		with self.assertRaises(PaymentValidationError):
			process_payment(self.payment, Decimal('2000'), 'upfront')
		with self.assertRaises(PaymentValidationError):
			process_payment(self.payment, Decimal('50'), 'balance')
		with self.assertRaises(PaymentValidationError):
			process_payment(self.payment, Decimal('2500'), 'balance')
		with self.assertRaises(PaymentValidationError):
			process_payment(self.payment, Decimal('20000'), 'upfront')
		with self.assertRaises(PaymentValidationError):
			process_payment(self.payment, Decimal('2500'), 'refund')

		self.assertFalse(PaymentCharge.objects.exists())

	def test_upfront_cannot_be_paid_twice(self):
		process_payment(self.payment, Decimal('2500'), 'upfront')
		self.payment.refresh_from_db()

		with self.assertRaises(PaymentValidationError):
			process_payment(self.payment, Decimal('2500'), 'upfront')

	def test_failed_plan_rejects_charges(self):
		self.payment.status = 'failed'
		self.payment.save()

		with self.assertRaises(PaymentValidationError):
			process_payment(self.payment, Decimal('2500'), 'upfront')

	def test_stale_copies_cannot_overpay(self):
		process_payment(self.payment, Decimal('2500'), 'upfront')
		first = PaymentTransaction.objects.get(id=self.payment.id)
		second = PaymentTransaction.objects.get(id=self.payment.id)

		process_payment(first, Decimal('7500'), 'balance')
		with self.assertRaises(PaymentValidationError):
			process_payment(second, Decimal('7500'), 'balance')

		second.refresh_from_db()
		self.assertEqual(second.upfront_paid + second.balance_paid, second.total_amount)
		self.assertEqual(second.status, 'completed')
		self.assertEqual(PaymentCharge.objects.filter(transaction=second, status='completed').count(), 2)

	def test_stale_copy_cannot_pay_upfront_twice(self):
		stale = PaymentTransaction.objects.get(id=self.payment.id)
		process_payment(self.payment, Decimal('2500'), 'upfront')

		with self.assertRaises(PaymentValidationError):
			process_payment(stale, Decimal('2500'), 'upfront')

	def test_cancelled_booking_stops_billing(self):
		process_payment(self.payment, Decimal('2500'), 'upfront')
		update_booking_status(self.parent, self.booking.id, 'cancelled', reason='Changed school')

		self.payment.refresh_from_db()
		self.assertEqual(self.payment.status, 'failed')
		due = self.payment.balance_due_date
		self.assertEqual(send_balance_reminders(today=due - timedelta(days=1)), 0)
		self.assertEqual(suspend_overdue_payments(today=due + timedelta(days=1)), 0)
		with self.assertRaises(PaymentValidationError):
			process_payment(self.payment, Decimal('7500'), 'balance')

	def test_cancelled_booking_is_not_charged_even_if_plan_is_open(self):
		process_payment(self.payment, Decimal('2500'), 'upfront')
		Booking.objects.filter(id=self.booking.id).update(status='cancelled')
		due = self.payment.balance_due_date

		self.assertEqual(send_balance_reminders(today=due - timedelta(days=1)), 0)
		self.assertEqual(suspend_overdue_payments(today=due + timedelta(days=1)), 0)
		with self.assertRaises(PaymentValidationError):
			process_payment(self.payment, Decimal('7500'), 'balance')

	@patch('services.payments.payment_service.get_gateway')
	def test_gateway_decline_records_failed_charge(self, mock_get_gateway):
		mock_get_gateway.return_value.charge.return_value = GatewayResponse(success=False, message='Card declined')

		with self.assertRaises(PaymentGatewayError):
			process_payment(self.payment, Decimal('2500'), 'upfront')

		self.payment.refresh_from_db()
		self.assertEqual(self.payment.status, 'pending')
		self.assertEqual(self.payment.upfront_paid, Decimal('0'))
		charge = PaymentCharge.objects.get(transaction=self.payment)
		self.assertEqual(charge.status, 'failed')
		self.assertEqual(charge.message, 'Card declined')

	def test_extension_reopens_completed_plan(self):
		process_payment(self.payment, Decimal('2500'), 'upfront')
		self.payment.refresh_from_db()
		process_payment(self.payment, Decimal('7500'), 'balance')

		self.booking.end_date = PERIOD_END + timedelta(days=5)
		self.booking.save()
		payment = extend_payment_transaction(self.booking, Decimal('1250'))

		self.assertEqual(payment.status, 'partial')
		self.assertEqual(payment.total_amount, Decimal('11250'))
		self.assertEqual(payment.remaining_amount, Decimal('1250'))
		self.assertEqual(payment.balance_due_date, date(2030, 2, 3))

	def test_reminders_are_sent_once_per_window(self):
		process_payment(self.payment, Decimal('2500'), 'upfront')
		due = self.payment.balance_due_date

		self.assertEqual(send_balance_reminders(today=due - timedelta(days=5)), 0)
		self.assertEqual(send_balance_reminders(today=due - timedelta(days=3)), 1)
		self.assertEqual(send_balance_reminders(today=due - timedelta(days=2)), 0)
		self.assertEqual(send_balance_reminders(today=due - timedelta(days=1)), 1)
		self.assertEqual(send_balance_reminders(today=due), 0)

		self.payment.refresh_from_db()
		self.assertTrue(self.payment.reminder_three_days_sent)
		self.assertTrue(self.payment.reminder_one_day_sent)

	def test_overdue_plan_is_suspended(self):
		process_payment(self.payment, Decimal('2500'), 'upfront')
		due = self.payment.balance_due_date

		self.assertEqual(suspend_overdue_payments(today=due), 0)
		self.assertEqual(suspend_overdue_payments(today=due + timedelta(days=1)), 1)

		self.payment.refresh_from_db()
		self.assertEqual(self.payment.status, 'suspended')
		self.assertTrue(Notification.objects.filter(recipient=self.driver, title='Payment Overdue').exists())

		# Paying the balance lifts the suspension
		result = process_payment(self.payment, Decimal('7500'), 'balance')
		self.assertEqual(result.transaction.status, 'completed')

	def test_dashboard_totals(self):
		process_payment(self.payment, Decimal('2500'), 'upfront')
		dashboard = get_payment_dashboard()

		self.assertEqual(Decimal(dashboard['totals']['collected']), Decimal('2500'))
		self.assertEqual(Decimal(dashboard['totals']['outstanding']), Decimal('7500'))
		self.assertEqual(dashboard['by_status'], {'partial': 1})

	def test_reminder_command(self):
		out = StringIO()
		call_command('process_payment_reminders', '--reminders-only', stdout=out)
		self.assertIn('Sent 0 reminder(s)', out.getvalue())


class GatewayTests(TestCase):
	config = {
		'MERCHANT_ID': '1211149',
		'MERCHANT_SECRET': 'secret',
		'CURRENCY': 'LKR',
		'ENDPOINT': 'https://sandbox.payhere.lk/pay/checkout',
	}

	def test_default_gateway_is_mock(self):
		self.assertIsInstance(get_gateway(), MockGateway)

	def test_payhere_success(self):
		session = MagicMock()
		session.post.return_value.json.return_value = {'status': 'success', 'payment_id': 'PH-1'}

		response = PayHereGateway(self.config, session=session).charge(Decimal('2500'), {}, 'booking-1-upfront')

		self.assertTrue(response.success)
		self.assertEqual(response.transaction_id, 'PH-1')
		payload = session.post.call_args.kwargs['data']
		self.assertEqual(payload['amount'], '2500.00')
		self.assertEqual(payload['order_id'], 'booking-1-upfront')
		self.assertEqual(len(payload['hash']), 32)

	def test_payhere_decline(self):
		session = MagicMock()
		session.post.return_value.json.return_value = {'status': 'failed', 'message': 'Insufficient funds'}

		response = PayHereGateway(self.config, session=session).charge(Decimal('100'), {}, 'ref')

		self.assertFalse(response.success)
		self.assertEqual(response.message, 'Insufficient funds')

	def test_payhere_unreachable(self):
		session = MagicMock()
		session.post.side_effect = requests.ConnectionError('down')

		response = PayHereGateway(self.config, session=session).charge(Decimal('100'), {}, 'ref')
		self.assertFalse(response.success)


class BookingPaymentViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.parent = User.objects.create_user(username='parent', password='pass1234', role='parent')
		self.driver = User.objects.create_user(username='driver', password='pass1234', role='driver')
		self.booking = Booking.objects.create(
			parent=self.parent,
			driver=self.driver,
			pickup_latitude=Decimal('6.927100'),
			pickup_longitude=Decimal('79.861200'),
			dropoff_latitude=Decimal('6.900000'),
			dropoff_longitude=Decimal('79.870000'),
			ride_date=date(2030, 1, 1),
			end_date=PERIOD_END,
			total_price=Decimal('1000'),
		)
		self.payment = create_payment_transaction(self.booking)

	def _pay(self, payload):
		request = self.factory.post('/api/payments/booking/%d/' % self.booking.id, payload, format='json')
		force_authenticate(request, user=self.parent)
		return BookingPaymentView.as_view()(request, booking_id=self.booking.id)

	def test_pay_upfront(self):
		response = self._pay({'amount': '250', 'payment_type': 'upfront'})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['payment']['status'], 'partial')
		self.assertTrue(response.data['transaction_id'])

	def test_invalid_amount_is_bad_request(self):
		response = self._pay({'amount': '100', 'payment_type': 'upfront'})
		self.assertEqual(response.status_code, 400)

	@patch('services.payments.payment_service.get_gateway')
	def test_gateway_error_is_bad_gateway(self, mock_get_gateway):
		mock_get_gateway.return_value.charge.return_value = GatewayResponse(success=False, message='Gateway timeout')

		response = self._pay({'amount': '250', 'payment_type': 'upfront'})

		self.assertEqual(response.status_code, 502)
		self.assertEqual(response.data['error'], 'Gateway timeout')

	def test_other_parent_cannot_see_plan(self):
		other = User.objects.create_user(username='other', password='pass1234', role='parent')
		request = self.factory.get('/api/payments/booking/%d/' % self.booking.id)
		force_authenticate(request, user=other)
		response = BookingPaymentView.as_view()(request, booking_id=self.booking.id)
		self.assertEqual(response.status_code, 404)


class PayoutServiceTests(TestCase):
	def setUp(self):
		self.driver = User.objects.create_user(username='driver', password='pass1234', role='driver')
		self.other_driver = User.objects.create_user(username='driver2', password='pass1234', role='driver')
		self.idle_driver = User.objects.create_user(username='driver3', password='pass1234', role='driver')
		self.wallet = DriverWallet.objects.create(
			driver=self.driver, total_earnings=Decimal('817'), pending_amount=Decimal('817'))
		DriverWallet.objects.create(
			driver=self.other_driver, total_earnings=Decimal('500'), pending_amount=Decimal('500'))
		DriverWallet.objects.create(driver=self.idle_driver, total_earnings=Decimal('300'), paid_amount=Decimal('300'))

	def test_weekly_payout_moves_pending_to_paid(self):
		with self.captureOnCommitCallbacks(execute=True):
			summary = process_weekly_payouts(batch_id='payout_test')

		self.assertEqual(summary['batch_id'], 'payout_test')
		self.assertEqual(summary['payouts'], 2)
		self.assertEqual(Decimal(summary['total_amount']), Decimal('1317'))

		self.wallet.refresh_from_db()
		self.assertEqual(self.wallet.pending_amount, Decimal('0'))
		self.assertEqual(self.wallet.paid_amount, Decimal('817'))
		self.assertEqual(self.wallet.total_earnings, Decimal('817'))
		self.assertIsNotNone(self.wallet.last_payout_at)

		payout = DriverPayout.objects.get(driver=self.driver)
		self.assertEqual(payout.status, 'pending')
		self.assertEqual(payout.amount, Decimal('817'))
		self.assertFalse(DriverPayout.objects.filter(driver=self.idle_driver).exists())
		self.assertTrue(Notification.objects.filter(recipient=self.driver, title='Weekly Payout').exists())

	def test_driver_is_paid_once_per_batch(self):
		self.assertIsNotNone(create_driver_payout(self.driver.id, 'payout_1'))
		DriverWallet.objects.filter(id=self.wallet.id).update(pending_amount=Decimal('100'))

		self.assertIsNone(create_driver_payout(self.driver.id, 'payout_1'))

		self.wallet.refresh_from_db()
		self.assertEqual(self.wallet.pending_amount, Decimal('100'))
		self.assertEqual(self.wallet.paid_amount, Decimal('817'))
		self.assertEqual(DriverPayout.objects.filter(driver=self.driver).count(), 1)

	def test_failed_transfer_returns_amount_to_pending(self):
		payout = create_driver_payout(self.driver.id, 'payout_1')

		with self.captureOnCommitCallbacks(execute=True):
			settled = settle_payout(payout.id, False, 'Account closed')

		self.assertEqual(settled.status, 'failed')
		self.assertEqual(settled.failure_reason, 'Account closed')
		self.assertIsNotNone(settled.processed_at)
		self.wallet.refresh_from_db()
		self.assertEqual(self.wallet.pending_amount, Decimal('817'))
		self.assertEqual(self.wallet.paid_amount, Decimal('0'))
		self.assertTrue(Notification.objects.filter(recipient=self.driver, title='Payout Failed').exists())

		with self.assertRaises(PayoutError):
			settle_payout(payout.id, True)

	def test_history_and_statistics(self):
		payout = create_driver_payout(self.driver.id, 'payout_1')
		settle_payout(payout.id, True)
		create_driver_payout(self.other_driver.id, 'payout_1')

		history = get_driver_payout_history(self.driver.id)
		self.assertEqual([p.id for p in history], [payout.id])
		self.assertEqual(history[0].status, 'completed')

		stats = get_payout_statistics()
		self.assertEqual(Decimal(stats['paid_this_week']), Decimal('817'))
		self.assertEqual(Decimal(stats['paid_this_month']), Decimal('817'))
		self.assertEqual(Decimal(stats['pending_payouts']), Decimal('500'))
		self.assertEqual(Decimal(stats['failed_payouts']), Decimal('0'))

	def test_manual_payout_for_one_driver(self):
		summary = trigger_manual_payout(self.driver.id)

		self.assertEqual(summary['payouts'], 1)
		self.assertTrue(summary['batch_id'].startswith('manual_payout_'))
		self.assertFalse(DriverPayout.objects.filter(driver=self.other_driver).exists())

		self.assertEqual(trigger_manual_payout(self.driver.id)['payouts'], 0)

	def test_weekly_task_runs_the_batch(self):
		summary = process_weekly_payouts_task()

		self.assertEqual(summary['payouts'], 2)
		self.assertEqual(DriverPayout.objects.values('batch_id').distinct().count(), 1)

	@patch('services.payments.payout_service.create_driver_payout')
	def test_broken_wallet_does_not_stop_batch(self, mock_create):
		mock_create.side_effect = [RuntimeError('boom'), DriverPayout(amount=Decimal('500'))]

		summary = process_weekly_payouts(batch_id='payout_test')

		self.assertEqual(summary['payouts'], 1)
		self.assertEqual(Decimal(summary['total_amount']), Decimal('500'))


class PayoutViewTests(TestCase):
	def setUp(self):
		self.factory = APIRequestFactory()
		self.admin = User.objects.create_user(username='admin', password='pass1234', role='admin')
		self.driver = User.objects.create_user(username='driver', password='pass1234', role='driver')
		DriverWallet.objects.create(driver=self.driver, total_earnings=Decimal('817'), pending_amount=Decimal('817'))

	def _admin_post(self, view, path, payload, **kwargs):
		request = self.factory.post(path, payload, format='json')
		force_authenticate(request, user=self.admin)
		return view.as_view()(request, **kwargs)

	def test_admin_triggers_payout_and_driver_sees_it(self):
		response = self._admin_post(AdminPayoutView, '/api/payments/admin/payouts/', {'driver_id': self.driver.id})
		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['payouts'], 1)

		request = self.factory.get('/api/payments/payouts/')
		force_authenticate(request, user=self.driver)
		response = DriverPayoutListView.as_view()(request)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['count'], 1)
		self.assertEqual(response.data['payouts'][0]['status'], 'pending')

	def test_admin_settles_payout(self):
		payout = create_driver_payout(self.driver.id, 'payout_1')

		response = self._admin_post(
			AdminPayoutSettleView, '/api/payments/admin/payouts/%d/settle/' % payout.id,
			{'succeeded': True}, payout_id=payout.id,
		)
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['status'], 'completed')

		response = self._admin_post(
			AdminPayoutSettleView, '/api/payments/admin/payouts/%d/settle/' % payout.id,
			{'succeeded': False}, payout_id=payout.id,
		)
		self.assertEqual(response.status_code, 400)

	def test_driver_cannot_run_payouts(self):
		request = self.factory.post('/api/payments/admin/payouts/', {}, format='json')
		force_authenticate(request, user=self.driver)
		response = AdminPayoutView.as_view()(request)

		self.assertEqual(response.status_code, 403)
		self.assertFalse(DriverPayout.objects.exists())
