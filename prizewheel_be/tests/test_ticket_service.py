import threading
from datetime import datetime, timezone, timedelta
from types import SimpleNamespace
from unittest.mock import patch

from prizewheel_be.models import db, Ticket
from prizewheel_be.services import ticket_service
from prizewheel_be.exceptions import (
    TicketNotFoundException, TicketAlreadyUsedException, TicketExpiredException,
    PrizeNotFoundException, ValidationException, InternalServerErrorException
)
from prizewheel_be.error_codes import ErrorCodes
from prizewheel_be.tests.test_api import BaseTestCase, CODE_PATTERN


class TicketCodeTests(BaseTestCase):

    def test_generated_code_format(self):
        code = ticket_service.generate_ticket_code(now=datetime(2031, 5, 1, tzinfo=timezone.utc))
        self.assertRegex(code, CODE_PATTERN)
        self.assertTrue(code.startswith("PRIZE-2031-"))

    def test_unique_code_retries_on_collision(self):
        segment = self._create_segment("Car", position=0)
        self._create_ticket(segment, code="PRIZE-2024-000000")

        codes = iter(["PRIZE-2024-000000", "PRIZE-2024-000000", "PRIZE-2024-111111"])
        with patch.object(ticket_service, 'generate_ticket_code', side_effect=lambda: next(codes)):
            ticket = ticket_service.create_ticket(segment_id=segment.id)
        self.assertEqual(ticket.code, "PRIZE-2024-111111")

    def test_unique_code_gives_up(self):
        segment = self._create_segment("Car", position=0)
        self._create_ticket(segment, code="PRIZE-2024-000000")

        with patch.object(ticket_service, 'generate_ticket_code', return_value="PRIZE-2024-000000"):
            with self.assertRaises(InternalServerErrorException) as ctx:
                ticket_service.create_ticket(segment_id=segment.id)
        self.assertEqual(ctx.exception.status_code, 500)


class TicketCreationTests(BaseTestCase):

    def test_create_ticket_normalizes_expiry_to_utc(self):
        segment = self._create_segment("Car", position=0)
        local = timezone(timedelta(hours=2))
        ticket = ticket_service.create_ticket(
            segment_id=segment.id, expires_at=datetime(2030, 1, 1, 14, 0, tzinfo=local)
        )
        self.assertFalse(ticket.used)
        stored = ticket_service.get_ticket_by_code(ticket.code)
        self.assertEqual(stored.expires_at.replace(tzinfo=None), datetime(2030, 1, 1, 12, 0))

    def test_create_ticket_unknown_segment(self):
        with self.assertRaises(ValidationException) as ctx:
            ticket_service.create_ticket(segment_id=42)
        self.assertEqual(ctx.exception.error_code, ErrorCodes.SEGMENT_NOT_FOUND)
        self.assertEqual(ctx.exception.status_code, 400)

    def test_batch_of_five(self):
        segment = self._create_segment("Car", position=0)
        tickets = ticket_service.create_ticket_batch(segment.id, 5)
        codes = {t.code for t in tickets}
        self.assertEqual(len(codes), 5)
        self.assertTrue(all(not t.used for t in tickets))
        self.assertTrue(all(t.segment_id == segment.id for t in tickets))

    def test_batch_without_segment_draws_each_ticket(self):
        self._create_segment("Never", position=0, weight=0)
        winner = self._create_segment("Always", position=1, weight=1)
        tickets = ticket_service.create_ticket_batch(None, 3)
        self.assertEqual({t.segment_id for t in tickets}, {winner.id})


class TicketRedemptionTests(BaseTestCase):

    def test_redeem_returns_prize_and_marks_used(self):
        segments = self._create_wheel(4)
        ticket = self._create_ticket(segments[2])

        result = ticket_service.redeem_ticket(ticket.code, '198.51.100.4')

        self.assertEqual(result['segment'].id, segments[2].id)
        self.assertTrue(result['ticket'].used)
        self.assertEqual(result['ticket'].ip_address, '198.51.100.4')
        self.assertIsNotNone(result['ticket'].used_at)
        self.assertEqual(len(result['segments']), 4)
        # wedge 2 of 4 is centred at 225 degrees
        self.assertAlmostEqual(result['rotation'], 405.0)

    def test_redeem_unknown_code(self):
        self._create_wheel(2)
        with self.assertRaises(TicketNotFoundException):
            ticket_service.redeem_ticket("PRIZE-2024-NOPE00", '127.0.0.1')
        self.assertEqual(db.session.scalar(db.select(db.func.count(Ticket.id)).where(Ticket.used.is_(True))), 0)

    def test_redeem_expired(self):
        segments = self._create_wheel(2)
        ticket = self._create_ticket(segments[0], expires_at=datetime.now(timezone.utc) - timedelta(seconds=1))
        with self.assertRaises(TicketExpiredException) as ctx:
            ticket_service.redeem_ticket(ticket.code, '127.0.0.1')
        self.assertIn('expires_at', ctx.exception.details)

        db.session.refresh(ticket)
        self.assertFalse(ticket.used)
        self.assertIsNone(ticket.used_at)

    def test_redeem_missing_segment(self):
        ticket = self._create_ticket(SimpleNamespace(id=999))
        self._create_wheel(2)
        with self.assertRaises(PrizeNotFoundException):
            ticket_service.redeem_ticket(ticket.code, '127.0.0.1')
        db.session.refresh(ticket)
        self.assertFalse(ticket.used)

    def test_claim_only_succeeds_once(self):
        segments = self._create_wheel(2)
        ticket = self._create_ticket(segments[0])

        self.assertTrue(ticket_service.claim_ticket(ticket.id, '10.0.0.1'))
        self.assertFalse(ticket_service.claim_ticket(ticket.id, '10.0.0.2'))

        db.session.refresh(ticket)
        self.assertEqual(ticket.ip_address, '10.0.0.1')

    def test_redeem_loses_race_after_stale_read(self):
        segments = self._create_wheel(2)
        ticket = self._create_ticket(segments[0])
        # Another request read the ticket while it was unused, then this one claimed it first
        stale = SimpleNamespace(id=ticket.id, used=False, segment_id=segments[0].id,
                                is_expired=lambda now=None: False)
        self.assertTrue(ticket_service.claim_ticket(ticket.id, '10.0.0.1'))

        with patch.object(ticket_service, 'get_ticket_by_code', return_value=stale):
            with self.assertRaises(TicketAlreadyUsedException):
                ticket_service.redeem_ticket(ticket.code, '10.0.0.2')

        db.session.refresh(ticket)
        self.assertEqual(ticket.ip_address, '10.0.0.1')

    def test_concurrent_spins_award_one_prize(self):
        segments = self._create_wheel(3)
        ticket = self._create_ticket(segments[1])
        barrier = threading.Barrier(2)
        results = []
        lock = threading.Lock()

        def spin(address):
            client = self.app.test_client()
            barrier.wait()
            response = client.post('/api/spin', json={"code": ticket_code},
                                   environ_base={'REMOTE_ADDR': address})
            with lock:
                results.append((response.status_code, response.get_json()))

        ticket_code = ticket.code
        threads = [threading.Thread(target=spin, args=(f'10.0.0.{i}',)) for i in (1, 2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        statuses = sorted(status for status, _ in results)
        self.assertEqual(statuses, [200, 400])
        rejected = next(body for status, body in results if status == 400)
        self.assertEqual(rejected['error_code'], ErrorCodes.TICKET_ALREADY_USED)

        db.session.expire_all()
        stored = db.session.get(Ticket, ticket.id)
        self.assertTrue(stored.used)
        winner = next(body for status, body in results if status == 200)
        self.assertEqual(stored.ip_address, winner['ticket']['ip_address'])


class WinnerListingTests(BaseTestCase):

    def test_only_used_tickets_are_listed(self):
        segments = self._create_wheel(2)
        self._create_ticket(segments[0], code="PRIZE-2024-000001")
        self._create_ticket(segments[1], code="PRIZE-2024-000002", used=True)

        winners = ticket_service.list_winners()
        self.assertEqual([w['ticket'].code for w in winners], ["PRIZE-2024-000002"])
        self.assertEqual(winners[0]['prize'], "Prize 1")

    def test_unknown_prize_label(self):
        self._create_wheel(2)
        self._create_ticket(SimpleNamespace(id=999), code="PRIZE-2024-000003", used=True)
        winners = ticket_service.list_winners()
        self.assertEqual(winners[0]['prize'], ticket_service.UNKNOWN_PRIZE)
