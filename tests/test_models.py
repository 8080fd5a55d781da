"""Tests for response models in heroku_api_client.models."""

import unittest
from datetime import date
from heroku_api_client.errors import InvalidInputError, SchemaViolation
from heroku_api_client.models import (
    Formation,
    Invoice,
    OneOffDyno,
    RateLimit,
    decode_dyno_list,
    decode_formation_quantity,
    decode_invoices,
    validate_month,
)


class TestValidateMonth(unittest.TestCase):
    """Tests for validate_month."""

    def test_accepts_year_and_month(self):
        self.assertEqual(validate_month("2020-05"), "2020-05")
        self.assertEqual(validate_month("1999-12"), "1999-12")

    def test_rejects_malformed(self):
        malformed = [
            "2020-5", "20-05-01", "", "2020/05", "2020-13", "2020-00", "abcd-ef",
            "2020-0\u00b2", "\u0662\u0660\u0662\u0660-05",
        ]
        for month in malformed:
            with self.subTest(month=month):
                with self.assertRaises(InvalidInputError):
                    validate_month(month)

    def test_rejects_non_string(self):
        with self.assertRaises(InvalidInputError):
            validate_month(202005)


class TestOneOffDyno(unittest.TestCase):
    """Tests for the OneOffDyno dataclass."""

    def test_from_dict(self):
        dyno = OneOffDyno.from_dict({"name": "run.1", "state": "starting"})
        self.assertEqual(dyno.name, "run.1")

    def test_from_dict_without_name(self):
        with self.assertRaises(SchemaViolation):
            OneOffDyno.from_dict({"state": "starting"})

    def test_from_non_object(self):
        with self.assertRaises(SchemaViolation):
            OneOffDyno.from_dict(["run.1"])


class TestDecodeDynoList(unittest.TestCase):
    """Tests for decode_dyno_list."""

    def test_passes_array_through(self):
        data = [{"name": "web.1"}, {"name": "worker.1"}]
        self.assertIs(decode_dyno_list(data), data)

    def test_passes_object_through(self):
        data = {"name": "web.1"}
        self.assertIs(decode_dyno_list(data), data)

    def test_rejects_scalars(self):
        for data in ["web.1", 1, None]:
            with self.subTest(data=data):
                with self.assertRaises(SchemaViolation):
                    decode_dyno_list(data)


class TestFormation(unittest.TestCase):
    """Tests for the Formation dataclass."""

    def test_from_dict(self):
        formation = Formation.from_dict(
            {"type": "worker", "quantity": 2, "size": "standard-2x", "id": "abc"}
        )
        self.assertEqual(formation, Formation(type="worker", quantity=2, size="standard-2x"))

    def test_from_dict_missing_fields(self):
        for missing in ["type", "quantity", "size"]:
            data = {"type": "worker", "quantity": 2, "size": "standard-2x"}
            del data[missing]
            with self.subTest(missing=missing):
                with self.assertRaises(SchemaViolation) as ctx:
                    Formation.from_dict(data)
                self.assertIn(missing, str(ctx.exception))

    def test_decode_quantity_coerces_to_int(self):
        self.assertEqual(decode_formation_quantity({"quantity": "3"}), 3)

    def test_decode_quantity_rejects_garbage(self):
        with self.assertRaises(SchemaViolation):
            decode_formation_quantity({"quantity": "many"})
        with self.assertRaises(SchemaViolation):
            decode_formation_quantity({"size": "standard-1x"})


class TestInvoice(unittest.TestCase):
    """Tests for the Invoice dataclass."""

    def test_from_dict_complete(self):
        invoice = Invoice.from_dict({
            "id": "01234567-89ab-cdef-0123-456789abcdef",
            "number": 9403943,
            "period_start": "2019-05-01T00:00:00Z",
            "period_end": "2019-06-01T00:00:00Z",
            "state": 1,
            "total": 100.0,
            "charges_total": 100.0,
            "credits_total": 0.0,
            "created_at": "2019-06-01T12:00:00Z",
            "updated_at": "2019-06-01T12:00:00Z",
        })
        self.assertEqual(invoice.number, 9403943)
        self.assertEqual(invoice.period_start_date, date(2019, 5, 1))
        self.assertEqual(invoice.total, 100.0)

    def test_from_dict_minimal(self):
        invoice = Invoice.from_dict({"period_start": "2019-05-01"})
        self.assertIsNone(invoice.id)
        self.assertEqual(invoice.period_start_date, date(2019, 5, 1))

    def test_from_dict_without_period_start(self):
        with self.assertRaises(SchemaViolation):
            Invoice.from_dict({"id": "abc"})

    def test_unparsable_period_start(self):
        with self.assertRaises(SchemaViolation):
            Invoice.from_dict({"period_start": "May 2019"})

    def test_covers_month(self):
        invoice = Invoice(period_start="2019-05-01T00:00:00Z")
        self.assertTrue(invoice.covers_month("2019-05"))
        self.assertFalse(invoice.covers_month("2019-06"))

    def test_decode_invoices_sorts_by_period_start(self):
        invoices = decode_invoices([
            {"period_start": "2019-06-01T00:00:00Z"},
            {"period_start": "2018-12-01T00:00:00Z"},
            {"period_start": "2019-05-01T00:00:00Z"},
        ])
        self.assertEqual(
            [i.period_start[:7] for i in invoices],
            ["2018-12", "2019-05", "2019-06"],
        )

    def test_decode_invoices_requires_every_period_start(self):
        with self.assertRaises(SchemaViolation):
            decode_invoices([{"period_start": "2019-06-01"}, {"id": "x"}])

    def test_decode_invoices_requires_array(self):
        with self.assertRaises(SchemaViolation):
            decode_invoices({"period_start": "2019-06-01"})


class TestRateLimit(unittest.TestCase):
    """Tests for the RateLimit dataclass."""

    def test_from_dict(self):
        self.assertEqual(RateLimit.from_dict({"remaining": 4500}).remaining, 4500)

    def test_from_dict_missing_remaining(self):
        with self.assertRaises(SchemaViolation):
            RateLimit.from_dict({})


if __name__ == "__main__":
    unittest.main()
