import string
import unittest
from unittest import mock

from core.bidding_record import BiddingRecord, StatusDisputa, blank_record
from core.errors import UnknownFieldError
from core.record_editor import (
    apply_field_change,
    apply_fields,
    coerce_field_value,
    create_record,
    generate_id,
    normalize_record,
)


class CoerceFieldValueTest(unittest.TestCase):
    def test_numeric_parse_failure_becomes_zero(self) -> None:
        self.assertEqual(0, coerce_field_value("valor_referencia", "abc"))
        self.assertEqual(0, coerce_field_value("itens_solicitados", ""))
        self.assertEqual(0, coerce_field_value("valor_disputa", None))

    def test_numeric_accepts_decimal_comma(self) -> None:
        self.assertAlmostEqual(1234.56, coerce_field_value("valor_referencia", "1.234,56"))
        self.assertAlmostEqual(99.5, coerce_field_value("valor_disputa", "99.5"))

    def test_integer_fields_truncate(self) -> None:
        self.assertEqual(12, coerce_field_value("participantes", "12.7"))
        self.assertIsInstance(coerce_field_value("meta_dias", 30.0), int)

    def test_checkbox_values(self) -> None:
        self.assertTrue(coerce_field_value("registro_preco", "on"))
        self.assertTrue(coerce_field_value("minuta", True))
        self.assertFalse(coerce_field_value("minuta", "false"))
        self.assertFalse(coerce_field_value("registro_preco", None))

    def test_status_matches_enumeration(self) -> None:
        self.assertEqual("CONCLUÍDA", coerce_field_value("status_disputa", "concluída"))
        self.assertEqual("CONCLUÍDA", coerce_field_value("status_disputa", "CONCLUIDA"))
        self.assertEqual("EM ANÁLISE", coerce_field_value("status_disputa", "EM ANÁLISE"))

    def test_text_fields(self) -> None:
        self.assertEqual("2024", coerce_field_value("ano", 2024.0))
        self.assertEqual("", coerce_field_value("objeto", None))


class ApplyFieldChangeTest(unittest.TestCase):
    def setUp(self) -> None:
        self.record = apply_fields(
            BiddingRecord(id="abc123def"),
            {
                "valor_referencia": 10000,
                "valor_disputa": 8000,
                "inicio_cca": "2024-01-01",
                "resultado_final": "2024-01-31",
            },
        )

    def test_recomputes_every_derived_field(self) -> None:
        updated = apply_field_change(self.record, "valor_disputa", "5000")
        self.assertEqual(5000, updated.valor_saving)
        self.assertAlmostEqual(50.0, updated.saving_percent)
        self.assertEqual(30, updated.lead_time_indicador)

    def test_does_not_mutate_input(self) -> None:
        apply_field_change(self.record, "resultado_final", "2024-02-10")
        self.assertEqual("2024-01-31", self.record.resultado_final)
        self.assertEqual(30, self.record.lead_time_indicador)

    def test_date_change_updates_indicator(self) -> None:
        updated = apply_field_change(self.record, "resultado_final", "2024-02-10")
        self.assertEqual(40, updated.lead_time_indicador)
        self.assertEqual(40, updated.cca_final)
        self.assertEqual("abc123def", updated.id)

    def test_idempotent(self) -> None:
        once = apply_field_change(self.record, "itens_fracassados", 3)
        twice = apply_field_change(once, "itens_fracassados", 3)
        self.assertEqual(once, twice)

    def test_accepts_out_of_range_values(self) -> None:
        updated = apply_field_change(self.record, "itens_solicitados", -4)
        self.assertEqual(-4, updated.itens_solicitados)
        self.assertEqual(0, updated.percent_itens_fracassados)

    def test_accepts_legacy_field_names(self) -> None:
        updated = apply_field_change(self.record, "valorReferencia", 20000)
        self.assertEqual(12000, updated.valor_saving)

    def test_rejects_id_derived_and_unknown_fields(self) -> None:
        for name in ("id", "valor_saving", "lead_time_indicador", "nao_existe"):
            with self.assertRaises(UnknownFieldError):
                apply_field_change(self.record, name, 1)


class CreateRecordTest(unittest.TestCase):
    def test_generates_id_and_derived_fields(self) -> None:
        record = create_record({"entidade": "SESI", "valor_referencia": 100, "valor_disputa": 90})
        self.assertEqual(9, len(record.id))
        self.assertTrue(set(record.id) <= set(string.digits + string.ascii_lowercase))
        self.assertEqual(10, record.valor_saving)
        self.assertEqual("SESI", record.entidade)

    def test_ignores_posted_id_and_derived_values(self) -> None:
        record = create_record({"id": "forged", "valor_saving": 999, "valor_referencia": 10})
        self.assertNotEqual("forged", record.id)
        self.assertEqual(10, record.valor_saving)

    def test_uses_template_defaults(self) -> None:
        template = blank_record(meta_dias=40, status=StatusDisputa.SUSPENSA.value)
        record = create_record({}, template=template)
        self.assertEqual(40, record.meta_dias)
        self.assertEqual("SUSPENSA", record.status_disputa)

    def test_generate_id_avoids_existing(self) -> None:
        choices = ["a"] * 9 + ["b"] * 9
        with mock.patch("core.record_editor.secrets.choice", side_effect=choices):
            new_id = generate_id({"aaaaaaaaa"})
        self.assertEqual("bbbbbbbbb", new_id)


class NormalizeRecordTest(unittest.TestCase):
    def test_recomputes_stale_derived_fields(self) -> None:
        record = normalize_record(
            {
                "id": "legacy1",
                "numDisputa": "12/2024",
                "valorReferencia": "100",
                "valorDisputa": 50,
                "valorSaving": 999,
                "statusDisputa": "DESERTA",
                "inicioCCA": "2024-01-01",
                "resultadoFinal": "2024-01-11",
                "leadTimeIndicador": 0,
                "unknownColumn": "ignored",
            }
        )
        self.assertEqual("legacy1", record.id)
        self.assertEqual("12/2024", record.num_disputa)
        self.assertEqual(50, record.valor_saving)
        self.assertEqual("DESERTA", record.status_disputa)
        self.assertEqual(10, record.lead_time_indicador)


if __name__ == "__main__":
    unittest.main()
