import csv
import io
import tempfile
import unittest
from datetime import date
from pathlib import Path

from core.bidding_record import FIELD_NAMES, BiddingRecord
from core.exporter import export_filename, to_tabular_text, write_export
from core.metrics import refresh_derived


class TabularTextTest(unittest.TestCase):
    def test_empty_list_produces_nothing(self) -> None:
        self.assertEqual("", to_tabular_text([]))

    def test_header_follows_declared_field_order(self) -> None:
        text = to_tabular_text([BiddingRecord(id="a1")])
        self.assertEqual(",".join(FIELD_NAMES), text.split("\n")[0])

    def test_doubles_embedded_quotes(self) -> None:
        text = to_tabular_text([BiddingRecord(id="a1", objeto='Cabo "flex" 2,5mm')])
        self.assertIn('"Cabo ""flex"" 2,5mm"', text)

    def test_non_string_values_render_unquoted(self) -> None:
        record = refresh_derived(
            BiddingRecord(id="a1", registro_preco=True, valor_referencia=10000.0, valor_disputa=8000)
        )
        row = next(csv.DictReader(io.StringIO(to_tabular_text([record]))))
        line = to_tabular_text([record]).split("\n")[1]
        self.assertIn(",true,false,", line)
        self.assertEqual("10000", row["valor_referencia"])
        self.assertEqual("2000", row["valor_saving"])
        self.assertEqual("20", row["saving_percent"])
        self.assertTrue(line.startswith('"a1",'))

    def test_strings_with_commas_and_quotes_round_trip(self) -> None:
        records = [
            BiddingRecord(id="a1", objeto='Luvas, "nitrílicas"', entidade="SESI"),
            BiddingRecord(id="b2", objeto="Papel A4, 75g", entidade="SENAI"),
        ]
        rows = list(csv.DictReader(io.StringIO(to_tabular_text(records))))
        self.assertEqual(2, len(rows))
        self.assertEqual('Luvas, "nitrílicas"', rows[0]["objeto"])
        self.assertEqual("Papel A4, 75g", rows[1]["objeto"])
        self.assertEqual("SENAI", rows[1]["entidade"])

    def test_embedded_newlines_are_not_escaped(self) -> None:
        text = to_tabular_text([BiddingRecord(id="a1", observacao="linha 1\nlinha 2")])
        self.assertIn('"linha 1\nlinha 2"', text)


class ExportFileTest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_filename_is_date_stamped(self) -> None:
        self.assertEqual(
            "LICIT_PRO_BACKUP_2024-05-01.csv",
            export_filename("LICIT_PRO_BACKUP", date(2024, 5, 1)),
        )

    def test_write_export_skips_empty(self) -> None:
        self.assertIsNone(write_export([], Path(self.tmpdir.name), "relatorio"))
        self.assertEqual([], list(Path(self.tmpdir.name).iterdir()))

    def test_write_export_creates_file(self) -> None:
        target = Path(self.tmpdir.name) / "exports"
        path = write_export([BiddingRecord(id="a1")], target, "relatorio", today=date(2024, 1, 2))
        self.assertEqual(target / "relatorio_2024-01-02.csv", path)
        self.assertTrue(path.read_text(encoding="utf-8").startswith("id,entidade,"))


if __name__ == "__main__":
    unittest.main()
