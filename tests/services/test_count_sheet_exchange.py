"""Tests for CountSheetExchange row export and import."""

from datetime import date

from stock_services import CountImportRow, CountSheetRow


def _stock_two_products(create_lot, create_product, bolts):
    nuts = create_product("Nut M8")
    create_lot(bolts.id, date(2023, 1, 1), 12, "1.00")
    create_lot(nuts.id, date(2023, 1, 1), 30, "0.10")
    return nuts


class TestCountSheetRows:

    def test_rows_in_product_order(self, exchange, count_service, create_lot, create_product, bolts):
        _stock_two_products(create_lot, create_product, bolts)
        count = count_service.initiate(2023)

        rows = exchange.count_sheet_rows(count.id)

        assert rows == [
            CountSheetRow("Bolt M8", "Acme Fasteners", 12),
            CountSheetRow("Nut M8", "Acme Fasteners", 30),
        ]


class TestImportCounts:

    def test_all_rows_applied(self, exchange, count_service, create_lot, create_product, bolts):
        _stock_two_products(create_lot, create_product, bolts)
        count = count_service.initiate(2023)

        result = exchange.import_counts(count.id, [
            CountImportRow("Bolt M8", 10),
            CountImportRow("Nut M8", 30),
        ])

        assert (result.successful, result.failed, result.errors) == (2, 0, ())
        sheet = count_service.get_count_sheet(count.id)
        assert sheet.progress.percentage == 100
        assert sheet.count.item_for(bolts.id).variance == -2

    def test_bad_rows_reported_and_skipped(
        self, exchange, count_service, create_lot, create_product, bolts, captured_logs,
    ):
        _stock_two_products(create_lot, create_product, bolts)
        count = count_service.initiate(2023)

        result = exchange.import_counts(count.id, [
            CountImportRow("Bolt M8", 11),
            CountImportRow("Washer M8", 3),
            CountImportRow("Nut M8", -4),
        ])

        assert result.successful == 1
        assert result.failed == 2
        assert result.errors == (
            "Product not found: Washer M8",
            "Nut M8: Counted quantity must be a non-negative integer",
        )
        assert count_service.get_count(count.id).item_for(bolts.id).counted_quantity == 11
        records = [r for r in captured_logs() if r["message"] == "count_import_completed"]
        assert records[0]["failed"] == 2

    def test_import_into_confirmed_count_fails_per_row(
        self, exchange, count_service, create_lot, create_product, bolts,
    ):
        _stock_two_products(create_lot, create_product, bolts)
        count = count_service.initiate(2023)
        exchange.import_counts(count.id, [
            CountImportRow("Bolt M8", 12),
            CountImportRow("Nut M8", 30),
        ])
        count_service.confirm(count.id)

        result = exchange.import_counts(count.id, [CountImportRow("Bolt M8", 1)])

        assert result.successful == 0
        assert result.errors == ("Bolt M8: Cannot update confirmed year-end count",)
