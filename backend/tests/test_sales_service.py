"""
Sale transaction engine tests.

Covers atomic deduction across lines, per-type reservation, invoice
numbering and the server-side totals check.
"""

from decimal import Decimal

import pytest

from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from jms.extensions import db
from jms.models import Product, Sale, SaleItem
from jms.services import inventory_service, sales_service, sequence_service
from jms.services.inventory_service import InsufficientStock, InsufficientWeight, ProductNotFound
from jms.services.sales_service import MISSING_MOBILE_MESSAGE, SaleNotFound
from jms.validation import ConflictError, InfrastructureError, ValidationError

from factories import CUSTOMER, line


def _product(product_id) -> Product:
    return db.session.get(Product, product_id)


class TestCreateSale:

    def test_standard_sale_then_stock_shortfall(self, ring):
        sale = sales_service.create_sale(CUSTOMER, [line(ring, quantity=2, weight="18")], user_id=7)

        assert sale.invoice_number == 1
        assert sale.created_by_user_id == 7
        product = _product(ring.id)
        assert product.stock == 3
        assert product.weight == Decimal("32")

        with pytest.raises(InsufficientStock) as exc:
            sales_service.create_sale(CUSTOMER, [line(ring, quantity=4, weight="4")])
        assert str(exc.value) == "Insufficient stock for: Gold Ring 22K. Available: 3"
        assert exc.value.resource == "stock"
        assert exc.value.available == 3

        product = _product(ring.id)
        assert product.stock == 3
        assert product.weight == Decimal("32")
        assert db.session.query(Sale).count() == 1

    def test_weight_shortfall_names_remaining_grams(self, ring):
        with pytest.raises(InsufficientWeight) as exc:
            sales_service.create_sale(CUSTOMER, [line(ring, quantity=1, weight="50.5")])
        assert str(exc.value) == "Insufficient weight for Gold Ring 22K. Only 50g left."
        assert _product(ring.id).weight == Decimal("50")

    def test_failure_on_second_line_rolls_back_every_line(self, ring, chain, silver_pool):
        items = [
            line(ring, quantity=1, weight="10"),
            line(chain, quantity=3, weight="5"),
            line(silver_pool, weight="100", price="80"),
        ]
        with pytest.raises(InsufficientStock) as exc:
            sales_service.create_sale(CUSTOMER, items)
        assert "Gold Chain" in str(exc.value)

        assert _product(ring.id).stock == 5
        assert _product(ring.id).weight == Decimal("50")
        assert _product(chain.id).stock == 2
        assert _product(silver_pool.id).weight == Decimal("1000")
        assert db.session.query(Sale).count() == 0
        assert db.session.query(SaleItem).count() == 0

    def test_bulk_weight_line_deducts_weight_only(self, silver_pool):
        sale = sales_service.create_sale(
            CUSTOMER, [line(silver_pool, quantity=3, weight="250.5", price="80")]
        )
        product = _product(silver_pool.id)
        assert product.stock == 0
        assert product.weight == Decimal("749.5")
        assert sale.subtotal == Decimal("20040.00")

    def test_repeated_product_lines_see_earlier_deductions(self, ring):
        sales_service.create_sale(
            CUSTOMER,
            [line(ring, quantity=2, weight="18"), line(ring, quantity=2, weight="18")],
        )
        product = _product(ring.id)
        assert product.stock == 1
        assert product.weight == Decimal("14")

    def test_repeated_product_lines_cannot_oversell(self, ring):
        with pytest.raises(InsufficientStock) as exc:
            sales_service.create_sale(
                CUSTOMER,
                [line(ring, quantity=3, weight="5"), line(ring, quantity=3, weight="5")],
            )
        assert exc.value.available == 2
        assert _product(ring.id).stock == 5

    def test_unknown_product(self, ring):
        items = [line(ring), {"productId": 9999, "name": "Temple Necklace", "sellingWeight": "5", "sellingPricePerGram": "6000"}]
        with pytest.raises(ProductNotFound) as exc:
            sales_service.create_sale(CUSTOMER, items)
        assert str(exc.value) == "Product not found: Temple Necklace"
        assert _product(ring.id).stock == 5

    def test_inactive_product_rejected(self, ring):
        inventory_service.deactivate_product(ring.id)
        with pytest.raises(ProductNotFound):
            sales_service.create_sale(CUSTOMER, [line(ring)])

    def test_legacy_id_key_accepted(self, ring):
        item = line(ring)
        item["_id"] = item.pop("productId")
        sales_service.create_sale(CUSTOMER, [item])
        assert _product(ring.id).stock == 4

    def test_missing_customer_name_uses_default(self, ring):
        sale = sales_service.create_sale({"mobile": "9000000000"}, [line(ring)])
        assert sale.customer_name == "Walk-in Customer"
        assert sale.customer_address == ""


class TestSaleValidation:

    @pytest.mark.parametrize("customer", [{}, {"name": "Asha", "mobile": ""}, {"name": "Asha", "mobile": "   "}])
    def test_mobile_required(self, ring, customer):
        with pytest.raises(ValidationError) as exc:
            sales_service.create_sale(customer, [line(ring)])
        assert str(exc.value) == MISSING_MOBILE_MESSAGE

    def test_empty_cart_rejected(self, db_session):
        with pytest.raises(ValidationError) as exc:
            sales_service.create_sale(CUSTOMER, [])
        assert str(exc.value) == MISSING_MOBILE_MESSAGE

    @pytest.mark.parametrize(
        "overrides",
        [
            {"sellingWeight": "0"},
            {"sellingWeight": "-2"},
            {"sellingWeight": "abc"},
            {"sellingPricePerGram": "-1"},
            {"quantity": 0},
            {"quantity": 1.5},
        ],
    )
    def test_bad_line_rejected_before_any_write(self, ring, overrides):
        item = line(ring)
        item.update(overrides)
        with pytest.raises(ValidationError):
            sales_service.create_sale(CUSTOMER, [item])
        assert _product(ring.id).stock == 5
        assert sequence_service.current_value("invoiceNumber") == 0

    def test_zero_value_sale_rejected(self, ring):
        with pytest.raises(ValidationError):
            sales_service.create_sale(CUSTOMER, [line(ring, price="0")])

    def test_advance_above_total_rejected(self, ring):
        with pytest.raises(ValidationError) as exc:
            sales_service.create_sale(CUSTOMER, [line(ring)], {"advancePayment": "60000.01"})
        assert str(exc.value) == "Advance payment and discount exceed the sale total."


class TestSaleTotals:

    def test_totals_computed_from_lines(self, ring):
        sale = sales_service.create_sale(
            CUSTOMER,
            [line(ring, weight="10", price="6000", making="500")],
            {"advancePayment": "10000", "discount": "1000", "oldGoldWeight": "2.5"},
        )
        assert sale.subtotal == Decimal("60000.00")
        assert sale.total_making_charges == Decimal("5000.00")
        assert sale.total_amount == Decimal("65000.00")
        assert sale.balance_due == Decimal("54000.00")
        assert sale.old_gold_weight == Decimal("2.5")

    def test_matching_client_totals_accepted(self, ring):
        payment = {"subtotal": 60000, "totalMakingCharges": 0, "totalAmount": "60000.00", "balanceDue": 60000}
        sale = sales_service.create_sale(CUSTOMER, [line(ring)], payment)
        assert sale.total_amount == Decimal("60000.00")

    def test_client_total_mismatch_rejected(self, ring):
        with pytest.raises(ValidationError) as exc:
            sales_service.create_sale(CUSTOMER, [line(ring)], {"totalAmount": 59000})
        assert exc.value.details["field"] == "totalAmount"
        assert exc.value.details["computed"] == 60000.0
        assert _product(ring.id).stock == 5

    def test_compute_totals_rounds_each_line(self):
        lines = [
            sales_service.LineRequest(
                product_id=1, name="a", quantity=1,
                selling_weight=Decimal("1.333"), selling_price_per_gram=Decimal("10.00"),
                selling_purity=None, making_charge_per_gram=Decimal("1.00"),
            ),
            sales_service.LineRequest(
                product_id=2, name="b", quantity=1,
                selling_weight=Decimal("1.333"), selling_price_per_gram=Decimal("10.00"),
                selling_purity=None, making_charge_per_gram=Decimal("0"),
            ),
        ]
        totals = sales_service.compute_totals(lines, {})
        assert totals.subtotal == Decimal("26.66")
        assert totals.total_making_charges == Decimal("1.33")
        assert totals.total_amount == Decimal("27.99")
        assert totals.balance_due == Decimal("27.99")


class TestInvoiceNumbers:

    def test_numbers_increase_per_sale(self, ring, chain):
        first = sales_service.create_sale(CUSTOMER, [line(ring)])
        second = sales_service.create_sale(CUSTOMER, [line(chain, weight="5")])
        assert (first.invoice_number, second.invoice_number) == (1, 2)

    def test_rejected_sale_does_not_consume_a_number(self, ring, chain):
        sales_service.create_sale(CUSTOMER, [line(ring)])
        with pytest.raises(InsufficientStock):
            sales_service.create_sale(CUSTOMER, [line(chain, quantity=5, weight="5")])
        assert sequence_service.current_value("invoiceNumber") == 1
        assert sales_service.create_sale(CUSTOMER, [line(chain, weight="5")]).invoice_number == 2


class TestSaleRecord:

    def test_line_snapshot_survives_product_edits(self, ring):
        sales_service.create_sale(CUSTOMER, [line(ring, weight="10", price="6000", purity="22")])
        inventory_service.update_product(ring.id, {"name": "Renamed Ring", "pricePerGram": "7000"})

        item = sales_service.get_sale(1).items[0]
        assert item.name == "Gold Ring 22K"
        assert item.selling_price_per_gram == Decimal("6000")
        assert item.selling_purity == "22"

    def test_to_dict_shape(self, ring, chain):
        sales_service.create_sale(CUSTOMER, [line(ring), line(chain, weight="5")])
        body = sales_service.get_sale(1).to_dict()
        assert body["invoiceNumber"] == 1
        assert body["customer"]["mobile"] == CUSTOMER["mobile"]
        assert [i["name"] for i in body["items"]] == ["Gold Ring 22K", "Gold Chain"]
        assert body["items"][1]["sellingWeight"] == 5.0
        assert body["totalAmount"] == 90000.0

    def test_get_unknown_sale(self, db_session):
        with pytest.raises(SaleNotFound):
            sales_service.get_sale(42)

    def test_list_newest_first(self, ring):
        sales_service.create_sale(CUSTOMER, [line(ring)])
        sales_service.create_sale(CUSTOMER, [line(ring)])
        sales_service.create_sale(CUSTOMER, [line(ring)])
        assert [s.invoice_number for s in sales_service.list_sales()] == [3, 2, 1]
        assert [s.invoice_number for s in sales_service.list_sales(limit=2)] == [3, 2]


class TestSaleRollback:

    def _assert_nothing_committed(self, ring):
        product = _product(ring.id)
        assert product.stock == 5
        assert product.weight == Decimal("50")
        assert db.session.query(Sale).count() == 0
        assert db.session.query(SaleItem).count() == 0
        assert sequence_service.current_value("invoiceNumber") == 0

    def test_store_failure_surfaces_as_infrastructure_error(self, ring, monkeypatch):
        def store_down(name):
            raise OperationalError("UPDATE counters SET value=value + 1", {}, Exception("database is locked"))

        monkeypatch.setattr(sales_service, "next_value", store_down)

        with pytest.raises(InfrastructureError) as exc:
            sales_service.create_sale(CUSTOMER, [line(ring, quantity=2, weight="18")])
        assert exc.value.status_code == 503
        assert str(exc.value) == "Service temporarily unavailable."
        self._assert_nothing_committed(ring)

    def test_version_conflict_surfaces_as_conflict(self, ring, monkeypatch):
        policy_for = sales_service.reservation_policy_for

        def concurrent_writer_then_policy(product):
            # Another writer commits a change to the row after it was loaded
            db.session.execute(
                text("UPDATE products SET version_id = version_id + 1 WHERE id = :id"),
                {"id": product.id},
            )
            return policy_for(product)

        monkeypatch.setattr(sales_service, "reservation_policy_for", concurrent_writer_then_policy)

        with pytest.raises(ConflictError) as exc:
            sales_service.create_sale(CUSTOMER, [line(ring, quantity=2, weight="18")])
        assert exc.value.status_code == 409
        self._assert_nothing_committed(ring)
