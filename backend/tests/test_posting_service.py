"""
Receipt posting tests: validation, SALE movements, edit mode and numbering.
"""

import pytest

from conftest import make_receipt
from posledger.records import MOVEMENT_SALE, CompanyInfo, ReceiptItem
from posledger.services import balance_service, posting_service
from posledger.services.event_store import LedgerStore
from posledger.services.posting_service import PostingError
from posledger.validation import ConfigurationError, ValidationError


@pytest.fixture
def shop_store():
    return LedgerStore(shop_settings=CompanyInfo(name="ab Desai & Co. Ltd", shop_name="ROSE-HILL"))


def test_post_writes_receipt_and_one_sale_per_line(shop_store):
    receipt = make_receipt("100", items=[("A1", "Widget", 2, 115.0), ("B2", "Gadget", 1, 40.0)])
    result = posting_service.post_receipt(shop_store, receipt)

    assert shop_store.find_receipt("100") is not None
    sales = [m for m in shop_store.movements if m.type == MOVEMENT_SALE]
    assert [(m.item_code, m.quantity) for m in sales] == [("A1", 2), ("B2", 1)]
    assert all(m.reference == "100" for m in sales)
    assert all(m.location == "ROSE-HILL" for m in sales)
    assert result.receipt.sender.shop_name == "ROSE-HILL"
    assert balance_service.on_hand_balance(shop_store.movements, "A1") == -2


def test_post_resets_draft_to_next_number(shop_store):
    result = posting_service.post_receipt(shop_store, make_receipt("116261", tax_rate=12.5))

    assert result.next_receipt_number == "116262"
    assert shop_store.draft.receipt_number == "116262"
    assert shop_store.draft.tax_rate == 12.5
    assert shop_store.draft.sender == shop_store.shop_settings


def test_non_integer_number_gets_no_suggestion(shop_store):
    result = posting_service.post_receipt(shop_store, make_receipt("R-77"))
    assert result.next_receipt_number is None
    assert shop_store.draft.receipt_number == ""


def test_editing_replaces_sale_movements(shop_store):
    posting_service.post_receipt(shop_store, make_receipt("100", items=[("A1", "Widget", 2, 115.0)]))
    draft_before = shop_store.draft

    edited = make_receipt("100", items=[("A1", "Widget", 5, 115.0)])
    result = posting_service.post_receipt(shop_store, edited, editing=True)

    assert result.next_receipt_number is None
    assert len(shop_store.receipts) == 1
    assert balance_service.on_hand_balance(shop_store.movements, "A1") == -5
    assert shop_store.draft is draft_before


def test_reposting_existing_number_does_not_double_count(shop_store):
    posting_service.post_receipt(shop_store, make_receipt("100"))
    posting_service.post_receipt(shop_store, make_receipt("100"))
    assert balance_service.on_hand_balance(shop_store.movements, "A1") == -2


def test_line_without_code_is_recorded_as_na(shop_store):
    posting_service.post_receipt(shop_store, make_receipt("100", items=[("", "Service", 1, 50.0)]))
    assert shop_store.movements[0].item_code == "NA"


class TestValidation:
    def test_missing_customer(self, shop_store):
        with pytest.raises(PostingError) as exc:
            posting_service.post_receipt(shop_store, make_receipt("100", customer="  "))
        assert exc.value.details == {"field": "received_from"}
        assert shop_store.receipts == ()
        assert shop_store.movements == ()

    def test_needs_a_priced_line(self, shop_store):
        with pytest.raises(PostingError):
            posting_service.post_receipt(shop_store, make_receipt(items=[("A1", "Widget", 1, 0.0)]))

    def test_negative_quantity(self, shop_store):
        receipt = make_receipt(items=[("A1", "Widget", 1, 10.0), ("B2", "Gadget", -1, 5.0)])
        with pytest.raises(PostingError):
            posting_service.post_receipt(shop_store, receipt)

    def test_invalid_tax_rate(self, shop_store):
        with pytest.raises(ConfigurationError):
            posting_service.post_receipt(shop_store, make_receipt(tax_rate=-100))
        assert shop_store.receipts == ()


class TestPayload:
    def test_date_is_normalized(self):
        receipt = posting_service.receipt_from_payload({
            "receiptNumber": " 100 ",
            "date": "2026-10-19T14:30:00Z",
            "items": [{"id": "x", "description": "Widget", "quantity": 1, "rate": 10}],
        })
        assert receipt.receipt_number == "100"
        assert receipt.date == "2026-10-19"
        assert receipt.items[0].rate == 10.0

    def test_bad_date(self):
        with pytest.raises(ValidationError):
            posting_service.receipt_from_payload({"receiptNumber": "1", "date": "19/10/2026"})

    def test_unknown_payment_method(self):
        with pytest.raises(ValidationError):
            posting_service.receipt_from_payload({"receiptNumber": "1", "paymentMethod": "Bitcoin"})

    @pytest.mark.parametrize("quantity", [2.5, "2.5", "two", True])
    def test_quantity_must_be_a_whole_number(self, quantity):
        with pytest.raises(ValidationError):
            posting_service.receipt_from_payload({
                "receiptNumber": "1",
                "items": [{"id": "x", "description": "Widget", "quantity": quantity, "rate": 10}],
            })

    def test_rate_must_be_numeric(self):
        with pytest.raises(ValidationError):
            posting_service.receipt_from_payload({
                "receiptNumber": "1",
                "items": [{"id": "x", "description": "Widget", "quantity": 1, "rate": "ten"}],
            })

    def test_blank_quantity_and_rate_take_defaults(self):
        receipt = posting_service.receipt_from_payload({
            "receiptNumber": "1",
            "items": [{"id": "x", "description": "", "quantity": "", "rate": ""}],
        })
        assert receipt.items[0].quantity == 1
        assert receipt.items[0].rate == 0.0

    def test_unknown_currency(self):
        with pytest.raises(ValidationError):
            posting_service.receipt_from_payload({"receiptNumber": "1", "currency": "XYZ"})

    def test_known_currency(self):
        receipt = posting_service.receipt_from_payload({"receiptNumber": "1", "currency": "EUR"})
        assert receipt.currency == "EUR"


def test_new_draft_defaults():
    sender = CompanyInfo(name="Co", shop_name="TRIANON")
    draft = posting_service.new_draft(sender, today="2026-10-19")

    assert draft.receipt_number == "116261"
    assert draft.date == "2026-10-19"
    assert draft.location == "trianon"
    assert draft.settlement_of == "Full settlement of above."
    assert len(draft.items) == 1
    assert isinstance(draft.items[0], ReceiptItem)


def test_recall(shop_store):
    posting_service.post_receipt(shop_store, make_receipt("116261"))
    posting_service.post_receipt(shop_store, make_receipt("116262"))

    assert posting_service.recall_receipt(shop_store, "11") is None
    assert posting_service.recall_receipt(shop_store, "6261").receipt_number == "116261"
    assert posting_service.recall_receipt(shop_store, "1162").receipt_number == "116262"
    assert posting_service.recall_receipt(shop_store, "999") is None


def test_editing_keeps_the_original_sender(shop_store):
    posting_service.post_receipt(shop_store, make_receipt("100"))
    issued = shop_store.find_receipt("100")
    shop_store.set_shop_settings(CompanyInfo(name="ab Desai & Co. Ltd", shop_name="TRIANON"))

    edited = issued.with_changes(received_from="Jane Client Ltd")
    result = posting_service.post_receipt(shop_store, edited, editing=True)

    assert result.receipt.sender.shop_name == "ROSE-HILL"
    assert all(m.location == "ROSE-HILL" for m in result.movements)


def test_new_receipt_uses_current_shop_even_with_a_stale_sender(shop_store):
    stale = make_receipt("100").with_changes(sender=CompanyInfo(name="Old Co", shop_name="TRIANON"))
    result = posting_service.post_receipt(shop_store, stale)

    assert result.receipt.sender.shop_name == "ROSE-HILL"
