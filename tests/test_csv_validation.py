from backoffice.services.csv_validation import validate_product_rows


def _row(**overrides):
    row = {
        "SKU": "A1",
        "Nome": "Serra",
        "Slug": "serra",
        "Preço": "10.00",
        "ID Categoria": "1",
    }
    row.update(overrides)
    return row


def test_valid_batch_has_no_errors():
    assert validate_product_rows([_row(), _row(SKU="B2")]) == []


def test_duplicate_sku_flags_only_second_occurrence():
    errors = validate_product_rows([_row(SKU="X"), _row(SKU="X")])
    assert len(errors) == 1
    assert errors[0].row == 3
    assert errors[0].field == "SKU"
    assert errors[0].message == "SKU is duplicated in the file"


def test_existing_sku_is_reported():
    errors = validate_product_rows([_row(SKU="OLD")], existing_skus={"OLD"})
    assert [e.message for e in errors] == ["SKU already exists"]


def test_zero_price_is_rejected():
    errors = validate_product_rows([_row(**{"Preço": "0"})])
    assert [(e.field, e.message) for e in errors] == [("Preço", "Price must be greater than zero")]


def test_unparsable_price_is_rejected():
    errors = validate_product_rows([_row(**{"Preço": "abc"})])
    assert [e.field for e in errors] == ["Preço"]


def test_all_errors_are_collected_in_row_order():
    rows = [
        _row(SKU="", Nome=""),
        _row(SKU="B2", Slug="", **{"ID Categoria": "-1"}),
    ]
    errors = validate_product_rows(rows)
    assert [(e.row, e.field) for e in errors] == [
        (2, "SKU"),
        (2, "Nome"),
        (3, "Slug"),
        (3, "ID Categoria"),
    ]


def test_internal_key_headers_are_validated_too():
    errors = validate_product_rows([{"sku": "A1", "name": "Serra", "slug": "serra", "price": "5", "category_id": "2"}])
    assert errors == []


def test_error_as_dict():
    (error,) = validate_product_rows([_row(Nome="")])
    assert error.as_dict() == {"row": 2, "field": "Nome", "value": "", "message": "Name is required"}


def test_negative_sale_price_and_stock_are_rejected():
    errors = validate_product_rows([_row(**{"Preço Promocional": "-5", "Estoque": "-3"})])
    assert [(e.field, e.message) for e in errors] == [
        ("Preço Promocional", "Sale price cannot be negative"),
        ("Estoque", "Stock cannot be negative"),
    ]


def test_empty_optional_numbers_are_accepted():
    assert validate_product_rows([_row(**{"Preço Promocional": "", "Estoque": "0"})]) == []
