from __future__ import annotations

import pytest

from shop_assistant.enums import ComparisonOutcome, Intent, ResponseType
from shop_assistant.models import Product, RatingStats, Review, ReviewBundle
from shop_assistant.response_composer import (COMPARE_CLARIFY_TEXT, NO_SEARCH_RESULTS_TEXT,
                                              PRODUCT_NOT_FOUND_TEXT, SELF_COMPARISON_TEXT,
                                              build_comparison_rows, compose_categories,
                                              compose_comparison, compose_error,
                                              compose_fallback, compose_product_list,
                                              compose_single_product, format_price)


@pytest.mark.parametrize(
    "price,text",
    [(12990000, "12.990.000đ"), (None, "Liên hệ"), (0, "Liên hệ"), (500, "500đ")],
)
def test_format_price(price, text):
    assert format_price(price) == text


def test_comparison_response_carries_table(p1, p2):
    resp = compose_comparison(Intent.COMPARE, ComparisonOutcome.COMPARED, [p1, p2])
    assert resp.is_comparison
    assert resp.response_type == ResponseType.FINAL_ANSWER
    assert [p.id for p in resp.products] == ["p1", "p2"]

    rows = {row.criterion: row.better for row in resp.comparison}
    assert rows == {"price": 1, "stock": 1, "rating": 2}


def test_comparison_rows_tie_and_missing_rating():
    a = Product(id="a", name="A", price=100, stock=3)
    b = Product(id="b", name="B", price=100, stock=3, rating=4.0)
    rows = {row.criterion: row.better for row in build_comparison_rows(a, b)}
    assert rows == {"price": 0, "stock": 0, "rating": 2}


@pytest.mark.parametrize(
    "outcome,products,text",
    [
        (ComparisonOutcome.SELF_COMPARISON, "p1", SELF_COMPARISON_TEXT),
        (ComparisonOutcome.NO_PRODUCTS, None, COMPARE_CLARIFY_TEXT),
    ],
)
def test_comparison_questions(p1, outcome, products, text):
    resp = compose_comparison(Intent.CONTINUE_COMPARISON, outcome, [p1] if products else [])
    assert resp.response_type == ResponseType.QUESTION
    assert not resp.is_comparison
    assert resp.text == text


def test_awaiting_second_prompt_names_first_product(p1):
    resp = compose_comparison(Intent.COMPARE, ComparisonOutcome.AWAITING_SECOND, [p1])
    assert "Laptop HP Pavilion" in resp.text
    assert resp.products == [p1]
    assert resp.response_type == ResponseType.QUESTION


def test_detail_text(p1):
    resp = compose_single_product(Intent.PRODUCT_DETAIL, p1, ReviewBundle(stats=RatingStats(4.5, 8)))
    assert resp.products == [p1]
    assert "15.990.000đ" in resp.text
    assert "HP-PAV-15" in resp.text
    assert "4.5 (8 đánh giá)" in resp.text
    assert "HP Store" in resp.text


def test_reviews_text_truncates(p1):
    reviews = [Review(author=None, rating=5, comment=f"review {i}") for i in range(4)]
    resp = compose_single_product(Intent.REVIEWS, p1, ReviewBundle(reviews, RatingStats(4.0, 4)), reviews_shown=3)
    assert "Khách hàng - 5⭐" in resp.text
    assert "review 2" in resp.text
    assert "review 3" not in resp.text
    assert "... và 1 đánh giá khác." in resp.text


def test_reviews_text_without_data(p1):
    resp = compose_single_product(Intent.REVIEWS, p1, None)
    assert "Chưa có đánh giá nào" in resp.text
    assert resp.response_type == ResponseType.FINAL_ANSWER


def test_seller_and_sales_text(p1, p2):
    seller = compose_single_product(Intent.SELLER_INFO, p1).text
    assert "Tên shop: HP Store" in seller
    assert "4.8" in seller

    sales = compose_single_product(Intent.SALES_INFO, p1).text
    assert "Đã bán: 340" in sales
    assert "05/03/2024" in sales

    assert "Không có thông tin về người bán" in compose_single_product(Intent.SELLER_INFO, p2).text
    assert "Chưa có thông tin về lượt bán" in compose_single_product(Intent.SALES_INFO, p2).text


def test_single_product_missing_and_wrong_intent(p1):
    resp = compose_single_product(Intent.REVIEWS, None)
    assert resp.text == PRODUCT_NOT_FOUND_TEXT
    assert resp.products == []
    with pytest.raises(ValueError):
        compose_single_product(Intent.SEARCH, p1)


def test_product_list(catalog):
    found = compose_product_list(Intent.SEARCH, catalog)
    assert found.text == "Tôi tìm thấy 2 sản phẩm phù hợp:"
    assert len(found.products) == 2

    empty = compose_product_list(Intent.SEARCH, [])
    assert empty.text == NO_SEARCH_RESULTS_TEXT
    assert empty.products == []
    assert empty.response_type == ResponseType.QUESTION

    assert compose_product_list(Intent.STOCK_QUERY, []).response_type == ResponseType.QUESTION


def test_categories_fallback_and_error():
    assert "- Laptop" in compose_categories(["Laptop", "Điện thoại"]).text
    assert "chưa có thông tin" in compose_categories([]).text

    fallback = compose_fallback()
    assert fallback.intent == Intent.FALLBACK
    assert fallback.products == []
    assert len(fallback.quick_replies) == 4

    assert compose_error(Intent.SEARCH).response_type == ResponseType.ERROR
