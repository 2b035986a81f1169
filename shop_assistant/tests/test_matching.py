from __future__ import annotations

from shop_assistant.matching import (MATCH_LIMIT, find_exact_product, find_mentioned_products,
                                     find_relevant_products, list_categories, rank_products,
                                     score_product)
from shop_assistant.models import Product


def test_score_weights_per_field(p1, p2):
    assert score_product(p1, ["pavilion"]) == 2.0      # name
    assert score_product(p2, ["dell-xps-13"]) == 2.0   # model
    assert score_product(p2, ["dell"]) == 4.0          # name and model
    assert score_product(p2, ["ultrabook"]) == 0.5     # description
    # one keyword may hit name, category and description at once
    assert score_product(p1, ["laptop"]) == 3.5


def test_score_is_monotonic_in_keywords(p1):
    base = score_product(p1, ["pavilion"])
    assert score_product(p1, ["pavilion", "laptop"]) > base
    assert score_product(p1, ["pavilion", "nothing"]) == base


def test_rank_drops_zero_and_keeps_catalog_order_on_ties(catalog):
    p1, p2 = catalog
    ranked = rank_products(["laptop"], [p2, p1])
    assert [sp.product.id for sp in ranked] == ["p1", "p2"]
    assert rank_products(["iphone"], catalog) == []

    tie_a = Product(id="a", name="Chuột Logitech")
    tie_b = Product(id="b", name="Chuột Razer")
    assert [sp.product.id for sp in rank_products(["chuột"], [tie_b, tie_a])] == ["b", "a"]


def test_relevant_products_exact_phrase_shortcut(catalog):
    assert [p.id for p in find_relevant_products("laptop dell xps", catalog)] == ["p2"]


def test_relevant_products_top_k_bound():
    big = [Product(id=str(i), name=f"Laptop {i}") for i in range(12)]
    found = find_relevant_products("laptop", big)
    assert len(found) == MATCH_LIMIT
    assert [p.id for p in found] == ["0", "1", "2", "3", "4"]


def test_relevant_products_empty_cases(catalog):
    assert find_relevant_products("laptop", []) == []
    assert find_relevant_products("tv hp", catalog) == []   # no keyword of length >= 3
    assert find_relevant_products("ABCDXYZ", catalog) == []


def test_exact_product_by_name_or_model(catalog):
    p1, p2 = catalog
    assert find_exact_product("đánh giá HP-PAV-15", catalog) is p1
    assert find_exact_product("chi tiết laptop dell xps", catalog) is p2
    assert find_exact_product("laptop", catalog) is None


def test_exact_product_first_in_catalog_order_wins(p1):
    # an earlier product matched by model beats a later one matched by name
    mouse = Product(id="m", name="Chuột Logitech", model="HP-PAV-15")
    assert find_exact_product("đánh giá Laptop HP Pavilion HP-PAV-15", [mouse, p1]) is mouse
    assert find_exact_product("đánh giá Laptop HP Pavilion HP-PAV-15", [p1, mouse]) is p1


def test_mentioned_products_literal(catalog):
    found = find_mentioned_products("so sánh Laptop HP Pavilion và Laptop Dell XPS", catalog)
    assert [p.id for p in found] == ["p1", "p2"]

    single = find_mentioned_products("so sánh Laptop HP Pavilion", catalog)
    assert [p.id for p in single] == ["p1"]


def test_mentioned_products_conjunction_split(catalog):
    found = find_mentioned_products("so sánh pavilion và dell", catalog)
    assert [p.id for p in found] == ["p1", "p2"]


def test_mentioned_products_never_repeats_a_product(catalog):
    found = find_mentioned_products("so sánh laptop và laptop", catalog)
    assert len(found) == 2
    assert found[0].id != found[1].id


def test_list_categories_distinct_in_order(catalog):
    phone = Product(id="p3", name="iPhone 15", category="Điện thoại")
    assert list_categories(catalog + [phone]) == ["Laptop", "Điện thoại"]
    assert list_categories([]) == []
