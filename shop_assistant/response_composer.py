# shop_assistant/response_composer.py
"""
Response composition
────────────────────
Turns (intent, resolved products, comparison flag) into a BotResponse.
The per-intent input contract:

    compare / continue-comparison → 0-2 products, is_comparison only with 2
    product-detail / reviews / seller-info / sales-info → exactly 1 product
    search / price-query / stock-query → 0-5 ranked products
    category-list / fallback → no products

Reply text is Vietnamese, matching the storefront.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from .enums import ComparisonOutcome, Intent, ResponseType
from .intent_config import QUICK_ACTIONS
from .models import (BotResponse, ComparisonRow, Product, QuickReply,
                     RatingStats, ReviewBundle)

GREETING = "Xin chào! Tôi có thể giúp gì cho bạn về các sản phẩm của chúng tôi?"
ERROR_TEXT = "Xin lỗi, tôi đang gặp sự cố khi xử lý yêu cầu của bạn. Vui lòng thử lại sau."
FALLBACK_TEXT = (
    "Tôi có thể giúp bạn tìm kiếm sản phẩm, kiểm tra giá cả, tình trạng tồn kho, "
    "thông tin chi tiết về sản phẩm, đánh giá, người bán, lượt bán và so sánh các sản phẩm. "
    "Vui lòng hỏi cụ thể hơn."
)
NO_SEARCH_RESULTS_TEXT = (
    "Tôi không tìm thấy sản phẩm nào phù hợp với yêu cầu của bạn. "
    "Vui lòng thử tìm kiếm với từ khóa ngắn hơn hoặc chung hơn "
    '(ví dụ: "laptop Asus" thay vì mã sản phẩm đầy đủ).'
)
COMPARE_CLARIFY_TEXT = (
    "Vui lòng chỉ định rõ tên các sản phẩm bạn muốn so sánh. "
    "Ví dụ: 'So sánh Laptop HP và Laptop Dell'"
)
SELF_COMPARISON_TEXT = "Bạn không thể so sánh một sản phẩm với chính nó. Vui lòng chọn một sản phẩm khác."
SECOND_NOT_FOUND_TEXT = (
    "Tôi không tìm thấy sản phẩm thứ hai để so sánh. "
    "Vui lòng cung cấp tên sản phẩm cụ thể hơn."
)
PRODUCT_NOT_FOUND_TEXT = "Không tìm thấy thông tin sản phẩm."


# ─────────────────────────────────────────────────────────────
# Field formatting
# ─────────────────────────────────────────────────────────────
def format_price(price: Optional[float]) -> str:
    if not price:
        return "Liên hệ"
    return f"{price:,.0f}".replace(",", ".") + "đ"


def _format_rating(value: Optional[float]) -> str:
    return f"{value:.1f}" if value is not None else "Chưa có"


def _format_date(iso_value: Optional[str]) -> Optional[str]:
    if not iso_value:
        return None
    try:
        return datetime.fromisoformat(iso_value.replace("Z", "+00:00")).strftime("%d/%m/%Y")
    except ValueError:
        return iso_value


def quick_replies() -> List[QuickReply]:
    return [QuickReply(label=a["label"], value=a["value"]) for a in QUICK_ACTIONS]


def _response(
    intent: Intent,
    text: str,
    products: Sequence[Product] = (),
    *,
    response_type: ResponseType = ResponseType.FINAL_ANSWER,
    is_comparison: bool = False,
    comparison: Optional[List[ComparisonRow]] = None,
) -> BotResponse:
    return BotResponse(
        response_type=response_type,
        intent=intent,
        text=text,
        products=list(products),
        is_comparison=is_comparison,
        comparison=comparison or [],
        quick_replies=quick_replies(),
    )


# ─────────────────────────────────────────────────────────────
# Comparison
# ─────────────────────────────────────────────────────────────
def _better(first: float, second: float, lower_wins: bool = False) -> int:
    if first == second:
        return 0
    if lower_wins:
        return 1 if first < second else 2
    return 1 if first > second else 2


def build_comparison_rows(first: Product, second: Product) -> List[ComparisonRow]:
    """Price (lower wins), stock (higher wins), rating (higher wins, absent = 0)."""
    return [
        ComparisonRow("price", first.price, second.price,
                      _better(first.price or 0, second.price or 0, lower_wins=True)),
        ComparisonRow("stock", first.stock, second.stock, _better(first.stock, second.stock)),
        ComparisonRow("rating", first.rating, second.rating,
                      _better(first.rating or 0, second.rating or 0)),
    ]


def compose_comparison(intent: Intent, outcome: ComparisonOutcome, products: Sequence[Product]) -> BotResponse:
    if outcome == ComparisonOutcome.COMPARED:
        first, second = products[0], products[1]
        return _response(
            intent,
            f"Dưới đây là bảng so sánh giữa {first.name} và {second.name}:",
            [first, second],
            is_comparison=True,
            comparison=build_comparison_rows(first, second),
        )
    if outcome == ComparisonOutcome.AWAITING_SECOND:
        return _response(
            intent,
            f'Tôi đã tìm thấy sản phẩm "{products[0].name}". '
            "Vui lòng chỉ định thêm một sản phẩm khác để so sánh.",
            products[:1],
            response_type=ResponseType.QUESTION,
        )
    if outcome == ComparisonOutcome.SELF_COMPARISON:
        return _response(intent, SELF_COMPARISON_TEXT, products[:1], response_type=ResponseType.QUESTION)
    if outcome == ComparisonOutcome.SECOND_NOT_FOUND:
        return _response(intent, SECOND_NOT_FOUND_TEXT, products[:1], response_type=ResponseType.QUESTION)
    return _response(intent, COMPARE_CLARIFY_TEXT, response_type=ResponseType.QUESTION)


# ─────────────────────────────────────────────────────────────
# Single-product intents
# ─────────────────────────────────────────────────────────────
def format_product_detail(product: Product, stats: Optional[RatingStats] = None) -> str:
    info = f"📌 Thông tin chi tiết về sản phẩm: {product.name}\n\n"
    info += f"📝 Mô tả: {product.description or 'Không có mô tả'}\n\n"
    info += f"💰 Giá: {format_price(product.price)}\n"
    info += f"🏷️ Danh mục: {product.category or 'Chưa phân loại'}\n"
    info += f"📦 Tồn kho: {product.stock or 'Đang cập nhật'} sản phẩm\n"
    if product.model:
        info += f"🔢 Mã model: {product.model}\n"
    if product.brand:
        info += f"🏭 Thương hiệu: {product.brand}\n"
    if stats:
        info += f"⭐ Đánh giá trung bình: {_format_rating(stats.average)} ({stats.count} đánh giá)\n"
    elif product.rating is not None:
        info += f"⭐ Đánh giá trung bình: {_format_rating(product.rating)}\n"
    if product.seller:
        info += f"\n👤 Người bán: {product.seller.name or 'Không có thông tin'}\n"
    if product.warranty:
        info += f"\n🔧 Bảo hành: {product.warranty}\n"
    return info


def format_product_reviews(product: Product, bundle: Optional[ReviewBundle], shown: int = 3) -> str:
    info = f"📊 Đánh giá về sản phẩm: {product.name}\n\n"
    stats = bundle.stats if bundle else None
    reviews = bundle.reviews if bundle else []

    if stats:
        info += f"⭐ Đánh giá trung bình: {_format_rating(stats.average)} ({stats.count} đánh giá)\n\n"
    else:
        info += "⭐ Chưa có đánh giá cho sản phẩm này.\n\n"

    if not reviews:
        return info + "Chưa có đánh giá nào cho sản phẩm này.\n"

    info += "📝 Một số đánh giá gần đây:\n\n"
    for index, review in enumerate(reviews[:shown], start=1):
        rating = f"{review.rating:g}" if review.rating is not None else "?"
        info += f"{index}. {review.author or 'Khách hàng'} - {rating}⭐\n"
        info += f'   "{review.comment}"\n'
        if review.verified_purchase:
            info += "   ✅ Đã mua hàng\n"
        info += "\n"
    if len(reviews) > shown:
        info += f"... và {len(reviews) - shown} đánh giá khác.\n"
    return info


def format_seller_info(product: Product) -> str:
    info = f"👤 Thông tin người bán sản phẩm: {product.name}\n\n"
    seller = product.seller
    if not seller:
        return info + "Không có thông tin về người bán sản phẩm này.\n"

    info += f"Tên shop: {seller.name or 'Không có thông tin'}\n"
    info += f"Đánh giá shop: {_format_rating(seller.rating)} ⭐\n"
    info += f"Sản phẩm đang bán: {seller.product_count or 'Không có thông tin'}\n"
    info += f"Thời gian hoạt động: {seller.active_years or 'Không có thông tin'}\n"
    if seller.description:
        info += f"\nGiới thiệu: {seller.description}\n"
    return info


def format_sales_info(product: Product) -> str:
    info = f"📊 Thông tin lượt bán sản phẩm: {product.name}\n\n"
    if product.sales_count is None:
        return info + "Chưa có thông tin về lượt bán của sản phẩm này.\n"

    info += f"Đã bán: {product.sales_count} sản phẩm\n"
    last_sold = _format_date(product.last_sold_at)
    if last_sold:
        info += f"Lần bán gần nhất: {last_sold}\n"
    if product.sales_trend:
        info += f"Xu hướng bán: {product.sales_trend}\n"
    return info


def compose_single_product(
    intent: Intent,
    product: Optional[Product],
    bundle: Optional[ReviewBundle] = None,
    reviews_shown: int = 3,
) -> BotResponse:
    if product is None:
        return _response(intent, PRODUCT_NOT_FOUND_TEXT, response_type=ResponseType.QUESTION)

    if intent == Intent.PRODUCT_DETAIL:
        text = format_product_detail(product, bundle.stats if bundle else None)
    elif intent == Intent.REVIEWS:
        text = format_product_reviews(product, bundle, reviews_shown)
    elif intent == Intent.SELLER_INFO:
        text = format_seller_info(product)
    elif intent == Intent.SALES_INFO:
        text = format_sales_info(product)
    else:
        raise ValueError(f"{intent} is not a single-product intent")
    return _response(intent, text, [product])


# ─────────────────────────────────────────────────────────────
# Ranked-list intents
# ─────────────────────────────────────────────────────────────
_LIST_TEXTS = {
    Intent.SEARCH: (None, NO_SEARCH_RESULTS_TEXT),
    Intent.PRICE_QUERY: (
        "Thông tin giá của các sản phẩm phù hợp:",
        "Bạn muốn biết giá của sản phẩm nào? Vui lòng cung cấp thêm thông tin.",
    ),
    Intent.STOCK_QUERY: (
        "Thông tin tồn kho của các sản phẩm phù hợp:",
        "Bạn muốn biết tình trạng tồn kho của sản phẩm nào? Vui lòng cung cấp thêm thông tin.",
    ),
}


def compose_product_list(intent: Intent, products: Sequence[Product]) -> BotResponse:
    found_text, empty_text = _LIST_TEXTS[intent]
    if not products:
        return _response(intent, empty_text, response_type=ResponseType.QUESTION)
    if found_text is None:
        found_text = f"Tôi tìm thấy {len(products)} sản phẩm phù hợp:"
    return _response(intent, found_text, products)


def compose_categories(categories: Sequence[str]) -> BotResponse:
    if not categories:
        return _response(Intent.CATEGORY_LIST, "Hiện tại chúng tôi chưa có thông tin về danh mục sản phẩm.")
    lines = "\n".join(f"- {c}" for c in categories)
    return _response(Intent.CATEGORY_LIST, f"Chúng tôi có các danh mục sản phẩm sau:\n\n{lines}")


def compose_fallback() -> BotResponse:
    return _response(Intent.FALLBACK, FALLBACK_TEXT)


def compose_error(intent: Intent = Intent.FALLBACK) -> BotResponse:
    return _response(intent, ERROR_TEXT, response_type=ResponseType.ERROR)
