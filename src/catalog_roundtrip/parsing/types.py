from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Closed set of import error classifications."""
    # identification
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    INVALID_PRODUCT_ID = "INVALID_PRODUCT_ID"
    PRODUCT_TRASHED = "PRODUCT_TRASHED"
    PRODUCT_TYPE_MISMATCH = "PRODUCT_TYPE_MISMATCH"

    # pricing
    INVALID_REGULAR_PRICE = "INVALID_REGULAR_PRICE"
    INVALID_SALE_PRICE = "INVALID_SALE_PRICE"
    SALE_PRICE_EXCEEDS_REGULAR = "SALE_PRICE_EXCEEDS_REGULAR"
    VARIABLE_PRODUCT_NO_PRICE = "VARIABLE_PRODUCT_NO_PRICE"
    EMPTY_PRICE_FOR_SIMPLE = "EMPTY_PRICE_FOR_SIMPLE"

    # inventory
    INVALID_STOCK_QUANTITY = "INVALID_STOCK_QUANTITY"
    NEGATIVE_STOCK = "NEGATIVE_STOCK"
    INVALID_STOCK_STATUS = "INVALID_STOCK_STATUS"
    STOCK_WITHOUT_MANAGE = "STOCK_WITHOUT_MANAGE"
    INVALID_BACKORDERS = "INVALID_BACKORDERS"
    INVALID_LOW_STOCK = "INVALID_LOW_STOCK"

    # dimensions
    INVALID_WEIGHT = "INVALID_WEIGHT"
    INVALID_LENGTH = "INVALID_LENGTH"
    INVALID_WIDTH = "INVALID_WIDTH"
    INVALID_HEIGHT = "INVALID_HEIGHT"

    # categories / tags
    CATEGORY_NOT_FOUND = "CATEGORY_NOT_FOUND"
    TAG_NOT_FOUND = "TAG_NOT_FOUND"
    INVALID_CATEGORY_FORMAT = "INVALID_CATEGORY_FORMAT"
    INVALID_TAG_FORMAT = "INVALID_TAG_FORMAT"

    # attributes
    INVALID_ATTRIBUTE_JSON = "INVALID_ATTRIBUTE_JSON"
    ATTRIBUTE_NOT_FOUND = "ATTRIBUTE_NOT_FOUND"
    INVALID_ATTRIBUTE_TERM = "INVALID_ATTRIBUTE_TERM"
    INVALID_ATTRIBUTE_FORMAT = "INVALID_ATTRIBUTE_FORMAT"

    # variations
    PARENT_NOT_FOUND = "PARENT_NOT_FOUND"
    PARENT_NOT_VARIABLE = "PARENT_NOT_VARIABLE"
    VARIATION_MISSING_ATTRIBUTES = "VARIATION_MISSING_ATTRIBUTES"
    INVALID_PARENT_ID = "INVALID_PARENT_ID"

    # sku / slug
    DUPLICATE_SKU = "DUPLICATE_SKU"
    INVALID_SKU_FORMAT = "INVALID_SKU_FORMAT"
    INVALID_SLUG = "INVALID_SLUG"
    DUPLICATE_SLUG = "DUPLICATE_SLUG"

    # status
    INVALID_STATUS = "INVALID_STATUS"
    INVALID_CATALOG_VISIBILITY = "INVALID_CATALOG_VISIBILITY"

    # dates
    INVALID_DATE_FORMAT = "INVALID_DATE_FORMAT"
    SALE_DATE_CONFLICT = "SALE_DATE_CONFLICT"
    INVALID_SALE_DATE_FROM = "INVALID_SALE_DATE_FROM"
    INVALID_SALE_DATE_TO = "INVALID_SALE_DATE_TO"

    # booleans
    INVALID_BOOLEAN = "INVALID_BOOLEAN"
    INVALID_VIRTUAL = "INVALID_VIRTUAL"
    INVALID_DOWNLOADABLE = "INVALID_DOWNLOADABLE"
    INVALID_FEATURED = "INVALID_FEATURED"
    INVALID_SOLD_INDIVIDUALLY = "INVALID_SOLD_INDIVIDUALLY"
    INVALID_MANAGE_STOCK = "INVALID_MANAGE_STOCK"

    # tax
    INVALID_TAX_STATUS = "INVALID_TAX_STATUS"
    INVALID_TAX_CLASS = "INVALID_TAX_CLASS"

    # linked products
    INVALID_UPSELL_IDS = "INVALID_UPSELL_IDS"
    UPSELL_PRODUCT_NOT_FOUND = "UPSELL_PRODUCT_NOT_FOUND"
    INVALID_CROSS_SELL_IDS = "INVALID_CROSS_SELL_IDS"
    CROSS_SELL_PRODUCT_NOT_FOUND = "CROSS_SELL_PRODUCT_NOT_FOUND"

    # system
    DATABASE_ERROR = "DATABASE_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    WOOCOMMERCE_ERROR = "WOOCOMMERCE_ERROR"
    UNKNOWN_FIELD = "UNKNOWN_FIELD"
    CSV_PARSE_ERROR = "CSV_PARSE_ERROR"
    EMPTY_REQUIRED_FIELD = "EMPTY_REQUIRED_FIELD"
    INVALID_MENU_ORDER = "INVALID_MENU_ORDER"

    # accounting sync
    EMPTY_SKU = "EMPTY_SKU"
    EMPTY_NAME = "EMPTY_NAME"
    CREATE_FAILED = "CREATE_FAILED"


# any of these on a row means nothing on that row is applied.
ROW_FATAL_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.EMPTY_REQUIRED_FIELD,
    ErrorCode.INVALID_PRODUCT_ID,
    ErrorCode.PRODUCT_NOT_FOUND,
    ErrorCode.PRODUCT_TRASHED,
    ErrorCode.PERMISSION_DENIED,
    ErrorCode.DATABASE_ERROR,
})


@dataclass(frozen=True, slots=True)
class FieldIssue:
    """
    A problem found while validating one field, before it is tied to a row.

    `params` fill the positional placeholders of the code's message template.
    """
    field_name: str
    code: ErrorCode
    value: Any = ""
    params: tuple[Any, ...] = ()


@dataclass(frozen=True, slots=True)
class ValidationError:
    """One line of the error report. Never mutated once created."""
    row_number: int
    record_id: str
    record_name: str
    field_name: str
    offending_value: str
    error_code: str
    rendered_message: str
    suggestion: str

    @property
    def is_row_fatal(self) -> bool:
        return self.error_code in {c.value for c in ROW_FATAL_CODES}
