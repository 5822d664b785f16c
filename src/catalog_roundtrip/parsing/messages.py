from __future__ import annotations

from typing import Any, Sequence

from .types import ErrorCode

# Message templates. `{}` placeholders are filled positionally.
MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.PRODUCT_NOT_FOUND: "No product exists with this ID",
    ErrorCode.INVALID_PRODUCT_ID: "Product ID must be a positive integer",
    ErrorCode.PRODUCT_TRASHED: "This product is in the trash",
    ErrorCode.PRODUCT_TYPE_MISMATCH: "Product type does not match the stored type",

    ErrorCode.INVALID_REGULAR_PRICE: "Regular price must be a non-negative number",
    ErrorCode.INVALID_SALE_PRICE: "Sale price must be a non-negative number",
    ErrorCode.SALE_PRICE_EXCEEDS_REGULAR: "Sale price cannot be greater than the regular price",
    ErrorCode.VARIABLE_PRODUCT_NO_PRICE: "Variable products cannot have a direct price (prices are set on variations)",
    ErrorCode.EMPTY_PRICE_FOR_SIMPLE: "Simple products must have a price",

    ErrorCode.INVALID_STOCK_QUANTITY: "Stock quantity must be an integer",
    ErrorCode.NEGATIVE_STOCK: "Stock quantity cannot be negative",
    ErrorCode.INVALID_STOCK_STATUS: "Stock status must be instock, outofstock or onbackorder",
    ErrorCode.STOCK_WITHOUT_MANAGE: "Stock management must be enabled (manage_stock = yes) to set a stock quantity",
    ErrorCode.INVALID_BACKORDERS: "Backorders must be no, notify or yes",
    ErrorCode.INVALID_LOW_STOCK: "Low stock threshold must be a non-negative integer",

    ErrorCode.INVALID_WEIGHT: "Weight must be a non-negative number",
    ErrorCode.INVALID_LENGTH: "Length must be a non-negative number",
    ErrorCode.INVALID_WIDTH: "Width must be a non-negative number",
    ErrorCode.INVALID_HEIGHT: "Height must be a non-negative number",

    ErrorCode.CATEGORY_NOT_FOUND: 'Category "{}" was not found',
    ErrorCode.TAG_NOT_FOUND: 'Tag "{}" was not found',
    ErrorCode.INVALID_CATEGORY_FORMAT: "Invalid category format (separate categories with |)",
    ErrorCode.INVALID_TAG_FORMAT: "Invalid tag format (separate tags with |)",

    ErrorCode.INVALID_ATTRIBUTE_JSON: "Attributes cell is not valid JSON",
    ErrorCode.ATTRIBUTE_NOT_FOUND: 'Attribute "{}" is not defined',
    ErrorCode.INVALID_ATTRIBUTE_TERM: 'Value "{}" does not exist for attribute "{}"',
    ErrorCode.INVALID_ATTRIBUTE_FORMAT: "Attributes must be a JSON object",

    ErrorCode.PARENT_NOT_FOUND: "Parent product {} was not found",
    ErrorCode.PARENT_NOT_VARIABLE: "Parent product is not a variable product",
    ErrorCode.VARIATION_MISSING_ATTRIBUTES: "A variation needs at least one attribute",
    ErrorCode.INVALID_PARENT_ID: "Parent ID must be a positive integer",

    ErrorCode.DUPLICATE_SKU: "SKU {} is already used by another product (ID: {})",
    ErrorCode.INVALID_SKU_FORMAT: "Invalid SKU format (only letters, digits, dash and underscore are allowed)",
    ErrorCode.INVALID_SLUG: "Slug may only contain lowercase letters, digits and dashes",
    ErrorCode.DUPLICATE_SLUG: "Slug {} is already used by another product",

    ErrorCode.INVALID_STATUS: "Status must be one of: publish, draft, pending, private",
    ErrorCode.INVALID_CATALOG_VISIBILITY: "Catalog visibility must be one of: visible, catalog, search, hidden",

    ErrorCode.INVALID_DATE_FORMAT: "Invalid date format (use YYYY-MM-DD)",
    ErrorCode.SALE_DATE_CONFLICT: "Sale end date ({}) must not be before the sale start date ({})",
    ErrorCode.INVALID_SALE_DATE_FROM: "Invalid sale start date",
    ErrorCode.INVALID_SALE_DATE_TO: "Invalid sale end date",

    ErrorCode.INVALID_BOOLEAN: 'Value "{}" is not valid for field "{}" (expected yes/no or 1/0)',
    ErrorCode.INVALID_VIRTUAL: "Virtual must be yes/no or 1/0",
    ErrorCode.INVALID_DOWNLOADABLE: "Downloadable must be yes/no or 1/0",
    ErrorCode.INVALID_FEATURED: "Featured must be yes/no or 1/0",
    ErrorCode.INVALID_SOLD_INDIVIDUALLY: "Sold individually must be yes/no or 1/0",
    ErrorCode.INVALID_MANAGE_STOCK: "Manage stock must be yes/no or 1/0",

    ErrorCode.INVALID_TAX_STATUS: "Tax status must be one of: taxable, shipping, none",
    ErrorCode.INVALID_TAX_CLASS: 'Tax class "{}" is not defined',

    ErrorCode.INVALID_UPSELL_IDS: "Invalid upsell product IDs",
    ErrorCode.UPSELL_PRODUCT_NOT_FOUND: "Upsell product {} was not found",
    ErrorCode.INVALID_CROSS_SELL_IDS: "Invalid cross-sell product IDs",
    ErrorCode.CROSS_SELL_PRODUCT_NOT_FOUND: "Cross-sell product {} was not found",

    ErrorCode.DATABASE_ERROR: "Saving to the database failed: {}",
    ErrorCode.PERMISSION_DENIED: "You do not have permission to edit this product",
    ErrorCode.WOOCOMMERCE_ERROR: "Store error: {}",
    ErrorCode.UNKNOWN_FIELD: 'Field "{}" is unknown and was ignored',
    ErrorCode.CSV_PARSE_ERROR: "Could not read row {} of the file",
    ErrorCode.EMPTY_REQUIRED_FIELD: 'Required field "{}" cannot be empty',
    ErrorCode.INVALID_MENU_ORDER: "Menu order must be an integer",

    ErrorCode.EMPTY_SKU: "The serial (SKU) cell is empty",
    ErrorCode.EMPTY_NAME: "A new product needs a name",
    ErrorCode.CREATE_FAILED: "Creating the product failed: {}",
}

# Fixed remediation hint per code.
SUGGESTIONS: dict[ErrorCode, str] = {
    ErrorCode.PRODUCT_NOT_FOUND: "Check the product ID and make sure the product was not deleted",
    ErrorCode.INVALID_PRODUCT_ID: "Enter a positive integer such as 123",
    ErrorCode.PRODUCT_TRASHED: "Restore the product from the trash first",
    ErrorCode.PRODUCT_TYPE_MISMATCH: "The product type cannot be changed by an import",

    ErrorCode.INVALID_REGULAR_PRICE: "Enter a positive number such as 50000 (no thousands separators or currency sign)",
    ErrorCode.INVALID_SALE_PRICE: "Enter a positive number such as 45000 or leave the cell empty",
    ErrorCode.SALE_PRICE_EXCEEDS_REGULAR: "Set the sale price lower than the regular price",
    ErrorCode.VARIABLE_PRODUCT_NO_PRICE: "Leave the price empty for variable products and set it on each variation",
    ErrorCode.EMPTY_PRICE_FOR_SIMPLE: "Enter a valid price for the product",

    ErrorCode.INVALID_STOCK_QUANTITY: "Enter an integer such as 10",
    ErrorCode.NEGATIVE_STOCK: "Use 0 or a larger number",
    ErrorCode.INVALID_STOCK_STATUS: "Use instock, outofstock or onbackorder",
    ErrorCode.STOCK_WITHOUT_MANAGE: "Set manage_stock to yes first",
    ErrorCode.INVALID_BACKORDERS: "Use no, notify or yes",
    ErrorCode.INVALID_LOW_STOCK: "Enter a non-negative integer such as 5",

    ErrorCode.INVALID_WEIGHT: "Enter a positive number such as 1.5",
    ErrorCode.INVALID_LENGTH: "Enter a positive number such as 20",
    ErrorCode.INVALID_WIDTH: "Enter a positive number such as 15",
    ErrorCode.INVALID_HEIGHT: "Enter a positive number such as 10",

    ErrorCode.CATEGORY_NOT_FOUND: "Use the exact name of an existing category",
    ErrorCode.TAG_NOT_FOUND: "Use the exact name of an existing tag, or create the tag first",
    ErrorCode.INVALID_CATEGORY_FORMAT: "Separate categories with |, e.g. Clothing|Men|Shirts",
    ErrorCode.INVALID_TAG_FORMAT: "Separate tags with |, e.g. new|sale|bestseller",

    ErrorCode.INVALID_ATTRIBUTE_JSON: 'Use valid JSON, e.g. {"Color":"Red","Size":"XL"}',
    ErrorCode.ATTRIBUTE_NOT_FOUND: "Create the attribute first or use its exact name",
    ErrorCode.INVALID_ATTRIBUTE_TERM: "Pick a value from the attribute's defined terms",
    ErrorCode.INVALID_ATTRIBUTE_FORMAT: 'Use a JSON object: {"attribute_name":"value"}',

    ErrorCode.PARENT_NOT_FOUND: "Enter the correct parent ID or create the parent product first",
    ErrorCode.PARENT_NOT_VARIABLE: "A variation's parent must be a variable product",
    ErrorCode.VARIATION_MISSING_ATTRIBUTES: "Define at least one attribute for the variation",
    ErrorCode.INVALID_PARENT_ID: "Enter a positive integer for the parent ID",

    ErrorCode.DUPLICATE_SKU: "Use a unique SKU or leave the cell empty",
    ErrorCode.INVALID_SKU_FORMAT: "Use only English letters, digits, dash (-) and underscore (_)",
    ErrorCode.INVALID_SLUG: "Use only lowercase English letters, digits and dashes",
    ErrorCode.DUPLICATE_SLUG: "Use a unique slug",

    ErrorCode.INVALID_STATUS: "Use publish, draft, pending or private",
    ErrorCode.INVALID_CATALOG_VISIBILITY: "Use visible, catalog, search or hidden",

    ErrorCode.INVALID_DATE_FORMAT: "Use the YYYY-MM-DD format, e.g. 2024-12-31",
    ErrorCode.SALE_DATE_CONFLICT: "Set the end date after the start date",
    ErrorCode.INVALID_SALE_DATE_FROM: "Use the YYYY-MM-DD format or leave the cell empty",
    ErrorCode.INVALID_SALE_DATE_TO: "Use the YYYY-MM-DD format or leave the cell empty",

    ErrorCode.INVALID_BOOLEAN: "Use yes/no or 1/0",
    ErrorCode.INVALID_VIRTUAL: "Use yes/no or 1/0",
    ErrorCode.INVALID_DOWNLOADABLE: "Use yes/no or 1/0",
    ErrorCode.INVALID_FEATURED: "Use yes/no or 1/0",
    ErrorCode.INVALID_SOLD_INDIVIDUALLY: "Use yes/no or 1/0",
    ErrorCode.INVALID_MANAGE_STOCK: "Use yes/no or 1/0",

    ErrorCode.INVALID_TAX_STATUS: "Use taxable, shipping or none",
    ErrorCode.INVALID_TAX_CLASS: "Use the exact name of a defined tax class",

    ErrorCode.INVALID_UPSELL_IDS: "Separate IDs with |, e.g. 123|456|789",
    ErrorCode.UPSELL_PRODUCT_NOT_FOUND: "Make sure a product with this ID exists",
    ErrorCode.INVALID_CROSS_SELL_IDS: "Separate IDs with |, e.g. 123|456|789",
    ErrorCode.CROSS_SELL_PRODUCT_NOT_FOUND: "Make sure a product with this ID exists",

    ErrorCode.DATABASE_ERROR: "Try again. Contact support if the problem persists",
    ErrorCode.PERMISSION_DENIED: "Sign in with an account allowed to manage products",
    ErrorCode.WOOCOMMERCE_ERROR: "Check the error message and fix the problem",
    ErrorCode.UNKNOWN_FIELD: "This column was ignored. See the documentation for valid columns",
    ErrorCode.CSV_PARSE_ERROR: "Open the file in a spreadsheet program and save it again",
    ErrorCode.EMPTY_REQUIRED_FIELD: "Fill in this field",
    ErrorCode.INVALID_MENU_ORDER: "Enter an integer such as 0 or 5",

    ErrorCode.EMPTY_SKU: "Enter the product serial",
    ErrorCode.EMPTY_NAME: "Enter the product name",
    ErrorCode.CREATE_FAILED: "Try again. Contact support if the problem persists",
}


def _lookup(code: ErrorCode | str) -> ErrorCode | None:
    """Map a code (enum member or raw string) onto the closed taxonomy, `None` if unmapped."""
    try:
        return ErrorCode(code)
    except ValueError:
        return None


def render_message(code: ErrorCode | str, params: Sequence[Any] = ()) -> str:
    """
    Render the human message for `code`.

    Unmapped codes render as the raw code string. A template whose placeholders
    don't line up with `params` is returned unformatted rather than raising.
    """
    known = _lookup(code)
    if known is None or known not in MESSAGES:
        return str(getattr(code, "value", code))

    template = MESSAGES[known]
    if not params:
        return template
    try:
        return template.format(*params)
    except (IndexError, KeyError, ValueError):
        return template


def get_suggestion(code: ErrorCode | str) -> str:
    """Fixed remediation hint for `code`, `""` when unmapped."""
    known = _lookup(code)
    if known is None:
        return ""
    return SUGGESTIONS.get(known, "")
