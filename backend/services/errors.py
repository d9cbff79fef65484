# backend/services/errors.py
"""Typed errors raised by the inventory engine.

Each error has a machine-readable ``code``, the HTTP status the API answers
with, and its structured fields (see ``to_dict``). main.py turns any
InventoryError into a JSON response.
"""


class InventoryError(Exception):
    code = "INVENTORY_ERROR"
    status_code = 400

    def __init__(self, message: str, **fields):
        super().__init__(message)
        self.message = message
        self.fields = fields

    def to_dict(self) -> dict:
        return {"code": self.code, "detail": self.message, **self.fields}


class InsufficientStock(InventoryError):
    code = "INSUFFICIENT_STOCK"
    status_code = 409

    def __init__(self, stock_item_id: int, requested: int, available: int):
        self.stock_item_id = stock_item_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for item {stock_item_id}: requested {requested}, available {available}",
            stock_item_id=stock_item_id,
            requested=requested,
            available=available,
        )


class DuplicateFieldError(InventoryError):
    code = "DUPLICATE_FIELD"
    status_code = 409

    def __init__(self, category: str, field: str, value=None):
        self.category = category
        self.field = field
        self.value = value
        super().__init__(
            f"{field} '{value}' is already used by another {category}",
            category=category,
            field=field,
            value=value,
        )


class EntityNotFound(InventoryError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, kind: str, id):
        self.kind = kind
        self.id = id
        super().__init__(f"{kind} {id} not found", kind=kind, id=id)


class InvalidTransition(InventoryError):
    code = "INVALID_TRANSITION"
    status_code = 400

    def __init__(self, from_status, to_status, reason: str = None):
        self.from_status = from_status
        self.to_status = to_status
        message = f"Cannot change status from '{from_status}' to '{to_status}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, from_status=from_status, to_status=to_status)


class InvalidQuantity(InventoryError):
    code = "INVALID_QUANTITY"
    status_code = 400

    def __init__(self, detail: str, **fields):
        super().__init__(detail, **fields)


class StockItemInUse(InventoryError):
    code = "STOCK_ITEM_IN_USE"
    status_code = 409

    def __init__(self, stock_item_id: int, references: dict):
        self.stock_item_id = stock_item_id
        self.references = references
        super().__init__(
            f"Stock item {stock_item_id} is still referenced",
            stock_item_id=stock_item_id,
            references=references,
        )


class InvalidCategoryStock(InventoryError):
    code = "INVALID_CATEGORY_STOCK"
    status_code = 400

    def __init__(self, category: str, stock_item_id: int):
        self.category = category
        self.stock_item_id = stock_item_id
        super().__init__(
            f"Stock item {stock_item_id} cannot be used for {category}",
            category=category,
            stock_item_id=stock_item_id,
        )


class TransactionFailure(InventoryError):
    code = "TRANSACTION_FAILURE"
    status_code = 500

    def __init__(self, detail: str = "Storage error, nothing was saved"):
        super().__init__(detail)
