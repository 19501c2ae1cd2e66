class DomainException(Exception):
    pass


# Базовые виды ошибок: presentation-слой сопоставляет их с HTTP-статусами по классу
class InvalidInputError(DomainException):
    pass


class AuthenticationError(DomainException):
    pass


class NotFoundError(DomainException):
    pass


class ConflictError(DomainException):
    pass


class ForbiddenError(DomainException):
    pass


class UpstreamError(DomainException):
    pass


class InternalError(DomainException):
    pass


class ProductNotFoundError(NotFoundError):
    pass


class ShopNotFoundError(NotFoundError):
    pass


class CustomerNotFoundError(NotFoundError):
    pass


class OrderNotFoundError(NotFoundError):
    pass


class InsufficientStockError(ConflictError):
    def __init__(self, product_id: str, product_name: str, available: int, required: int):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.required = required
        super().__init__(
            f"Товар {product_name} недоступен на выбранные даты. "
            f"Доступно: {max(available, 0)}, требуется: {required}"
        )


class InvalidStatusTransitionError(ConflictError):
    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Переход статуса {current.value} -> {target.value} запрещен")


class PermissionDeniedError(ForbiddenError):
    pass


class OrderNotCancellableError(ForbiddenError):
    pass


class InvalidSignatureError(ForbiddenError):
    pass


class CallbackPayloadError(InvalidInputError):
    pass


class PaymentGatewayError(UpstreamError):
    def __init__(self, message: str, order_id: str | None = None):
        self.order_id = order_id
        super().__init__(message)


class PaymentGatewayTimeoutError(PaymentGatewayError):
    pass


class PersistenceError(InternalError):
    pass
