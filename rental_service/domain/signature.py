import hashlib
import hmac


def sign(private_key: str, message: bytes) -> str:
    """HMAC-SHA256 в hex"""
    return hmac.new(private_key.encode(), message, hashlib.sha256).hexdigest()


def transaction_signature(private_key: str, merchant_code: str, merchant_ref: str, amount: int) -> str:
    """Подпись запроса на создание транзакции: merchant_code + merchant_ref + amount"""
    return sign(private_key, f"{merchant_code}{merchant_ref}{amount}".encode())


def verify(private_key: str, message: bytes, signature: str | None) -> bool:
    """Точное (с учетом регистра) сравнение подписи с ожидаемой"""
    if not signature:
        return False
    expected = sign(private_key, message)
    return hmac.compare_digest(expected.encode(), signature.encode())
