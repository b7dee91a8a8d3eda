"""Custom exceptions for the Khata POS terminal."""
from khatapos.utils.formatters import money_in


class PosError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class BusinessLogicError(PosError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class NotFoundError(PosError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class StockLimitExceeded(BusinessLogicError):
    """Raised when a cart mutation would exceed the known stock for a line."""
    def __init__(self, name, requested, available):
        self.name = name
        self.requested = requested
        self.available = available
        if available <= 0:
            message = f"{name} is currently out of stock."
        else:
            message = f"Cannot add more {name}. Only {available} units available."
        super().__init__(message, status_code=409, payload={
            'code': 'STOCK_LIMIT_EXCEEDED',
            'requested': requested,
            'available': available,
        })

class ValidationError(BusinessLogicError):
    """Malformed or incomplete settlement inputs; the operator must correct them."""
    def __init__(self, message, payload=None):
        super().__init__(message, status_code=422, payload=payload)

class CreditLimitExceeded(BusinessLogicError):
    """
    Recoverable rejection: the sale would push a customer's khata past its limit.

    Resubmitting the identical settlement with force_override=True is the only
    defined way forward. ``source`` tells whether the local pre-check or the
    backend raised it.
    """
    recoverable = True

    def __init__(self, limit, projected_balance=None, message=None, source='local'):
        self.limit = limit
        self.projected_balance = projected_balance
        self.source = source
        if not message:
            message = f"Credit limit of {money_in(limit)} exceeded!"
            if projected_balance is not None:
                message += f" New khata balance would be {money_in(projected_balance)}."
        super().__init__(message, status_code=402, payload={
            'code': 'CREDIT_LIMIT_EXCEEDED',
            'limit': str(limit) if limit is not None else None,
            'projected_balance': str(projected_balance) if projected_balance is not None else None,
            'recoverable': True,
            'source': source,
        })

class CommitInProgress(BusinessLogicError):
    """Raised when a confirmation arrives while the same cart is being committed."""
    def __init__(self, message="A sale for this cart is already being submitted."):
        super().__init__(message, status_code=409, payload={'code': 'COMMIT_IN_PROGRESS'})

class CommitFailure(PosError):
    """Generic failure returned by the sale-commit API; cart and inputs are kept."""
    def __init__(self, message="Failed to record sale.", upstream_status=None, payload=None):
        self.upstream_status = upstream_status
        data = dict(payload or ())
        data.setdefault('code', 'COMMIT_FAILED')
        data['upstream_status'] = upstream_status
        super().__init__(message, status_code=502, payload=data)
