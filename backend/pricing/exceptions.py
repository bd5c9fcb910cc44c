class PricingError(Exception):
    """Base exception for quotation and invoice pricing errors"""
    pass


class PricingValidationError(PricingError):
    """Raised when a rate, quantity or quote is not a usable number"""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message
