"""Errors raised by the job sheet ledger.

Every error is a DRF ``APIException`` so views can turn it into the usual
``{'error': ..., 'code': ...}`` response with the matching status code.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class LedgerError(APIException):
    """Base class for job sheet ledger errors"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Job sheet operation failed.'
    default_code = 'ledger_error'

    @property
    def message(self):
        return str(self.detail)

    def as_response_data(self):
        return {'error': self.message, 'code': self.default_code}


class InvalidAmount(LedgerError):
    """Non-positive payment amount, negative cost field or unparsable number"""
    default_detail = 'Invalid amount.'
    default_code = 'invalid_amount'


class InvalidTransition(LedgerError):
    """Status change on a terminal job sheet, or to an unknown status"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Invalid status transition.'
    default_code = 'invalid_transition'


class JobSheetValidationError(LedgerError):
    default_detail = 'Invalid job sheet data.'
    default_code = 'validation_error'


class JobSheetNotFound(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Job sheet not found.'
    default_code = 'not_found'


class PaymentNotFound(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Payment not found.'
    default_code = 'not_found'
