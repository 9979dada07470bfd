"""
Dynamap exceptions
"""
from dataclasses import dataclass
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional

import botocore.exceptions


class DynamapException(Exception):
    """
    Base class for all dynamap exceptions.
    """

    msg: str

    def __init__(self, msg: Optional[str] = None, cause: Optional[Exception] = None) -> None:
        self.msg = msg if msg is not None else self.msg
        self.cause = cause
        super(DynamapException, self).__init__(self.msg)

    @property
    def cause_response_code(self) -> Optional[str]:
        """
        The DynamoDB response code such as:

        - ``ConditionalCheckFailedException``
        - ``ProvisionedThroughputExceededException``
        - ``TransactionCanceledException``

        Inspect this value to determine the cause of the error and handle it.
        """
        return getattr(self.cause, 'response', {}).get('Error', {}).get('Code')

    @property
    def cause_response_message(self) -> Optional[str]:
        """
        The human-readable description of the error returned by DynamoDB.
        """
        return getattr(self.cause, 'response', {}).get('Error', {}).get('Message')


class DynamapConnectionError(DynamapException):
    """
    A base class for connection errors
    """
    msg = "Connection Error"


class DeleteError(DynamapConnectionError):
    """
    Raised when an error occurs deleting an item
    """
    msg = "Error deleting item"


class QueryError(DynamapConnectionError):
    """
    Raised when queries fail
    """
    msg = "Error performing query"


class ScanError(DynamapConnectionError):
    """
    Raised when a scan operation fails
    """
    msg = "Error performing scan"


class PutError(DynamapConnectionError):
    """
    Raised when an item fails to be created
    """
    msg = "Error putting item"


class UpdateError(DynamapConnectionError):
    """
    Raised when an item fails to be updated
    """
    msg = "Error updating item"


class GetError(DynamapConnectionError):
    """
    Raised when an item fails to be retrieved
    """
    msg = "Error getting item"


class TableError(DynamapConnectionError):
    """
    An error involving a dynamodb table operation
    """
    msg = "Error performing a table operation"


class ExecuteStatementError(DynamapConnectionError):
    """
    Raised when a PartiQL statement fails
    """
    msg = "Error executing statement"


class ConditionalCheckFailedError(DynamapConnectionError):
    """
    Raised when the condition attached to a write does not hold on the server
    """
    msg = "The conditional request failed"


class RecordNotUnique(ConditionalCheckFailedError):
    """
    Raised when creating a record whose primary key is already taken
    """
    msg = "Attempted to write record that already exists"


class StaleObjectError(ConditionalCheckFailedError):
    """
    Raised when a persisted record changed on the server since it was loaded
    """
    msg = "Attempted to update a stale object"


class TableDoesNotExist(DynamapException):
    """
    Raised when an operation is attempted on a table that doesn't exist
    """
    def __init__(self, table_name: str, cause: Optional[Exception] = None) -> None:
        self.table_name = table_name
        msg = "Table does not exist: `{}`".format(table_name)
        super(TableDoesNotExist, self).__init__(msg, cause)


class MissingHashKey(DynamapException):
    """
    Raised before a request is built when the hash key value is missing
    """
    msg = "Hash key value is missing"


class MissingRangeKey(DynamapException):
    """
    Raised before a request is built when the range key value is missing
    """
    msg = "Range key value is missing"


class RecordNotFound(DynamapException):
    """
    Raised when a requested record does not exist
    """
    msg = "Record does not exist"


class DocumentNotValid(DynamapException):
    """
    Raised when a model fails validation and the caller asked for a hard failure
    """
    def __init__(self, model: Any) -> None:
        self.model = model
        errors = getattr(model, 'errors', None) or []
        msg = "Validation failed: {}".format(', '.join(errors)) if errors else "Validation failed"
        super(DocumentNotValid, self).__init__(msg)


class RecordNotSaved(DynamapException):
    """
    Raised when a callback aborts a save and the caller asked for a hard failure
    """
    def __init__(self, model: Any) -> None:
        self.model = model
        super(RecordNotSaved, self).__init__("Failed to save the record {!r}".format(model))


class RecordNotDestroyed(DynamapException):
    """
    Raised when a callback aborts a destroy and the caller asked for a hard failure
    """
    def __init__(self, model: Any) -> None:
        self.model = model
        super(RecordNotDestroyed, self).__init__("Failed to destroy the record {!r}".format(model))


class Rollback(DynamapException):
    """
    Raise inside a write transaction block to discard it without propagating an error
    """
    msg = "Transaction rolled back"


class InvalidStateError(DynamapException):
    """
    Raises when the internal state of an operation context is invalid.
    """
    msg = "Operation in invalid state"


@dataclass
class CancellationReason:
    """
    A reason for a transaction cancellation.

    For a list of possible cancellation reasons and their semantics,
    see `TransactGetItems`_ and `TransactWriteItems`_ in the AWS documentation.

    .. _TransactGetItems: https://docs.aws.amazon.com/amazondynamodb/latest/APIReference/API_TransactGetItems.html
    .. _TransactWriteItems: https://docs.aws.amazon.com/amazondynamodb/latest/APIReference/API_TransactWriteItems.html
    """
    code: str
    message: Optional[str] = None
    raw_item: Optional[Dict[str, Dict[str, Any]]] = None


class TransactWriteError(DynamapException):
    """
    Raised when a :class:`~dynamap.transactions.TransactionWrite` commit fails.
    """
    msg = "Error performing transact write"

    @property
    def cancellation_reasons(self) -> List[Optional[CancellationReason]]:
        """
        When :attr:`.cause_response_code` is ``TransactionCanceledException``, this property lists
        cancellation reasons in the same order as the transaction items (one-to-one).
        Items which were not part of the reason for cancellation would have :code:`None` as the value.
        """
        if not isinstance(self.cause, VerboseClientError):
            return []
        return self.cause.cancellation_reasons


class TransactGetError(DynamapException):
    """
    Raised when a :class:`~dynamap.transactions.TransactionRead` commit fails.
    """
    msg = "Error performing transact get"

    @property
    def cancellation_reasons(self) -> List[Optional[CancellationReason]]:
        """
        When :attr:`.cause_response_code` is ``TransactionCanceledException``, this property lists
        cancellation reasons in the same order as the transaction items (one-to-one).
        """
        if not isinstance(self.cause, VerboseClientError):
            return []
        return self.cause.cancellation_reasons


class VerboseClientError(botocore.exceptions.ClientError):
    def __init__(
        self,
        error_response: Dict[str, Any],
        operation_name: str,
        verbose_properties: Optional[Any] = None,
        *,
        cancellation_reasons: Iterable[Optional[CancellationReason]] = (),
    ) -> None:
        """
        Like ClientError, but with a verbose message.

        :param error_response: Error response in shape expected by ClientError.
        :param operation_name: The name of the operation that failed.
        :param verbose_properties: A dict of properties to include in the verbose message.
        :param cancellation_reasons: For `TransactionCanceledException` error code,
          a list of cancellation reasons in the same order as the transaction's items (one to one).
          For items which were not a reason for the transaction cancellation, :code:`None` will be the value.
        """
        if not verbose_properties:
            verbose_properties = {}

        self.MSG_TEMPLATE = (
            'An error occurred ({{error_code}}) on request ({request_id}) '
            'on table ({table_name}) when calling the {{operation_name}} '
            'operation: {{error_message}}'
        ).format(request_id=verbose_properties.get('request_id'), table_name=verbose_properties.get('table_name'))

        self.cancellation_reasons = list(cancellation_reasons)

        super(VerboseClientError, self).__init__(
            error_response,  # type:ignore[arg-type]
            operation_name,
        )
