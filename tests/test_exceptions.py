from botocore.exceptions import ClientError

from dynamap.exceptions import (
    CancellationReason, DocumentNotValid, PutError, RecordNotSaved, TableDoesNotExist, TransactGetError,
    TransactWriteError, VerboseClientError,
)


def test_get_cause_response_code():
    error = PutError(
        cause=ClientError(
            error_response={
                'Error': {
                    'Code': 'hello'
                }
            },
            operation_name='test'
        )
    )
    assert error.cause_response_code == 'hello'


def test_get_cause_response_code__no_code():
    error = PutError()
    assert error.cause_response_code is None


def test_get_cause_response_message():
    error = PutError(
        cause=ClientError(
            error_response={
                'Error': {
                    'Message': 'hiya'
                }
            },
            operation_name='test'
        )
    )
    assert error.cause_response_message == 'hiya'


def test_get_cause_response_message__no_message():
    error = PutError()
    assert error.cause_response_message is None
    assert str(error) == 'Error putting item'


def test_table_does_not_exist():
    error = TableDoesNotExist('users')
    assert error.table_name == 'users'
    assert str(error) == 'Table does not exist: `users`'


def test_document_not_valid():
    class Invalid:
        errors = ["name can't be blank", "email can't be blank"]

    model = Invalid()
    error = DocumentNotValid(model)
    assert error.model is model
    assert str(error) == "Validation failed: name can't be blank, email can't be blank"


def test_record_not_saved():
    error = RecordNotSaved('users<1>')
    assert error.model == 'users<1>'
    assert str(error) == "Failed to save the record 'users<1>'"


def test_verbose_client_error():
    error = VerboseClientError(
        {'Error': {'Code': 'ValidationException', 'Message': 'bad request'}},
        'GetItem',
        {'request_id': 'abc', 'table_name': 'users'},
    )
    assert str(error) == (
        'An error occurred (ValidationException) on request (abc) on table (users) '
        'when calling the GetItem operation: bad request'
    )


def test_transact_write_error__cancellation_reasons():
    reasons = [None, CancellationReason(code='ConditionalCheckFailed', message='The conditional request failed')]
    error = TransactWriteError(
        cause=VerboseClientError(
            {'Error': {'Code': 'TransactionCanceledException', 'Message': 'cancelled'}},
            'TransactWriteItems',
            cancellation_reasons=reasons,
        )
    )
    assert error.cause_response_code == 'TransactionCanceledException'
    assert error.cancellation_reasons == reasons


def test_transact_get_error__without_verbose_cause():
    error = TransactGetError(cause=ClientError({'Error': {'Code': 'InternalServerError'}}, 'TransactGetItems'))
    assert error.cancellation_reasons == []
