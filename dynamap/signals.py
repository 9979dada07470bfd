"""
Signals sent around every DynamoDB request.

Receivers are called with the sending connection and the keyword arguments
``operation_name``, ``table_name`` and ``req_uuid``.
"""
from blinker import Namespace

# The namespace for dynamap signals. If you are not dynamap code, do
# not put signals in here. Create your own namespace instead.
_signals = Namespace()

pre_dynamodb_send = _signals.signal('pre_dynamodb_send')
post_dynamodb_send = _signals.signal('post_dynamodb_send')
