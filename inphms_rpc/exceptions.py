# -*- coding: utf-8 -*-
# Part of Inphms, see License file for full copyright and licensing details.


"""The Inphms RPC Exceptions module defines the exception types raised by the
client itself.

Everything raised on purpose by the library derives from :class:`UserError`.
Faults coming back from the server are not reinterpreted: XML-RPC faults stay
:class:`xmlrpc.client.Fault` and JSON-RPC error payloads become
:class:`RpcError`.
"""


class UserError(Exception):
    """Generic error managed by the client.

    Typically when the caller asks for something that makes no sense given
    the model definition or the server answer.
    """

    def __init__(self, message):
        """
        :param message: exception message
        """
        super().__init__(message)


class AccessDenied(UserError):
    """Login/password error.

    .. admonition:: Example

        When you try to log in with a wrong password.
    """

    def __init__(self, message="Access Denied"):
        super().__init__(message)
        self.with_traceback(None)
        self.__cause__ = None


class MissingError(UserError):
    """Missing model or workflow signal.

    .. admonition:: Example

        When you create an adapter for a model the server does not know,
        even after the model name cache was reloaded.
    """


class ValidationError(UserError):
    """Data does not fit the model definition.

    .. admonition:: Example

        When you filter on a computed field, pass an unknown selection value
        to an import, or the server rejects a bulk load.
    """


class RpcError(Exception):
    """Error payload returned by a JSON-RPC endpoint.

    :param message: the server's error message
    :param code: JSON-RPC error code
    :param data: the ``data`` member of the error, usually holding the remote
        exception name and traceback
    """

    def __init__(self, message, code=None, data=None):
        super().__init__(message)
        self.code = code
        self.data = data or {}

    @property
    def remote_name(self):
        return self.data.get('name')

    @property
    def remote_traceback(self):
        return self.data.get('debug')
