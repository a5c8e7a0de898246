# -*- coding: utf-8 -*-

# TM1link Exceptions are defined here
import json
from typing import Mapping, Optional


class TM1linkException(Exception):
    """The default exception for TM1link."""

    def __init__(self, message):
        """
        :param message: Exception message
        """
        super().__init__(message)
        self.message = message

    def __str__(self):
        return str(self.message)


class TM1linkConfigException(TM1linkException):
    """Exception for an invalid or incomplete connection configuration."""
    pass


class TM1linkTransportException(TM1linkException):
    """Exception for connection level failures (DNS, TLS, refused, reset)."""
    pass


class TM1linkTimeout(TM1linkException):
    """Exception for timeout during a REST request."""

    def __init__(self, method: str, url: str, timeout: float):
        """
        :param method: HTTP method used
        :param url: URL of the request
        :param timeout: Timeout in seconds
        """
        self.method = method
        self.url = url
        self.timeout = timeout
        super().__init__(f"Timeout after {timeout} seconds for '{method}' request with url :'{url}'")


class TM1linkRestException(TM1linkException):
    """Exception for failing REST operations."""

    def __init__(self, response: str, status_code: int, reason: str, headers: Mapping,
                 method: str = None, url: str = None):
        """
        :param response: Response text
        :param status_code: HTTP status code
        :param reason: Reason phrase
        :param headers: HTTP headers
        :param method: HTTP method of the failed request
        :param url: URL of the failed request
        """
        super(TM1linkRestException, self).__init__(response)
        self._status_code = status_code
        self._reason = reason
        self._headers = headers
        self.method = method
        self.url = url
        self.code, self.error_message = self._parse_error_body(response)

    @staticmethod
    def _parse_error_body(response) -> tuple:
        # TM1 error body: {"error": {"code": "...", "message": "..."}}
        try:
            error = json.loads(response)["error"]
            return error.get("code"), error.get("message")
        except (ValueError, TypeError, KeyError, AttributeError):
            return None, None

    @property
    def status_code(self):
        """HTTP status code."""
        return self._status_code

    @property
    def reason(self):
        """Reason phrase."""
        return self._reason

    @property
    def response(self):
        """Response text."""
        return self.message

    @property
    def headers(self):
        """HTTP headers."""
        return self._headers

    def __str__(self):
        return "Text: '{}' - Status Code: {} - Reason: '{}' - Method: {} - URL: '{}'".format(
            self.message, self._status_code, self._reason, self.method, self.url
        )


class TM1linkAuthFailure(TM1linkRestException):
    """Exception for HTTP 401 and failed logins."""
    pass


class TM1linkForbidden(TM1linkRestException):
    """Exception for HTTP 403."""
    pass


class TM1linkNotFound(TM1linkRestException):
    """Exception for HTTP 404."""
    pass


class TM1linkConflict(TM1linkRestException):
    """Exception for HTTP 409."""
    pass


class TM1linkServerError(TM1linkRestException):
    """Exception for any other HTTP status >= 400."""
    pass


class TM1linkProtocolException(TM1linkException):
    """Exception for responses that do not have the expected shape."""
    pass


class TM1linkInvalidArgument(TM1linkException):
    """Exception for arguments rejected before a request is sent."""
    pass


class TM1linkInvalidMDXException(TM1linkException):
    """Exception for MDX queries that can not be built."""
    pass


class TM1linkVersionException(TM1linkException):
    """Exception for usage of a feature requiring a higher TM1 server version."""

    def __init__(self, function: str, required_version, version: str = None, feature: str = None):
        """
        :param function: Name of the function
        :param required_version: Required TM1 server version
        :param version: Actual TM1 server version
        :param feature: Optional feature name
        """
        self.function = function
        self.required_version = required_version
        self.version = version
        self.feature = feature

        require_string = f"requires TM1 server version >= '{required_version}'"
        if version:
            require_string += f" (server version is '{version}')"
        if feature:
            message = f"'{feature}' feature of function '{function}' {require_string}"
        else:
            message = f"Function '{function}' {require_string}"
        super().__init__(message)


class TM1linkVersionDeprecationException(TM1linkException):
    """Exception for usage of a feature that is not available anymore."""

    def __init__(self, function: str, deprecated_in_version):
        """
        :param function: Name of the function
        :param deprecated_in_version: Version in which the function was deprecated
        """
        self.function = function
        self.deprecated_in_version = deprecated_in_version
        super().__init__(
            f"Function '{function}' has been deprecated in TM1 server version >= '{deprecated_in_version}'")


class TM1linkUnsupportedAuth(TM1linkException):
    """Exception for authentication modes that can not be served in this environment."""
    pass


class TM1linkPermissionException(TM1linkException):
    """Exception for missing permissions."""

    def __init__(self, function: str, required_permission: str):
        """
        :param function: Name of the function
        :param required_permission: Name of Permission, e.g. DataAdmin
        """
        self.function = function
        self.required_permission = required_permission
        super().__init__(f"Function '{function}' requires {required_permission} permissions")


class TM1linkNotAdminException(TM1linkPermissionException):

    def __init__(self, function: str):
        super().__init__(function, "admin")


class TM1linkNotDataAdminException(TM1linkPermissionException):

    def __init__(self, function: str):
        super().__init__(function, "DataAdmin")


class TM1linkNotSecurityAdminException(TM1linkPermissionException):

    def __init__(self, function: str):
        super().__init__(function, "SecurityAdmin")


class TM1linkNotOpsAdminException(TM1linkPermissionException):

    def __init__(self, function: str):
        super().__init__(function, "OperationsAdmin")


class TM1linkProcessFailed(TM1linkException):
    """Exception for a process execution that did not complete successfully."""

    def __init__(self, process_name: str, status: str, error_log_file: Optional[str] = None,
                 error_log: Optional[str] = None):
        """
        :param process_name: name of the executed process
        :param status: ProcessExecuteStatusCode reported by TM1
        :param error_log_file: name of the error log file, if any
        :param error_log: content of the error log file, if it could be retrieved
        """
        self.process_name = process_name
        self.status = status
        self.error_log_file = error_log_file
        self.error_log = error_log
        message = f"Process '{process_name}' finished with status '{status}'"
        if error_log_file:
            message += f". Error log file: '{error_log_file}'"
        super().__init__(message)


STATUS_CODE_EXCEPTIONS = {
    401: TM1linkAuthFailure,
    403: TM1linkForbidden,
    404: TM1linkNotFound,
    409: TM1linkConflict,
}


def raise_for_status(response, method: str = None, url: str = None):
    """ raise the matching TM1linkRestException for a requests.Response with status >= 400

    :param response: requests.Response
    :param method: HTTP method of the request
    :param url: URL of the request
    """
    if response.status_code < 400:
        return
    exception_class = STATUS_CODE_EXCEPTIONS.get(response.status_code, TM1linkServerError)
    raise exception_class(
        response.text,
        status_code=response.status_code,
        reason=response.reason,
        headers=response.headers,
        method=method,
        url=url)
