# -*- coding: utf-8 -*-
import json
import re
import socket
import threading
import time
import warnings
from base64 import b64decode, b64encode
from enum import Enum
from http.client import HTTPResponse
from http.cookies import CookieError, SimpleCookie
from io import BytesIO
from json import JSONDecodeError
from typing import Dict, Optional, Tuple, Union

import requests
import urllib3
from requests import ConnectionError, Response, Session, Timeout
from requests.adapters import HTTPAdapter
from urllib3._collections import HTTPHeaderDict

from TM1link.Exceptions.Exceptions import (
    TM1linkAuthFailure,
    TM1linkConfigException,
    TM1linkProtocolException,
    TM1linkTimeout,
    TM1linkTransportException,
    TM1linkUnsupportedAuth,
    TM1linkVersionDeprecationException,
    TM1linkNotFound,
    raise_for_status,
)
from TM1link.Utils import (
    CaseAndSpaceInsensitiveSet,
    HTTPAdapterWithSocketOptions,
    DEPRECATION_GATES,
    case_and_space_insensitive_equals,
    verify_version_gate,
)

try:
    from requests_negotiate_sspi import HttpNegotiateAuth
except ImportError:
    HttpNegotiateAuth = None
    warnings.warn("requests_negotiate_sspi failed to import. SSO will not work", ImportWarning)

import http.client as http_client


class AuthenticationMode(Enum):
    BASIC = 1
    WIA = 2
    CAM = 3
    CAM_SSO = 4
    IBM_CLOUD_API_KEY = 5
    SERVICE_TO_SERVICE = 6
    PA_PROXY = 7
    ACCESS_TOKEN = 8
    SESSION_REUSE = 9

    @property
    def use_v12_auth(self) -> bool:
        return self in (
            AuthenticationMode.IBM_CLOUD_API_KEY,
            AuthenticationMode.SERVICE_TO_SERVICE,
            AuthenticationMode.PA_PROXY,
            AuthenticationMode.ACCESS_TOKEN)

    @property
    def can_reconnect(self) -> bool:
        # a reused session can not be re-established without credentials
        return self is not AuthenticationMode.SESSION_REUSE


class RestService:
    """ Low level communication with TM1 instance through HTTP.
        Allows to execute HTTP Methods
            - GET
            - POST
            - PATCH
            - PUT
            - DELETE
        Takes Care of
            - Encodings
            - TM1 User-Login
            - HTTP Headers
            - HTTP Session Management
            - Asynchronous requests
            - Response Handling
        Based on requests module
    """

    HEADERS = {
        "Connection": "keep-alive",
        "User-Agent": "TM1link",
        "Content-Type": "application/json; odata.streaming=true; charset=utf-8",
        "Accept": "application/json;odata.metadata=none,text/plain",
        "TM1-SessionContext": "TM1link",
    }

    DEFAULT_CONNECTION_POOL_SIZE = 10
    DEFAULT_IAM_URL = "https://iam.cloud.ibm.com"
    DEFAULT_POOL_CONNECTIONS = 1
    DEFAULT_MAX_RETRY_ATTEMPTS = 1
    VERSION_URL = "/Configuration/ProductVersion/$value"
    PRIVILEGE_GROUPS = {
        "admin": ("Admin",),
        "data_admin": ("Admin", "DataAdmin"),
        "security_admin": ("Admin", "SecurityAdmin"),
        "ops_admin": ("Admin", "OperationsAdmin"),
    }

    def __init__(self, **kwargs):
        """ Create an instance of RestService

        :param address: String - address of the TM1 instance
        :param port: Int - HTTPPortNumber as specified in the tm1s.cfg
        :param ssl: boolean -  as specified in the tm1s.cfg
        :param instance: string - planning analytics engine (v12) instance name
        :param database: string - planning analytics engine (v12) database name
        :param base_url: base url
        :param auth_url: auth url, overrides the derived one
        :param user: String - name of the user
        :param password: String - password of the user
        :param decode_b64: whether password argument is b64 encoded
        :param namespace: String - optional CAM namespace
        :param gateway: String - CAM gateway for SSO
        :param cam_passport: String - the cam passport
        :param session_id: String - TM1SessionId (or paSession) of an existing session
        :param application_client_id: v12 named application client ID
        :param application_client_secret: v12 named application secret
        :param api_key: String - v12 API Key
        :param iam_url: String - IBM Cloud IAM URL, defaults to "https://iam.cloud.ibm.com" when a tenant is given
        :param cpd_url: String - cloud pak for data url, issues the JWT for the PA proxy
        :param tenant: String - v12 Tenant
        :param access_token: String - bearer token
        :param session_context: String - Name of the Application. Controls "Context" column in Arc / TM1top.
        :param verify: path to .cer file or 'True' / True / 'False' / False
        :param verify_cert_path: path to .cer file, takes precedence over verify
        :param logging: boolean - switch on/off verbose http logging into sys.stdout
        :param timeout: Float - Number of seconds that the client will wait to receive the first byte.
        :param cancel_at_timeout: Abort async operation in TM1 when timeout is reached
        :param async_requests_mode: poll for results to avoid the 60s gateway timeout on IBM cloud
        :param connection_pool_size: Maximum number of connections to save in the pool (default: 10).
        :param pool_connections: Number of connection pools to cache (default: 1)
        :param integrated_login: True for IntegratedSecurityMode3
        :param integrated_login_domain: NT Domain name.
        :param integrated_login_service: Kerberos Service type for remote Service Principal Name.
        :param integrated_login_host: Host name for Service Principal Name.
        :param integrated_login_delegate: Indicates that the user's credentials are to be delegated to the server.
        :param impersonate: Name of user to impersonate
        :param reconnect_on_session_timeout: re-login and retry when the session timed out (401)
        :param reconnect_on_remote_disconnect: re-login and retry idempotent requests after a dropped connection
        :param max_retry_attempts: number of retries after 401 or remote disconnect (default: 1)
        :param keep_alive: don't close the TM1 session on logout
        :param tcp_keep_alive: send TCP keep-alive packets on pooled connections (default: True)
        :param proxies: dictionary or JSON string with proxies e.g.
                {'http': 'http://proxy.example.com:8080', 'https': 'http://secureproxy.example.com:8090'}
        :param ssl_context: Pass a user defined ssl context
        :param cert: (optional) If String, path to SSL client cert file (.pem). If Tuple, ('cert', 'key') pair
        """
        # stored for re-use on reconnect
        self._kwargs = kwargs

        self._ssl = self.translate_to_boolean(kwargs.get("ssl", True))
        self._address = kwargs.get("address", None)
        self._port = kwargs.get("port", None)
        self._base_url = kwargs.get("base_url", None)
        self._auth_url = kwargs.get("auth_url", None)
        self._instance = kwargs.get("instance", None)
        self._database = kwargs.get("database", None)
        self._api_key = kwargs.get("api_key", None)
        self._cpd_url = kwargs.get("cpd_url", None)
        self._tenant = kwargs.get("tenant", None)
        self._iam_url = kwargs.get("iam_url", None) or (self.DEFAULT_IAM_URL if self._tenant else None)
        self._user = kwargs.get("user", kwargs.get("username", None))

        self._auth_mode = self.determine_auth_mode(kwargs)
        self._timeout = None if kwargs.get("timeout", None) is None else float(kwargs.get("timeout"))
        self._cancel_at_timeout = self.translate_to_boolean(kwargs.get("cancel_at_timeout", False))
        self._async_requests_mode = self.translate_to_boolean(kwargs.get("async_requests_mode", False))
        self._connection_pool_size = int(kwargs.get("connection_pool_size", self.DEFAULT_CONNECTION_POOL_SIZE))
        self._pool_connections = int(kwargs.get("pool_connections", self.DEFAULT_POOL_CONNECTIONS))
        self._reconnect_on_session_timeout = self.translate_to_boolean(
            kwargs.get("reconnect_on_session_timeout", kwargs.get("re_connect_on_session_timeout", True)))
        self._reconnect_on_remote_disconnect = self.translate_to_boolean(
            kwargs.get("reconnect_on_remote_disconnect", kwargs.get("re_connect_on_remote_disconnect", True)))
        self._max_retry_attempts = int(kwargs.get("max_retry_attempts", self.DEFAULT_MAX_RETRY_ATTEMPTS))
        self._keep_alive = self.translate_to_boolean(kwargs.get("keep_alive", False))
        self._tcp_keep_alive = self.translate_to_boolean(kwargs.get("tcp_keep_alive", True))
        self.handle_logging(kwargs.get("logging", False))

        # guards session cookie, authorization header and the privilege cache
        self._lock = threading.RLock()
        self._privileges: Dict[str, bool] = {}

        self._proxies = self._handle_proxies(kwargs.get("proxies", None))
        self._ssl_context = kwargs.get("ssl_context", None)
        self._verify = self._determine_verify(kwargs.get("verify_cert_path") or kwargs.get("verify", None))

        self._base_url, self._auth_url = self._construct_service_and_auth_root()

        self._version = None
        self._headers = self.HEADERS.copy()
        if kwargs.get("session_context"):
            self._headers["TM1-SessionContext"] = kwargs["session_context"]

        self.disable_http_warnings()

        self._s = Session()
        self._manage_http_adapter()

        self._cert = kwargs.get("cert")
        self._s.cert = self._cert

        if self._proxies:
            self._s.proxies = self._proxies

        # First contact with TM1
        self.connect()

    @staticmethod
    def determine_auth_mode(kwargs: Dict) -> AuthenticationMode:
        """ derive the authentication mode from the configuration. First match wins """
        if kwargs.get("session_id"):
            return AuthenticationMode.SESSION_REUSE
        if kwargs.get("access_token"):
            return AuthenticationMode.ACCESS_TOKEN
        if kwargs.get("cpd_url"):
            return AuthenticationMode.PA_PROXY
        if kwargs.get("api_key") and (kwargs.get("tenant") or kwargs.get("iam_url")):
            return AuthenticationMode.IBM_CLOUD_API_KEY
        if kwargs.get("application_client_id") and kwargs.get("application_client_secret"):
            return AuthenticationMode.SERVICE_TO_SERVICE
        if kwargs.get("gateway"):
            return AuthenticationMode.CAM_SSO
        if kwargs.get("namespace") or kwargs.get("cam_passport"):
            return AuthenticationMode.CAM
        if RestService.translate_to_boolean(kwargs.get("integrated_login", False)):
            return AuthenticationMode.WIA
        return AuthenticationMode.BASIC

    def _determine_verify(self, verify: Union[bool, str] = None) -> Union[bool, str]:
        if verify is None:
            # Default SSL verification in v12 is True
            return self._auth_mode.use_v12_auth

        if isinstance(verify, bool):
            return verify

        if isinstance(verify, str):
            if verify.upper() == "FALSE":
                return False
            if verify.upper() == "TRUE":
                return True
            # path to .cer file
            return verify

        raise TM1linkConfigException("'verify' argument must be of type str or bool")

    def handle_logging(self, logging: Union[str, bool]):
        if logging and self.translate_to_boolean(value=logging):
            http_client.HTTPConnection.debuglevel = 1

    @staticmethod
    def _handle_proxies(proxies: Union[Dict, str]):
        if proxies is None or isinstance(proxies, dict):
            return proxies

        if isinstance(proxies, str):
            try:
                return json.loads(proxies)
            except JSONDecodeError:
                raise TM1linkConfigException(f"Invalid JSON passed for argument 'proxies': {proxies}")

        raise TM1linkConfigException("Argument of 'proxies' must be None, dictionary or JSON string")

    def _protocol(self) -> str:
        return "https" if self._ssl else "http"

    def _host(self) -> str:
        return self._address if self._address else "localhost"

    def _construct_service_and_auth_root(self) -> Tuple[str, str]:
        """ Create the service root URL (base_url) and the URL to authenticate against

        An explicit auth_url always overrides the derived one
        """
        if self._api_key and self._tenant:
            base_url, auth_url = self._construct_ibm_cloud_service_and_auth_root()
        elif self._instance and self._database:
            base_url, auth_url = self._construct_s2s_service_and_auth_root()
        elif self._cpd_url:
            base_url, auth_url = self._construct_pa_proxy_service_and_auth_root()
        elif self._base_url:
            base_url, auth_url = self._construct_service_and_auth_root_from_base_url()
        else:
            base_url, auth_url = self._construct_v11_service_and_auth_root()
        return base_url, self._auth_url or auth_url

    def _construct_ibm_cloud_service_and_auth_root(self) -> Tuple[str, str]:
        if not all([self._address, self._tenant, self._database]):
            raise TM1linkConfigException(
                "'address', 'tenant' and 'database' must be provided to connect to TM1 > v12 in IBM Cloud")

        if not self._ssl:
            raise TM1linkConfigException("'ssl' must be True to connect to TM1 > v12 in IBM Cloud")

        base_url = f"https://{self._address}/api/{self._tenant}/v0/tm1/{self._database}"
        return base_url, base_url + self.VERSION_URL

    def _construct_s2s_service_and_auth_root(self) -> Tuple[str, str]:
        port = f":{self._port}" if self._port is not None else ""
        root = f"{self._protocol()}://{self._host()}{port}/{self._instance}"
        return f"{root}/api/v1/Databases('{self._database}')", f"{root}/auth/v1/session"

    def _construct_pa_proxy_service_and_auth_root(self) -> Tuple[str, str]:
        if not all([self._address, self._database]):
            raise TM1linkConfigException(
                "'address' and 'database' must be provided to connect to TM1 > v12 using PA Proxy")

        base_url = f"{self._protocol()}://{self._address}/tm1/{self._database}/api/v1"
        return base_url, f"{self._protocol()}://{self._address}/login"

    def _construct_service_and_auth_root_from_base_url(self) -> Tuple[str, str]:
        if self._address is not None:
            raise TM1linkConfigException("Base URL and Address can not be specified at the same time")

        base_url = self._base_url.rstrip("/")
        if "/api/v1/Databases" in base_url:
            # v12 requires an auth URL to be provided together with the base URL
            if not self._auth_url:
                raise TM1linkConfigException(
                    "'auth_url' missing. When connecting to planning analytics engine through 'base_url' "
                    "a corresponding 'auth_url' must be specified")
            return base_url, self._auth_url

        if not base_url.endswith("/api/v1"):
            base_url += "/api/v1"
        return base_url, base_url + self.VERSION_URL

    def _construct_v11_service_and_auth_root(self) -> Tuple[str, str]:
        if self._port is None:
            raise TM1linkConfigException("'port' must be provided when connecting through 'address'")
        base_url = f"{self._protocol()}://{self._host()}:{self._port}/api/v1"
        return base_url, base_url + self.VERSION_URL

    def _manage_http_adapter(self):
        adapter = HTTPAdapterWithSocketOptions(
            pool_connections=self._pool_connections,
            pool_maxsize=self._connection_pool_size,
            ssl_context=self._ssl_context,
            socket_options=[
                (socket.IPPROTO_TCP, socket.TCP_NODELAY, 1),
                (socket.SOL_SOCKET, socket.SO_KEEPALIVE, int(self._tcp_keep_alive)),
                (socket.SOL_SOCKET, socket.SO_REUSEADDR, 1),
            ],
        )

        self._s.mount(self._base_url, adapter)

    def __enter__(self):
        return self

    def __exit__(self, exception_type, exception_value, traceback):
        try:
            self.logout()
        except Exception as e:
            warnings.warn(f"Logout Failed due to Exception: {e}")

    def request(
            self,
            method: str,
            url: str,
            data: Union[str, bytes, BytesIO] = "",
            encoding: str = "utf-8",
            async_requests_mode: Optional[bool] = None,
            return_async_id: bool = False,
            timeout: float = None,
            cancel_at_timeout: Optional[bool] = None,
            idempotent: bool = False,
            verify_response: bool = True,
            max_retry_attempts: int = None,
            **kwargs) -> Union[Response, str]:
        """ Execute a request to the TM1 REST API

        :param method: HTTP method
        :param url: path relative to the service root
        :param idempotent: request may be re-sent after a dropped connection
        :param max_retry_attempts: overrides the configured number of retries for this request
        :return: response object or async_id
        """
        full_url, data = self._url_and_body(url=url, data=data, encoding=encoding)
        timeout = timeout if timeout else self._timeout
        if cancel_at_timeout is None:
            cancel_at_timeout = self._cancel_at_timeout

        if return_async_id:
            async_requests_mode = True
        elif async_requests_mode is None:
            async_requests_mode = self._async_requests_mode

        max_retry_attempts = self._max_retry_attempts if max_retry_attempts is None else max_retry_attempts
        attempts_left = max_retry_attempts

        while True:
            try:
                if async_requests_mode:
                    response = self._execute_async_request(
                        method=method,
                        url=full_url,
                        data=data,
                        timeout=timeout,
                        cancel_at_timeout=cancel_at_timeout,
                        return_async_id=return_async_id,
                        **kwargs)
                else:
                    response = self._execute_sync_request(
                        method=method, url=full_url, data=data, timeout=timeout, **kwargs)

            except Timeout as e:
                raise TM1linkTimeout(method=method, url=full_url, timeout=timeout) from e

            except ConnectionError as e:
                # requests reports some read timeouts as connection errors
                if re.search("Read timed out", str(e), re.IGNORECASE):
                    raise TM1linkTimeout(method=method, url=full_url, timeout=timeout) from e

                if self._is_remote_disconnect(e) and self._reconnect_on_remote_disconnect:
                    if idempotent and attempts_left > 0 and self._auth_mode.can_reconnect:
                        warnings.warn(f"Connection aborted due to remote disconnect. Reconnecting: {e}")
                        self._manage_http_adapter()
                        attempts_left = self._backoff_and_reconnect(attempts_left, max_retry_attempts)
                        continue
                    if not idempotent:
                        warnings.warn(f"Not retrying {method.upper()} request after remote disconnect "
                                      f"(idempotent={idempotent})")

                raise TM1linkTransportException(f"'{method.upper()}' request to '{full_url}' failed: {e}") from e

            if return_async_id and isinstance(response, str):
                return response

            if response.status_code == 401 and self._may_reconnect_on_session_timeout(attempts_left):
                attempts_left = self._backoff_and_reconnect(attempts_left, max_retry_attempts)
                continue

            if verify_response:
                self.verify_response(response=response, method=method, url=full_url)
            response.encoding = encoding
            return response

    @staticmethod
    def _is_remote_disconnect(error: Exception) -> bool:
        return bool(re.search("RemoteDisconnected|Connection aborted|Connection reset", str(error), re.IGNORECASE))

    def _may_reconnect_on_session_timeout(self, attempts_left: int) -> bool:
        return self._reconnect_on_session_timeout and attempts_left > 0 and self._auth_mode.can_reconnect

    def _backoff_and_reconnect(self, attempts_left: int, max_retry_attempts: int) -> int:
        time.sleep(2 ** (max_retry_attempts - attempts_left))
        self.connect()
        return attempts_left - 1

    def _execute_sync_request(self, method: str, url: str, data: bytes, timeout: float, **kwargs) -> Response:
        return self._s.request(method=method, url=url, data=data, verify=self._verify, timeout=timeout, **kwargs)

    def _execute_async_request(
            self,
            method: str,
            url: str,
            data: bytes,
            timeout: float,
            cancel_at_timeout: bool,
            return_async_id: bool,
            **kwargs) -> Union[Response, str]:
        """ send with 'Prefer: respond-async' and poll /_async('id') until the result is available """
        http_headers = dict(kwargs.get("headers") or {})
        http_headers["Prefer"] = "respond-async"
        kwargs["headers"] = http_headers

        response = self._s.request(method=method, url=url, data=data, verify=self._verify, timeout=timeout, **kwargs)
        if response.status_code != 202:
            # 401 is handled by the caller, anything else is a final response
            return response

        location = response.headers.get("Location", "")
        if "'" not in location:
            raise TM1linkProtocolException(
                f"Async response for '{method.upper()}' request to '{url}' lacks a valid 'Location' header")

        async_id = location.split("'")[1]
        if return_async_id:
            return async_id

        response = self._poll_async_response(async_id, timeout, cancel_at_timeout, method, url)
        return self._transform_async_response(response)

    def _poll_async_response(self, async_id: str, timeout: float, cancel_at_timeout: bool, method: str,
                             url: str) -> Response:
        for wait in RestService.wait_time_generator(timeout):
            response = self.retrieve_async_response(async_id)
            if response.status_code in [200, 201]:
                return response
            time.sleep(wait)

        # the operation may have completed during the last wait
        response = self.retrieve_async_response(async_id)
        if response.status_code in [200, 201]:
            return response

        if cancel_at_timeout:
            self.cancel_async_operation(async_id)
        raise TM1linkTimeout(method=method, url=url, timeout=timeout)

    def _transform_async_response(self, response: Response) -> Response:
        # older versions embed the complete HTTP message in the body
        if response.content.startswith(b"HTTP/"):
            return self.build_response_from_binary_response(response.content)

        # v12 reports the effective status in the asyncresult header
        if "asyncresult" in response.headers:
            response.status_code = int(response.headers["asyncresult"].split()[0])
        return response

    def connect(self):
        with self._lock:
            self._reset_privileges()
            if self._auth_mode is AuthenticationMode.SESSION_REUSE:
                self._set_session_id_cookie()
            else:
                self._start_session(
                    user=self._user,
                    password=self._kwargs.get("password", None),
                    namespace=self._kwargs.get("namespace", None),
                    gateway=self._kwargs.get("gateway", None),
                    cam_passport=self._kwargs.get("cam_passport", None),
                    decode_b64=self.translate_to_boolean(
                        self._kwargs.get("decode_b64", self._kwargs.get("decode_base64", False))),
                    impersonate=self._kwargs.get("impersonate", None))

    def _reset_privileges(self):
        self._privileges = {}
        # the Admin user is trusted without asking the server
        if self._user and case_and_space_insensitive_equals(self._user, "ADMIN"):
            self._privileges = {privilege: True for privilege in self.PRIVILEGE_GROUPS}

    def _is_v12_deployment(self) -> bool:
        """ judged from the configuration alone, before any request is sent """
        return self._auth_mode.use_v12_auth or bool(self._instance) or "/api/v1/Databases" in self._base_url

    def _set_session_id_cookie(self):
        if self._is_v12_deployment():
            self._s.cookies.set("paSession", self._kwargs["session_id"])
        else:
            self._s.cookies.set("TM1SessionId", self._kwargs["session_id"])

    def _start_session(
            self,
            user: str,
            password: str,
            decode_b64: bool = False,
            namespace: str = None,
            gateway: str = None,
            cam_passport: str = None,
            impersonate: str = None):
        """ authenticate against the auth_url and keep the session cookie """
        if impersonate:
            if self._is_v12_deployment():
                raise TM1linkVersionDeprecationException("impersonate", DEPRECATION_GATES["impersonate"])
            self.add_http_header("TM1-Impersonate", impersonate)

        jwt = None
        if self._auth_mode is AuthenticationMode.WIA:
            if HttpNegotiateAuth is None:
                raise TM1linkUnsupportedAuth(
                    "Integrated login requires the 'requests_negotiate_sspi' package (Windows only)")
            self._s.auth = HttpNegotiateAuth(
                domain=self._kwargs.get("integrated_login_domain"),
                service=self._kwargs.get("integrated_login_service"),
                host=self._kwargs.get("integrated_login_host"),
                delegate=self._kwargs.get("integrated_login_delegate"))

        elif self._auth_mode is AuthenticationMode.SERVICE_TO_SERVICE:
            self.add_http_header("Authorization", self._build_authorization_token_basic(
                self._kwargs["application_client_id"], self._kwargs["application_client_secret"]))

        elif self._auth_mode is AuthenticationMode.PA_PROXY:
            jwt = self._generate_cpd_access_token({"username": user, "password": password})

        elif self._auth_mode is AuthenticationMode.IBM_CLOUD_API_KEY:
            self.add_http_header("Authorization", "Bearer " + self._generate_ibm_iam_cloud_access_token())

        elif self._auth_mode is AuthenticationMode.ACCESS_TOKEN:
            self.add_http_header("Authorization", "Bearer " + self._kwargs["access_token"])

        # v11 authorization (Basic, CAM) through Headers
        else:
            if user is None and self._api_key:
                user, password = "apikey", self._api_key
            elif decode_b64 and password:
                password = self.b64_decode_password(password)
            token = self._build_authorization_token(
                user, password, namespace, gateway, cam_passport, self._verify, self._cert)
            self.add_http_header("Authorization", token)

        try:
            if self._auth_mode is AuthenticationMode.SERVICE_TO_SERVICE:
                response = self._s.post(
                    url=self._auth_url,
                    headers=self._headers,
                    verify=self._verify,
                    timeout=self._timeout,
                    json={"User": user})
                self.verify_response(response, "POST", self._auth_url)

            elif self._auth_mode is AuthenticationMode.PA_PROXY:
                response = self._s.post(
                    url=self._auth_url,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                    verify=self._verify,
                    timeout=self._timeout,
                    data=f"jwt={jwt}")
                self.verify_response(response, "POST", self._auth_url)
                csrf_cookie = response.cookies.get("ba-sso-csrf")
                if csrf_cookie:
                    self.add_http_header("ba-sso-authenticity", csrf_cookie)

            else:
                response = self._s.get(
                    url=self._auth_url, headers=self._headers, verify=self._verify, timeout=self._timeout)
                self.verify_response(response, "GET", self._auth_url)
                if self._auth_url.endswith(self.VERSION_URL):
                    self._version = response.text

            self._store_session_cookie(response)

        except Timeout as e:
            raise TM1linkTimeout(method="GET", url=self._auth_url, timeout=self._timeout) from e
        except ConnectionError as e:
            raise TM1linkTransportException(f"Failed to connect to '{self._auth_url}': {e}") from e

        finally:
            # After we have session cookie, drop the Authorization Header
            self.remove_http_header("Authorization")

        if impersonate and self._version and not verify_version_gate("impersonate", self._version):
            self.remove_http_header("TM1-Impersonate")
            raise TM1linkVersionDeprecationException("impersonate", DEPRECATION_GATES["impersonate"])

    def _store_session_cookie(self, response: Response):
        """ keep the session cookie in the jar, also when a proxy sets it for a different domain """
        session_id = self._s.cookies.pop("TM1SessionId", None)
        if session_id is not None:
            self._s.cookies.set("TM1SessionId", session_id)
            return

        if "paSession" in self._s.cookies:
            return

        session_cookie = self._extract_session_cookie_from_set_cookie_header(response.headers)
        if session_cookie:
            self._s.cookies.set(*session_cookie)
            warnings.warn(
                "Session cookie has failed to be automatically added to the session cookies. Future requests "
                "will use the session id extracted from the first response")

    @staticmethod
    def _extract_session_cookie_from_set_cookie_header(headers) -> Optional[Tuple[str, str]]:
        set_cookie = headers.get("set-cookie")
        if not set_cookie:
            return None
        cookie = SimpleCookie()
        try:
            # first pair only, the domain attribute may be invalid for this client
            cookie.load(set_cookie.split(";")[0])
        except CookieError:
            return None
        for name, morsel in cookie.items():
            return name, morsel.value
        return None

    def _url_and_body(self, url: str, data: Union[str, bytes, BytesIO], encoding: str = "utf-8") -> Tuple[str, bytes]:
        """ create proper url and payload """
        # drop leading '/api/v1' from URL
        url = self._base_url + (url[len("/api/v1"):] if url.startswith("/api/v1") else url)
        url = url.replace(" ", "%20")
        if isinstance(data, str):
            data = data.encode(encoding)
        return url, data

    def _request_with_headers(self, method: str, url: str, data, headers: Dict, **kwargs):
        with self._lock:
            merged_headers = {**self._headers, **headers} if headers else dict(self._headers)
        return self.request(method=method, url=url, data=data, headers=merged_headers, **kwargs)

    def GET(self, url: str, data: Union[str, bytes, BytesIO] = "", headers: Dict = None,
            async_requests_mode: bool = None, return_async_id: bool = False, timeout: float = None,
            cancel_at_timeout: bool = None, encoding: str = "utf-8", idempotent: bool = True,
            verify_response: bool = True, **kwargs):
        """ Perform a GET request against TM1 instance

        :param url:
        :param data: the payload
        :param headers: custom headers
        :param async_requests_mode: changes internal REST execution mode to avoid 60s timeout on IBM cloud
        :param return_async_id: If True function will return async_id after initiation and not await the execution
        :param timeout: Number of seconds that the client will wait to receive the first byte.
        :param cancel_at_timeout: Abort operation in TM1 when timeout is reached
        :param encoding:
        :param idempotent: GET is retried after a remote disconnect
        :return: response object or async_id
        """
        return self._request_with_headers(
            "get", url, data, headers,
            async_requests_mode=async_requests_mode,
            return_async_id=return_async_id,
            timeout=timeout,
            cancel_at_timeout=cancel_at_timeout,
            encoding=encoding,
            idempotent=idempotent,
            verify_response=verify_response,
            **kwargs)

    def POST(self, url: str, data: Union[str, bytes, BytesIO] = "", headers: Dict = None,
             async_requests_mode: bool = None, return_async_id: bool = False, timeout: float = None,
             cancel_at_timeout: bool = None, encoding: str = "utf-8", idempotent: bool = False,
             verify_response: bool = True, **kwargs):
        """ Perform a POST request against TM1 instance. Same arguments as GET """
        return self._request_with_headers(
            "post", url, data, headers,
            async_requests_mode=async_requests_mode,
            return_async_id=return_async_id,
            timeout=timeout,
            cancel_at_timeout=cancel_at_timeout,
            encoding=encoding,
            idempotent=idempotent,
            verify_response=verify_response,
            **kwargs)

    def PATCH(self, url: str, data: Union[str, bytes, BytesIO] = "", headers: Dict = None,
              async_requests_mode: bool = None, return_async_id: bool = False, timeout: float = None,
              cancel_at_timeout: bool = None, encoding: str = "utf-8", idempotent: bool = False,
              verify_response: bool = True, **kwargs):
        """ Perform a PATCH request against TM1 instance. Same arguments as GET """
        return self._request_with_headers(
            "patch", url, data, headers,
            async_requests_mode=async_requests_mode,
            return_async_id=return_async_id,
            timeout=timeout,
            cancel_at_timeout=cancel_at_timeout,
            encoding=encoding,
            idempotent=idempotent,
            verify_response=verify_response,
            **kwargs)

    def PUT(self, url: str, data: Union[str, bytes, BytesIO] = "", headers: Dict = None,
            async_requests_mode: bool = None, return_async_id: bool = False, timeout: float = None,
            cancel_at_timeout: bool = None, encoding: str = "utf-8", idempotent: bool = False,
            verify_response: bool = True, **kwargs):
        """ Perform a PUT request against TM1 instance. Same arguments as GET """
        return self._request_with_headers(
            "put", url, data, headers,
            async_requests_mode=async_requests_mode,
            return_async_id=return_async_id,
            timeout=timeout,
            cancel_at_timeout=cancel_at_timeout,
            encoding=encoding,
            idempotent=idempotent,
            verify_response=verify_response,
            **kwargs)

    def DELETE(self, url: str, data: Union[str, bytes, BytesIO] = "", headers: Dict = None,
               async_requests_mode: bool = None, return_async_id: bool = False, timeout: float = None,
               cancel_at_timeout: bool = None, encoding: str = "utf-8", idempotent: bool = False,
               verify_response: bool = True, **kwargs):
        """ Perform a DELETE request against TM1 instance. Same arguments as GET """
        return self._request_with_headers(
            "delete", url, data, headers,
            async_requests_mode=async_requests_mode,
            return_async_id=return_async_id,
            timeout=timeout,
            cancel_at_timeout=cancel_at_timeout,
            encoding=encoding,
            idempotent=idempotent,
            verify_response=verify_response,
            **kwargs)

    def logout(self, timeout: float = None, **kwargs):
        """ End TM1 Session and HTTP session. Never retried """
        try:
            if not self._keep_alive:
                self.POST(
                    "/ActiveSession/tm1.Close",
                    "",
                    headers={"Connection": "close"},
                    timeout=timeout,
                    async_requests_mode=False,
                    max_retry_attempts=0,
                    **kwargs)
        except (TM1linkNotFound, TM1linkAuthFailure):
            # session is gone already
            pass
        finally:
            self._s.close()

    def is_connected(self) -> bool:
        """ Check if Connection to TM1 Server is established.

        :Returns:
            Boolean
        """
        try:
            self.GET("/Configuration/ServerName/$value")
            return True
        except Exception:
            return False

    def set_version(self):
        response = self.GET(url=self.VERSION_URL)
        self._version = response.text

    def get_api_metadata(self) -> dict:
        """ Get API Metadata

        :return: Dictionary
        """
        return self.GET(url="/$metadata").json()

    @property
    def version(self) -> str:
        if not self._version:
            self.set_version()
        return self._version

    @property
    def auth_mode(self) -> AuthenticationMode:
        return self._auth_mode

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def auth_url(self) -> str:
        return self._auth_url

    def _has_privilege(self, privilege: str) -> bool:
        with self._lock:
            if privilege not in self._privileges:
                response = self.GET("/ActiveUser/Groups")
                groups = CaseAndSpaceInsensitiveSet(*[group["Name"] for group in response.json()["value"]])
                self._privileges[privilege] = any(group in groups for group in self.PRIVILEGE_GROUPS[privilege])
            return self._privileges[privilege]

    @property
    def is_admin(self) -> bool:
        return self._has_privilege("admin")

    @property
    def is_data_admin(self) -> bool:
        return self._has_privilege("data_admin")

    @property
    def is_security_admin(self) -> bool:
        return self._has_privilege("security_admin")

    @property
    def is_ops_admin(self) -> bool:
        return self._has_privilege("ops_admin")

    @property
    def session_id(self) -> str:
        try:
            return self._s.cookies["TM1SessionId"]
        # case v12
        except KeyError:
            return self._s.cookies["paSession"]

    @staticmethod
    def translate_to_boolean(value) -> bool:
        """ Takes a boolean or string (eg. true, True, FALSE, etc.) value and returns (boolean) True or False

        :param value: True, 'true', 'false' or 'False' ...
        :return:
        """
        if isinstance(value, (bool, int)):
            return bool(value)
        if isinstance(value, str):
            return value.replace(" ", "").lower() == "true"
        if value is None:
            return False
        raise TM1linkConfigException(f"Invalid argument: '{value}'. Must be to be of type 'bool' or 'str'")

    @staticmethod
    def b64_decode_password(encrypted_password: str) -> str:
        """ b64 decoding

        :param encrypted_password: encrypted password with b64
        :return: password in plain text
        """
        return b64decode(encrypted_password).decode("UTF-8")

    @staticmethod
    def verify_response(response: Response, method: str = None, url: str = None):
        """ raise the TM1linkRestException that matches the status code, if the status code is not OK """
        raise_for_status(response, method=method.upper() if method else None, url=url)

    @staticmethod
    def _build_authorization_token(
            user: str,
            password: str,
            namespace: str = None,
            gateway: str = None,
            cam_passport: str = None,
            verify: bool = False,
            cert: Optional[Union[str, Tuple[str, str]]] = None) -> str:
        """ Build the Authorization Header for CAM and Native Security """
        if cam_passport:
            return "CAMPassport " + cam_passport
        if gateway:
            return RestService._build_authorization_token_cam_sso(namespace, gateway, verify, cert)
        if namespace:
            return "CAMNamespace " + b64encode(str.encode(f"{user}:{password}:{namespace}")).decode("ascii")
        return RestService._build_authorization_token_basic(user, password)

    @staticmethod
    def _build_authorization_token_cam_sso(namespace: str, gateway: str, verify: bool = False,
                                           cert: Optional[Union[str, Tuple[str, str]]] = None) -> str:
        if HttpNegotiateAuth is None:
            raise TM1linkUnsupportedAuth(
                "SSO failed due to missing dependency requests_negotiate_sspi.HttpNegotiateAuth. "
                "SSO only supported for Windows")
        response = requests.get(
            gateway, auth=HttpNegotiateAuth(), verify=verify, cert=cert, params={"CAMNamespace": namespace})
        if response.status_code != 200 or "cam_passport" not in response.cookies:
            raise TM1linkAuthFailure(
                "Failed to authenticate through CAM gateway",
                status_code=response.status_code,
                reason=response.reason,
                headers=response.headers,
                method="GET",
                url=gateway)
        return "CAMPassport " + response.cookies["cam_passport"]

    @staticmethod
    def _build_authorization_token_basic(user: str, password: str) -> str:
        return "Basic " + b64encode(str.encode("{}:{}".format(user or "", password or ""))).decode("ascii")

    @staticmethod
    def disable_http_warnings():
        # disable HTTP verification warnings from urllib3
        urllib3.disable_warnings()

    def get_http_header(self, key: str) -> str:
        return self._headers[key]

    def add_http_header(self, key: str, value: str):
        with self._lock:
            self._headers[key] = value

    def remove_http_header(self, key: str):
        with self._lock:
            self._headers.pop(key, None)

    def retrieve_async_response(self, async_id: str, **kwargs) -> Response:
        url = f"/_async('{async_id}')"
        return self.GET(url, async_requests_mode=False, **kwargs)

    def cancel_async_operation(self, async_id: str, **kwargs):
        url = f"/_async('{async_id}')"
        self.DELETE(url, async_requests_mode=False, **kwargs)

    @staticmethod
    def urllib3_response_from_bytes(data: bytes) -> urllib3.HTTPResponse:
        """ Build urllib3.HTTPResponse based on raw bytes string """
        sock = BytesIOSocket(data)

        response = HTTPResponse(sock)
        response.begin()

        headers = response.msg
        if not isinstance(headers, HTTPHeaderDict):
            headers = HTTPHeaderDict(headers.items())

        return urllib3.HTTPResponse(
            body=response,
            headers=headers,
            status=response.status,
            version=response.version,
            reason=response.reason,
            original_response=response)

    @staticmethod
    def build_response_from_binary_response(data: bytes) -> Response:
        urllib_response = RestService.urllib3_response_from_bytes(data)

        adapter = HTTPAdapter()
        requests_response = adapter.build_response(requests.PreparedRequest(), urllib_response)
        # actual content of response needs to be set explicitly
        requests_response._content = urllib_response.data

        return requests_response

    @staticmethod
    def wait_time_generator(timeout: float):
        yield 0.1
        yield 0.3
        yield 0.6
        if timeout:
            for _ in range(1, int(timeout)):
                yield 1
        else:
            while True:
                yield 1

    def _generate_cpd_access_token(self, credentials: Dict) -> str:
        url = f"{self._cpd_url}/v1/preauth/signin"
        headers = {"Content-Type": "application/json;charset=UTF-8"}
        response = requests.post(url, headers=headers, json=credentials, verify=self._verify)
        self.verify_response(response, "POST", url)
        try:
            return response.json()["token"]
        except (ValueError, KeyError):
            raise TM1linkProtocolException(f"Failed to read JWT from URL: '{url}'")

    def _generate_ibm_iam_cloud_access_token(self) -> str:
        url = f"{self._iam_url.rstrip('/')}/identity/token"
        payload = f"grant_type=urn%3Aibm%3Aparams%3Aoauth%3Agrant-type%3Aapikey&apikey={self._api_key}"
        headers = {"Accept": "application/json", "Content-Type": "application/x-www-form-urlencoded"}
        response = requests.post(url, headers=headers, data=payload, verify=self._verify)

        try:
            access_token = response.json().get("access_token")
        except ValueError:
            access_token = None
        if not response.ok or not access_token:
            raise TM1linkAuthFailure(
                response.text,
                status_code=response.status_code,
                reason=response.reason,
                headers=response.headers,
                method="POST",
                url=url)
        return access_token


class BytesIOSocket:
    """ used in urllib3_response_from_bytes method to construct urllib3 response from raw bytes """

    def __init__(self, content: bytes):
        self.handle = BytesIO(content)

    def makefile(self, mode) -> BytesIO:
        return self.handle
