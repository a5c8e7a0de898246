import warnings

from TM1link.Services.BatchService import BatchService
from TM1link.Services.ConfigurationService import ConfigurationService
from TM1link.Services.CubeService import CubeService
from TM1link.Services.DataLoadService import DataLoadService
from TM1link.Services.DimensionService import DimensionService
from TM1link.Services.FileService import FileService
from TM1link.Services.JobService import JobService
from TM1link.Services.ProcessService import ProcessService
from TM1link.Services.RestService import RestService
from TM1link.Services.SandboxService import SandboxService
from TM1link.Services.SecurityService import SecurityService
from TM1link.Services.ServerService import ServerService
from TM1link.Services.SessionService import SessionService
from TM1link.Services.ThreadService import ThreadService


class TM1Service:
    """ Entry point of TM1link. Owns the connection and hands it to one service per object type

    >>> with TM1Service(address="localhost", port=12354, user="admin", password="apple", ssl=True) as tm1:
    >>>     print(tm1.cubes.get_all_names())
    """

    def __init__(self, **kwargs):
        """ Connect to TM1. The keyword arguments are passed on to RestService unchanged.

        Where to connect:
            address, port, ssl, base_url, auth_url, instance, database, tenant, pa_url, cpd_url
        Who connects:
            user, password, decode_b64, namespace, gateway, cam_passport, integrated_login (plus
            integrated_login_domain/service/host/delegate), api_key, iam_url, application_client_id,
            application_client_secret, access_token, session_id, impersonate
        How requests behave:
            timeout, async_requests_mode, cancel_at_timeout, max_retry_attempts,
            reconnect_on_session_timeout, reconnect_on_remote_disconnect, keep_alive, tcp_keep_alive,
            connection_pool_size, pool_connections, session_context, logging
        TLS and proxies:
            verify, verify_cert_path, cert, ssl_context, proxies

        :param kwargs: see RestService for the meaning and defaults of each option
        """
        self._rest = RestService(**kwargs)

        self.cubes = CubeService(self._rest)
        self.cells = self.cubes.cells
        self.views = self.cubes.views
        self.dimensions = DimensionService(self._rest)
        self.hierarchies = self.dimensions.hierarchies
        self.subsets = self.dimensions.subsets
        self.elements = self.hierarchies.elements
        self.processes = ProcessService(self._rest)
        self.files = FileService(self._rest)
        self.sandboxes = SandboxService(self._rest)
        self.configuration = ConfigurationService(self._rest)
        self.batch = BatchService(self._rest)
        self.security = SecurityService(self._rest)
        self.sessions = SessionService(self._rest)
        self.users = self.sessions.users
        self.threads = ThreadService(self._rest)
        self.jobs = JobService(self._rest)
        self.server = ServerService(self._rest)

        self.data_load = DataLoadService(self._rest)

    @property
    def connection(self) -> RestService:
        return self._rest

    @property
    def version(self) -> str:
        return self._rest.version

    @property
    def metadata(self) -> dict:
        return self._rest.get_api_metadata()

    def is_connected(self) -> bool:
        return self._rest.is_connected()

    def re_connect(self):
        self._rest.connect()

    def logout(self, **kwargs):
        self._rest.logout(**kwargs)

    def __enter__(self):
        return self

    def __exit__(self, exception_type, exception_value, traceback):
        try:
            self.logout()
        except Exception as e:
            warnings.warn(f"Logout failed: {e}")
