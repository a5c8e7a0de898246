# -*- coding: utf-8 -*-

from typing import Dict, List

from requests import Response

from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Utils import format_url, require_pandas, require_version_gate


class JobService(ObjectService):
    """ Service to query and cancel jobs, the v12 successor of threads

    """

    def __init__(self, rest: RestService):
        super().__init__(rest)

    @require_version_gate("jobs")
    def get_all(self, **kwargs) -> List[Dict]:
        """ Jobs currently running on the server

        :return: jobs as dict
        """
        return self._rest.GET("/Jobs", **kwargs).json()["value"]

    @require_version_gate("jobs")
    def cancel(self, job_id, **kwargs) -> Response:
        return self._rest.POST(format_url("/Jobs('{}')/tm1.Cancel", str(job_id)), **kwargs)

    @require_version_gate("jobs")
    def cancel_all(self, **kwargs) -> List[Dict]:
        canceled = []
        for job in self.get_all(**kwargs):
            self.cancel(job["ID"], **kwargs)
            canceled.append(job)
        return canceled

    @require_pandas
    @require_version_gate("jobs")
    def get_as_dataframe(self, **kwargs):
        """ Jobs as pandas DataFrame, one row per job """
        import pandas as pd

        return pd.DataFrame.from_records(self.get_all(**kwargs))
