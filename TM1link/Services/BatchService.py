# -*- coding: utf-8 -*-
import json
from typing import Iterable, List

from TM1link.Exceptions import TM1linkProtocolException
from TM1link.Objects.Batch import BatchRequest, BatchResponse
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Utils import verify_version


class BatchService(ObjectService):
    """ Service to send several requests in one JSON $batch call

    """

    def __init__(self, rest: RestService):
        super().__init__(rest)

    def execute(self, requests: Iterable[BatchRequest], **kwargs) -> List[BatchResponse]:
        """ POST all requests to /$batch

        Servers below v12 expect the sub request URLs with /api/v1 prefix

        :param requests: iterable of TM1link.BatchRequest. Requests without id get their position as id
        :return: list of TM1link.BatchResponse in the order the server reports them
        """
        prefix = "" if verify_version(required_version="12", version=self.version) else "/api/v1"
        payload = {"requests": [
            request.body_as_dict(request_id=str(position), prefix=prefix)
            for position, request
            in enumerate(requests)]}

        response = self._rest.POST(url="/$batch", data=json.dumps(payload, ensure_ascii=False), **kwargs)
        try:
            responses = response.json()["responses"]
        except (ValueError, KeyError) as e:
            raise TM1linkProtocolException(f"Unexpected $batch response: '{response.text}'") from e
        return [BatchResponse.from_dict(batch_response) for batch_response in responses]
