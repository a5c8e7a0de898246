# -*- coding: utf-8 -*-

import json
from typing import Any, Dict, List, Optional


class BatchRequest:
    """ One request of a JSON $batch call """

    def __init__(self, method: str, url: str, body: Any = None, headers: Dict = None, request_id: str = None,
                 depends_on: List[str] = None):
        """

        :param method: GET, POST, PATCH or DELETE
        :param url: relative to the service root, e.g. /Cubes('Sales')
        :param body: str or JSON serializable object
        :param headers: headers of this request only
        :param request_id: id to refer to from depends_on, generated when missing
        :param depends_on: ids of requests that must succeed first
        """
        self.method = method.upper()
        self.url = url
        self.body = body
        self.headers = headers
        self.id = request_id
        self.depends_on = depends_on

    def body_as_dict(self, request_id: str, prefix: str = "") -> Dict:
        """ entry of the requests array

        :param request_id: id used when the request has none
        :param prefix: path prepended to the url, e.g. /api/v1
        """
        url = self.url if self.url.startswith("/") else "/" + self.url
        if prefix and not url.startswith(prefix):
            url = prefix + url

        request_as_dict = {'id': self.id or request_id, 'method': self.method, 'url': url}
        if self.body is not None:
            request_as_dict['body'] = json.loads(self.body) if isinstance(self.body, str) else self.body
        if self.headers:
            request_as_dict['headers'] = self.headers
        if self.depends_on:
            request_as_dict['dependsOn'] = self.depends_on
        return request_as_dict


class BatchResponse:
    """ One response of a JSON $batch call, matched to its request by id """

    def __init__(self, response_id: str, status: int, headers: Optional[Dict] = None, body: Any = None):
        self.id = response_id
        self.status = status
        self.headers = headers or {}
        self.body = body

    @classmethod
    def from_dict(cls, response_as_dict: Dict) -> 'BatchResponse':
        return cls(
            response_id=response_as_dict.get('id'),
            status=response_as_dict.get('status'),
            headers=response_as_dict.get('headers'),
            body=response_as_dict.get('body'))

    @property
    def ok(self) -> bool:
        """ 2xx status """
        return self.status is not None and 200 <= int(self.status) < 300

    def __repr__(self):
        return f"BatchResponse({self.id}, {self.status})"
