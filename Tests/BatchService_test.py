import unittest

import responses

from TM1link.Exceptions import TM1linkProtocolException
from TM1link.Objects import BatchRequest
from .MockedTestBase import MockedTestBase

BATCH_RESPONSE = {"responses": [
    {"id": "0", "status": 200, "headers": {"Content-Type": "text/plain"}, "body": "tm1srv01"},
    {"id": "update", "status": 404, "body": {"error": {"code": "278", "message": "not found"}}}]}


class TestBatchService(MockedTestBase):

    def requests(self):
        return [
            BatchRequest("get", "Configuration/ServerName/$value"),
            BatchRequest("patch", "/Cubes('Sales')", body='{"Rules": ""}', request_id="update", depends_on=["0"])]

    def test_execute_prefixes_urls_below_v12(self):
        self.mock(responses.POST, "/$batch", json=BATCH_RESPONSE)

        batch_responses = self.tm1.batch.execute(self.requests())

        payload = self.request_json(self.calls_to("POST", "$batch")[0])
        self.assertEqual([
            {"id": "0", "method": "GET", "url": "/api/v1/Configuration/ServerName/$value"},
            {"id": "update", "method": "PATCH", "url": "/api/v1/Cubes('Sales')", "body": {"Rules": ""},
             "dependsOn": ["0"]}],
            payload["requests"])

        self.assertEqual(["0", "update"], [response.id for response in batch_responses])
        self.assertTrue(batch_responses[0].ok)
        self.assertEqual("tm1srv01", batch_responses[0].body)
        self.assertFalse(batch_responses[1].ok)

    def test_already_prefixed_url(self):
        self.assertEqual(
            "/api/v1/Cubes",
            BatchRequest("GET", "/api/v1/Cubes").body_as_dict("0", prefix="/api/v1")["url"])

    def test_unexpected_response(self):
        self.mock(responses.POST, "/$batch", json={"value": []})
        with self.assertRaises(TM1linkProtocolException):
            self.tm1.batch.execute(self.requests())


class TestBatchServiceV12(MockedTestBase):
    mocked_server_version = "12.4.0"

    def test_execute_without_prefix(self):
        self.mock(responses.POST, "/$batch", json={"responses": []})

        self.tm1.batch.execute([BatchRequest("GET", "Cubes?$select=Name")])

        payload = self.request_json(self.calls_to("POST", "$batch")[0])
        self.assertEqual([{"id": "0", "method": "GET", "url": "/Cubes?$select=Name"}], payload["requests"])


if __name__ == "__main__":
    unittest.main()
